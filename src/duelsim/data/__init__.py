"""Data loading layer for fighter, location and rule definitions."""
