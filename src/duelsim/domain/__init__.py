"""Pure battle rules with no I/O."""
