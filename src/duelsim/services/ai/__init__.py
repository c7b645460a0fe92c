"""AI decision making."""

from .decision_context import DecisionContext, DecisionOptions, build_decision_context
from .decision_engine import AIDecisionEngine, AiDecision

__all__ = [
    "AIDecisionEngine",
    "AiDecision",
    "DecisionContext",
    "DecisionOptions",
    "build_decision_context",
]
