"""Domain definition exports."""

from .fighter_def import (
    PERSONALITY_TRAITS,
    EscalationBehaviorDef,
    FighterDef,
    MoveDef,
    PersonalityProfile,
    RelationshipDef,
    SetupEffectDef,
)
from .instant_rule_def import InstantRuleDef, RuleCondition
from .location_def import LocationDef

__all__ = [
    "PERSONALITY_TRAITS",
    "EscalationBehaviorDef",
    "FighterDef",
    "InstantRuleDef",
    "LocationDef",
    "MoveDef",
    "PersonalityProfile",
    "RelationshipDef",
    "RuleCondition",
    "SetupEffectDef",
]
