"""
Goal Resolver

Validates the requested goal and maps it to a clinical protocol id
and display label. First stage of the pipeline: an unknown goal aborts
generation before anything else runs.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel

from stackrx.errors import InvalidGoalError


class GoalType(str, Enum):
    ENERGY_RECOVERY = "ENERGY_RECOVERY"
    STRESS_SLEEP = "STRESS_SLEEP"
    LONGEVITY = "LONGEVITY"
    ATHLETIC_PERFORMANCE = "ATHLETIC_PERFORMANCE"
    METABOLIC_HEALTH = "METABOLIC_HEALTH"
    IMMUNE_SUPPORT = "IMMUNE_SUPPORT"
    BRAIN_HEALTH = "BRAIN_HEALTH"
    JOINT_HEALTH = "JOINT_HEALTH"


class GoalDefinition(BaseModel):
    protocol_id: str
    label: str
    description: str

    class Config:
        frozen = True


class ResolvedGoal(BaseModel):
    goal: GoalType
    protocol_id: str
    label: str

    class Config:
        frozen = True


GOAL_DEFINITIONS: Dict[GoalType, GoalDefinition] = {
    GoalType.ENERGY_RECOVERY: GoalDefinition(
        protocol_id="prot_001",
        label="Energy & Recovery",
        description="Support sustained energy, ATP production, and post-exercise recovery",
    ),
    GoalType.STRESS_SLEEP: GoalDefinition(
        protocol_id="prot_002",
        label="Stress & Sleep",
        description="Support cortisol balance, relaxation, and quality sleep",
    ),
    GoalType.LONGEVITY: GoalDefinition(
        protocol_id="prot_003",
        label="Longevity & Prevention",
        description="Comprehensive support for healthy aging and cellular protection",
    ),
    GoalType.ATHLETIC_PERFORMANCE: GoalDefinition(
        protocol_id="prot_004",
        label="Athletic Performance",
        description="Optimize strength, endurance, and recovery for athletes",
    ),
    GoalType.METABOLIC_HEALTH: GoalDefinition(
        protocol_id="prot_005",
        label="Metabolic Health",
        description="Support blood sugar balance and metabolic function",
    ),
    GoalType.BRAIN_HEALTH: GoalDefinition(
        protocol_id="prot_006",
        label="Brain Health",
        description="Support cognitive function, focus, and neuroplasticity",
    ),
    GoalType.IMMUNE_SUPPORT: GoalDefinition(
        protocol_id="prot_007",
        label="Immune Support",
        description="Strengthen immune function and resilience",
    ),
    GoalType.JOINT_HEALTH: GoalDefinition(
        protocol_id="prot_008",
        label="Joint Health",
        description="Support joint mobility, cartilage health, and flexibility",
    ),
}


def resolve_goal(goal: str) -> ResolvedGoal:
    """
    Validate a goal token and return its protocol mapping.

    Raises:
        InvalidGoalError: token is not one of the supported goals
    """
    try:
        goal_type = GoalType(goal)
    except ValueError:
        raise InvalidGoalError(goal)

    definition = GOAL_DEFINITIONS[goal_type]
    return ResolvedGoal(
        goal=goal_type,
        protocol_id=definition.protocol_id,
        label=definition.label,
    )


def get_available_goals() -> List[Dict[str, str]]:
    """All supported goals with label and description, in enumeration order."""
    return [
        {
            "value": goal.value,
            "label": GOAL_DEFINITIONS[goal].label,
            "description": GOAL_DEFINITIONS[goal].description,
        }
        for goal in GoalType
    ]
