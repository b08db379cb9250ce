"""Enumerations shared by models, services and schemas."""
from enum import Enum


class ChallengeMode(str, Enum):
    """Run mode. Non-normal modes are tied to the current challenge cycle."""
    NORMAL = "normal"
    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def is_challenge(self) -> bool:
        return self is not ChallengeMode.NORMAL


class QuestScope(str, Enum):
    """Rollover window of a quest."""
    DAILY = "daily"
    WEEKLY = "weekly"


class QuestMetric(str, Enum):
    """What a quest counts per completed run."""
    RUNS = "runs"
    SCORE = "score"


class MutatorTheme(str, Enum):
    RISK = "risk"
    PRECISION = "precision"
    SPEED = "speed"
    ENDURANCE = "endurance"
