"""Static gameplay tables: perks, mutators, quest templates and mode multipliers.

These tables are built once at import time and must never be mutated at
runtime; lookups go through the read-only ``*_BY_ID`` mappings.
"""
from dataclasses import dataclass
from types import MappingProxyType

from riftrelay.models.enums import ChallengeMode, MutatorTheme, QuestMetric, QuestScope


@dataclass(frozen=True)
class PerkDefinition:
    id: str
    name: str
    description: str
    unlock_level: int
    max_level: int


@dataclass(frozen=True)
class MutatorDefinition:
    id: str
    name: str
    description: str
    score_multiplier: float
    difficulty: int
    theme: MutatorTheme


@dataclass(frozen=True)
class QuestTemplate:
    id: str
    scope: QuestScope
    title: str
    description: str
    target: int
    reward_currency: int
    metric: QuestMetric


PERK_CATALOG: tuple[PerkDefinition, ...] = (
    PerkDefinition(
        id="arc_synth",
        name="Arc Synth",
        description="+12% XP from every completed run.",
        unlock_level=1,
        max_level=1,
    ),
    PerkDefinition(
        id="volatile_matrix",
        name="Volatile Matrix",
        description="+6% reward scaling per high-risk mutator (difficulty >= 2).",
        unlock_level=2,
        max_level=1,
    ),
    PerkDefinition(
        id="streak_resonator",
        name="Streak Resonator",
        description="+10% currency when streak is 3 or higher.",
        unlock_level=3,
        max_level=1,
    ),
    PerkDefinition(
        id="tempo_core",
        name="Tempo Core",
        description="+8% reward scaling when surviving at least 120 seconds.",
        unlock_level=4,
        max_level=1,
    ),
)

MUTATOR_CATALOG: tuple[MutatorDefinition, ...] = (
    MutatorDefinition(
        id="glass_cannon",
        name="Glass Cannon",
        description="Enemies hit harder, but score rewards are amplified.",
        score_multiplier=1.35,
        difficulty=2,
        theme=MutatorTheme.RISK,
    ),
    MutatorDefinition(
        id="fog_protocol",
        name="Fog Protocol",
        description="Visibility shrinks over time; precision is rewarded.",
        score_multiplier=1.22,
        difficulty=1,
        theme=MutatorTheme.PRECISION,
    ),
    MutatorDefinition(
        id="turbo_swarm",
        name="Turbo Swarm",
        description="Faster enemy spawns for an aggressive run pace.",
        score_multiplier=1.3,
        difficulty=2,
        theme=MutatorTheme.SPEED,
    ),
    MutatorDefinition(
        id="sudden_death",
        name="Sudden Death",
        description="No recovery margin. Execute a clean run for huge payoff.",
        score_multiplier=1.55,
        difficulty=3,
        theme=MutatorTheme.RISK,
    ),
    MutatorDefinition(
        id="endless_echo",
        name="Endless Echo",
        description="Long-form pressure curve that rewards endurance.",
        score_multiplier=1.28,
        difficulty=2,
        theme=MutatorTheme.ENDURANCE,
    ),
    MutatorDefinition(
        id="micro_hud",
        name="Micro HUD",
        description="Minimal information; better intuition yields better score.",
        score_multiplier=1.2,
        difficulty=1,
        theme=MutatorTheme.PRECISION,
    ),
)

QUEST_TEMPLATES: tuple[QuestTemplate, ...] = (
    QuestTemplate(
        id="daily_runs",
        scope=QuestScope.DAILY,
        title="Daily Cadence",
        description="Complete 3 runs today.",
        target=3,
        reward_currency=35,
        metric=QuestMetric.RUNS,
    ),
    QuestTemplate(
        id="daily_score",
        scope=QuestScope.DAILY,
        title="Daily Spike",
        description="Accumulate 10,000 score today.",
        target=10_000,
        reward_currency=50,
        metric=QuestMetric.SCORE,
    ),
    QuestTemplate(
        id="weekly_runs",
        scope=QuestScope.WEEKLY,
        title="Weekly Grinder",
        description="Complete 15 runs this week.",
        target=15,
        reward_currency=180,
        metric=QuestMetric.RUNS,
    ),
    QuestTemplate(
        id="weekly_score",
        scope=QuestScope.WEEKLY,
        title="Weekly Peak",
        description="Accumulate 75,000 score this week.",
        target=75_000,
        reward_currency=250,
        metric=QuestMetric.SCORE,
    ),
)

PERKS_BY_ID = MappingProxyType({perk.id: perk for perk in PERK_CATALOG})
MUTATORS_BY_ID = MappingProxyType({mutator.id: mutator for mutator in MUTATOR_CATALOG})
QUEST_TEMPLATES_BY_ID = MappingProxyType({template.id: template for template in QUEST_TEMPLATES})

MUTATOR_POOL: tuple[str, ...] = tuple(mutator.id for mutator in MUTATOR_CATALOG)

MODE_MULTIPLIERS = MappingProxyType({
    ChallengeMode.NORMAL: 1.0,
    ChallengeMode.DAILY: 1.15,
    ChallengeMode.WEEKLY: 1.3,
})

HIGH_RISK_DIFFICULTY = 2
MAX_EQUIPPED_PERKS = 3
MAX_BASE_SCORE = 1_000_000_000
LEVEL_UP_CURRENCY = 25


def default_unlocked_perk_ids(level: int) -> list[str]:
    """Perks a player at ``level`` owns automatically, in catalog order."""
    return [perk.id for perk in PERK_CATALOG if perk.unlock_level <= level]


def xp_to_next_level(level: int) -> int:
    """XP needed to advance from ``level``. Strictly increasing."""
    return level * 120 + 180
