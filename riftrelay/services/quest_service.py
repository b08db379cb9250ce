"""Quest cycle rollover and progress tracking."""
from dataclasses import dataclass, field
from datetime import datetime
import logging

from riftrelay.catalog import QUEST_TEMPLATES
from riftrelay.models.enums import QuestMetric
from riftrelay.models.progression import PlayerProgression, QuestProgressEntry
from riftrelay.schemas.meta import QuestResponse
from riftrelay.utils import datetime_helpers

logger = logging.getLogger(__name__)


@dataclass
class QuestProgressResult:
    quests: list[QuestResponse]
    currency_bonus: int = 0
    completed_quest_ids: list[str] = field(default_factory=list)


class QuestService:
    """Quest progress lives on the progression; rollover happens lazily on access."""

    @staticmethod
    def normalize_quest_progress(progression: PlayerProgression, now: datetime) -> None:
        """Reset every entry whose cycle key is not the current one (or is missing)."""
        for template in QUEST_TEMPLATES:
            cycle_key = datetime_helpers.cycle_key(template.scope.value, now)
            current = progression.quest_progress.get(template.id)
            if current is None or current.cycle_key != cycle_key:
                progression.quest_progress[template.id] = QuestProgressEntry(cycle_key=cycle_key)

    @staticmethod
    def build_quest_snapshot(progression: PlayerProgression, now: datetime) -> list[QuestResponse]:
        QuestService.normalize_quest_progress(progression, now)

        quests = []
        for template in QUEST_TEMPLATES:
            entry = progression.quest_progress[template.id]
            completed = entry.progress >= template.target
            quests.append(
                QuestResponse(
                    id=template.id,
                    scope=template.scope,
                    metric=template.metric,
                    title=template.title,
                    description=template.description,
                    target=template.target,
                    progress=entry.progress,
                    reward_currency=template.reward_currency,
                    completed=completed,
                    claimable=completed and not entry.claimed,
                )
            )
        return quests

    @staticmethod
    def apply_run(
        progression: PlayerProgression,
        now: datetime,
        adjusted_score: int,
    ) -> QuestProgressResult:
        """Count one completed run toward every quest and claim the ones that reach target.

        A quest is claimed at most once per cycle; progress keeps accumulating
        after the claim.
        """
        QuestService.normalize_quest_progress(progression, now)
        currency_bonus = 0
        completed_quest_ids = []

        for template in QUEST_TEMPLATES:
            entry = progression.quest_progress[template.id]
            entry.progress += adjusted_score if template.metric == QuestMetric.SCORE else 1

            if not entry.claimed and entry.progress >= template.target:
                entry.claimed = True
                currency_bonus += template.reward_currency
                completed_quest_ids.append(template.id)
                logger.info(
                    f"Quest {template.id} ({entry.cycle_key}) completed by {progression.username}, "
                    f"+{template.reward_currency} currency"
                )

        return QuestProgressResult(
            quests=QuestService.build_quest_snapshot(progression, now),
            currency_bonus=currency_bonus,
            completed_quest_ids=completed_quest_ids,
        )
