"""Player progression aggregate and its versioned storage schema.

Stored documents carry a ``schema_version``. Older documents are upgraded by
``migrate_progression_payload`` before validation, field sanitizers default or
clamp bad values, and the after-validator re-establishes the perk invariants:

* ``unlocked_perk_ids`` always contains every perk unlocked by ``level``
* ``equipped_perks`` only holds unlocked perks, at most three, each at a valid level
"""
from datetime import datetime, UTC
from typing import Any, Optional
import json
import logging
import math

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_core import PydanticUseDefault

from riftrelay.catalog import (
    MAX_EQUIPPED_PERKS,
    PERKS_BY_ID,
    default_unlocked_perk_ids,
    xp_to_next_level,
)
from riftrelay.utils import datetime_helpers

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2


def is_finite_number(value: Any) -> bool:
    """True for real ints/floats (not bools) that are finite."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class EquippedPerk(BaseModel):
    perk_id: str
    level: int = 1


class QuestProgressEntry(BaseModel):
    """Progress of one quest template within one cycle."""
    cycle_key: str
    progress: int = 0
    claimed: bool = False


def normalize_equipped_perks(
    unlocked_perk_ids: list[str],
    equipped_perks: list[EquippedPerk],
) -> list[EquippedPerk]:
    """Drop unknown, locked and duplicate perks, clamp levels and cap the slot count."""
    unlocked = set(unlocked_perk_ids)
    normalized: list[EquippedPerk] = []
    seen: set[str] = set()

    for perk in equipped_perks:
        definition = PERKS_BY_ID.get(perk.perk_id)
        if definition is None or perk.perk_id not in unlocked or perk.perk_id in seen:
            continue
        level = min(max(int(perk.level), 1), definition.max_level)
        normalized.append(EquippedPerk(perk_id=perk.perk_id, level=level))
        seen.add(perk.perk_id)
        if len(normalized) >= MAX_EQUIPPED_PERKS:
            break

    return normalized


def merge_unlocked_perk_ids(unlocked_perk_ids: list[str], level: int) -> list[str]:
    """Union of the stored unlocks and the level table, order preserved."""
    merged = list(dict.fromkeys(unlocked_perk_ids))
    for perk_id in default_unlocked_perk_ids(level):
        if perk_id not in merged:
            merged.append(perk_id)
    return merged


class PlayerProgression(BaseModel):
    """Long-lived progression of one player within one post scope."""

    schema_version: int = CURRENT_SCHEMA_VERSION
    username: str
    level: int = 1
    xp: int = 0
    currency: int = 0
    streak: int = 0
    unlocked_perk_ids: list[str] = Field(default_factory=list)
    equipped_perks: list[EquippedPerk] = Field(default_factory=list)
    lifetime_runs: int = 0
    lifetime_best_score: int = 0
    last_played_day_key: Optional[str] = None
    quest_progress: dict[str, QuestProgressEntry] = Field(default_factory=dict)
    challenge_claims: dict[str, bool] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=datetime_helpers.utcnow)

    @field_validator("level", mode="before")
    @classmethod
    def sanitize_level(cls, value: Any) -> int:
        if not is_finite_number(value):
            raise PydanticUseDefault()
        return max(int(value), 1)

    @field_validator("xp", "currency", "streak", "lifetime_runs", "lifetime_best_score", mode="before")
    @classmethod
    def sanitize_counter(cls, value: Any) -> int:
        if not is_finite_number(value):
            raise PydanticUseDefault()
        return max(0, int(value))

    @field_validator("last_played_day_key", mode="before")
    @classmethod
    def sanitize_day_key(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str) or not value:
            return None
        return value

    @field_validator("unlocked_perk_ids", mode="before")
    @classmethod
    def sanitize_unlocked_perks(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            raise PydanticUseDefault()
        known = [item for item in value if isinstance(item, str) and item in PERKS_BY_ID]
        return list(dict.fromkeys(known))

    @field_validator("equipped_perks", mode="before")
    @classmethod
    def sanitize_equipped_perks(cls, value: Any) -> list[dict]:
        if not isinstance(value, list):
            raise PydanticUseDefault()
        loaded = []
        for item in value:
            if isinstance(item, EquippedPerk):
                loaded.append(item.model_dump())
                continue
            if not isinstance(item, dict) or not isinstance(item.get("perk_id"), str):
                continue
            if not is_finite_number(item.get("level")):
                continue
            loaded.append({"perk_id": item["perk_id"], "level": int(item["level"])})
        return loaded

    @field_validator("quest_progress", mode="before")
    @classmethod
    def sanitize_quest_progress(cls, value: Any) -> dict[str, dict]:
        if not isinstance(value, dict):
            raise PydanticUseDefault()
        entries = {}
        for template_id, entry in value.items():
            if isinstance(entry, QuestProgressEntry):
                entries[template_id] = entry.model_dump()
                continue
            if not isinstance(entry, dict):
                continue
            if not isinstance(entry.get("cycle_key"), str):
                continue
            if not is_finite_number(entry.get("progress")) or not isinstance(entry.get("claimed"), bool):
                continue
            entries[template_id] = {
                "cycle_key": entry["cycle_key"],
                "progress": max(0, int(entry["progress"])),
                "claimed": entry["claimed"],
            }
        return entries

    @field_validator("challenge_claims", mode="before")
    @classmethod
    def sanitize_challenge_claims(cls, value: Any) -> dict[str, bool]:
        if not isinstance(value, dict):
            raise PydanticUseDefault()
        return {key: claimed for key, claimed in value.items() if isinstance(claimed, bool)}

    @field_validator("updated_at", mode="before")
    @classmethod
    def sanitize_updated_at(cls, value: Any) -> datetime:
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value)
            except ValueError:
                raise PydanticUseDefault()
        if not isinstance(value, datetime):
            raise PydanticUseDefault()
        return datetime_helpers.ensure_utc(value)

    @model_validator(mode="after")
    def enforce_perk_invariants(self):
        self.refresh_perks()
        return self

    def refresh_perks(self) -> None:
        """Re-apply the level unlock table and re-normalize the equipped list."""
        self.unlocked_perk_ids = merge_unlocked_perk_ids(self.unlocked_perk_ids, self.level)
        self.equipped_perks = normalize_equipped_perks(self.unlocked_perk_ids, self.equipped_perks)

    @property
    def xp_to_next_level(self) -> int:
        return xp_to_next_level(self.level)

    @property
    def equipped_perk_ids(self) -> list[str]:
        return [perk.perk_id for perk in self.equipped_perks]

    @classmethod
    def default(cls, username: str) -> "PlayerProgression":
        return cls(username=username)


def _migrate_v1_to_v2(payload: dict[str, Any]) -> dict[str, Any]:
    """Legacy camelCase documents with epoch-millisecond timestamps."""
    migrated: dict[str, Any] = {
        "schema_version": 2,
        "username": payload.get("username"),
        "level": payload.get("level"),
        "xp": payload.get("xp"),
        "currency": payload.get("currency"),
        "streak": payload.get("streak"),
        "unlocked_perk_ids": payload.get("unlockedPerkIds"),
        "lifetime_runs": payload.get("lifetimeRuns"),
        "lifetime_best_score": payload.get("lifetimeBestScore"),
        "last_played_day_key": payload.get("lastPlayedDay"),
        "challenge_claims": payload.get("challengeClaims"),
    }

    equipped = payload.get("equippedPerks")
    if isinstance(equipped, list):
        migrated["equipped_perks"] = [
            {"perk_id": item.get("id"), "level": item.get("level")}
            for item in equipped
            if isinstance(item, dict)
        ]

    quests = payload.get("questProgress")
    if isinstance(quests, dict):
        migrated["quest_progress"] = {
            template_id: {
                "cycle_key": entry.get("key"),
                "progress": entry.get("progress"),
                "claimed": entry.get("claimed"),
            }
            for template_id, entry in quests.items()
            if isinstance(entry, dict)
        }

    updated_at = payload.get("updatedAt")
    if is_finite_number(updated_at):
        try:
            migrated["updated_at"] = datetime.fromtimestamp(updated_at / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            logger.warning(f"Dropping out-of-range legacy updatedAt={updated_at}")

    # Validators treat None as "use the default"
    return {key: value for key, value in migrated.items() if value is not None}


_MIGRATIONS = {
    1: _migrate_v1_to_v2,
}


def migrate_progression_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Upgrade a stored progression document to ``CURRENT_SCHEMA_VERSION``."""
    version = payload.get("schema_version", 1)
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        version = 1

    if version > CURRENT_SCHEMA_VERSION:
        logger.warning(
            f"Progression document has schema_version={version}, newer than "
            f"{CURRENT_SCHEMA_VERSION}; reading it as the current version"
        )
        return {**payload, "schema_version": CURRENT_SCHEMA_VERSION}

    while version < CURRENT_SCHEMA_VERSION:
        payload = _MIGRATIONS[version](payload)
        version += 1
    return payload


def parse_progression(raw: Optional[str], username: str) -> PlayerProgression:
    """Load a stored progression document, falling back to a fresh profile."""
    if not raw:
        return PlayerProgression.default(username)

    try:
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
        payload = migrate_progression_payload(payload)
        if not isinstance(payload.get("username"), str):
            payload["username"] = username
        return PlayerProgression.model_validate(payload)
    except ValueError as e:
        logger.error(f"Failed to parse stored progression for {username}: {e}")
        return PlayerProgression.default(username)
