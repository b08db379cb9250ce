"""Run session storage and single-use ticket consumption.

A ticket moves from issued to consumed or expired exactly once:

1. ``claim`` takes an exclusive claim key with SET NX, so of two concurrent
   completions only one proceeds; the other sees ``NotFoundError``.
2. The claimant persists rewards, then calls ``consume`` to delete the session.
3. If anything fails before rewards are persisted, ``release`` drops the claim
   and the ticket stays completable.

Expired sessions are deleted as soon as they are seen. Session keys live in the
store for ``run_session_retention_hours`` (longer than the ticket itself) so a
late completion is reported as expired rather than unknown.
"""
from datetime import datetime, timedelta
from typing import Optional, Sequence
import logging
import uuid

from riftrelay.config import get_settings
from riftrelay.models.enums import ChallengeMode
from riftrelay.models.run_session import RunSession, parse_run_session
from riftrelay.utils.exceptions import NotFoundError, SessionExpiredError
from riftrelay.utils.store_client import StoreClient, StoreKeys

logger = logging.getLogger(__name__)


class RunSessionService:
    """Issue, claim and consume run sessions."""

    def __init__(self, store: StoreClient):
        self.store = store
        self.settings = get_settings()

    @staticmethod
    def new_ticket() -> str:
        return str(uuid.uuid4())

    def create(
        self,
        scope: str,
        username: str,
        mode: ChallengeMode,
        seed: int,
        offered_mutator_ids: Sequence[str],
        default_mutator_ids: Sequence[str],
        selected_perk_ids: Sequence[str],
        challenge_cycle_key: Optional[str],
        now: datetime,
    ) -> RunSession:
        session = RunSession(
            ticket=self.new_ticket(),
            mode=mode,
            seed=seed,
            offered_mutator_ids=list(offered_mutator_ids),
            default_mutator_ids=list(default_mutator_ids),
            selected_perk_ids=list(selected_perk_ids),
            challenge_cycle_key=challenge_cycle_key,
            started_at=now,
            expires_at=now + timedelta(seconds=self.settings.run_ticket_ttl_seconds),
        )
        self.store.set(
            StoreKeys.run_session(scope, username, session.ticket),
            session.model_dump_json(),
            ttl_seconds=self.settings.run_session_retention_seconds,
        )
        return session

    def get(self, scope: str, username: str, ticket: str) -> Optional[RunSession]:
        return parse_run_session(self.store.get(StoreKeys.run_session(scope, username, ticket)))

    def claim(self, scope: str, username: str, ticket: str, now: datetime) -> RunSession:
        """Take exclusive ownership of an issued, unexpired ticket.

        Raises:
            NotFoundError: No session for the ticket, or another completion holds it.
            SessionExpiredError: The ticket is past ``expires_at``; the session is deleted.
        """
        claim_key = StoreKeys.run_claim(scope, username, ticket)
        if not self.store.acquire(claim_key, self.settings.run_claim_timeout_seconds):
            logger.warning(f"Ticket {ticket} for {username} in {scope} is already being completed")
            raise NotFoundError("run_session_not_found")

        try:
            session = self.get(scope, username, ticket)
            if session is None:
                logger.warning(f"Unknown or consumed ticket {ticket} for {username} in {scope}")
                raise NotFoundError("run_session_not_found")

            if session.is_expired(now):
                self.store.delete(StoreKeys.run_session(scope, username, ticket))
                logger.warning(
                    f"Rejected expired ticket {ticket} for {username} in {scope} "
                    f"(expired at {session.expires_at.isoformat()})"
                )
                raise SessionExpiredError("run_session_expired")
        except Exception:
            self.store.release(claim_key)
            raise

        return session

    def consume(self, scope: str, username: str, ticket: str) -> None:
        """Delete a claimed session. Must run only after rewards are persisted."""
        self.store.delete(StoreKeys.run_session(scope, username, ticket))
        self.store.release(StoreKeys.run_claim(scope, username, ticket))

    def release(self, scope: str, username: str, ticket: str) -> None:
        """Give up a claim without consuming the session."""
        self.store.release(StoreKeys.run_claim(scope, username, ticket))
