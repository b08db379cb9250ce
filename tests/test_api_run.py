"""Tests for run lifecycle API endpoints."""
import pytest

from httpx import AsyncClient, ASGITransport

from tests.helpers import ANONYMOUS_HEADERS, API_HEADERS, PLAYER, SCOPE
from riftrelay.utils.store_client import StoreKeys


API_BASE_URL = "http://test/api"


@pytest.mark.asyncio
async def test_start_and_complete_run(test_app, clock):
    """A ticket converts into rewards exactly once."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        start = await client.post("/run/start", json={}, headers=API_HEADERS)
        assert start.status_code == 200
        started = start.json()
        assert started["mode"] == "normal"
        assert len(started["offered_mutator_ids"]) == 3
        assert started["expires_at"] == "2025-03-12T12:20:00Z"

        clock.advance(minutes=3)
        complete = await client.post(
            "/run/complete",
            json={"ticket": started["ticket"], "score": 10_000, "survived_seconds": 180},
            headers=API_HEADERS,
        )
        assert complete.status_code == 200
        data = complete.json()
        assert data["score"] >= 10_000
        assert data["best_score"] == data["score"]
        assert data["reward"]["xp_gained"] >= 1800
        assert data["profile"]["lifetime_runs"] == 1
        assert data["leaderboard"]["me"]["username"] == PLAYER
        assert len(data["quests"]) == 4
        assert data["run_summary"]["mutator_ids"] == started["default_mutator_ids"]
        assert data["completed_at"] == "2025-03-12T12:03:00Z"

        replay = await client.post(
            "/run/complete",
            json={"ticket": started["ticket"], "score": 10_000},
            headers=API_HEADERS,
        )
        assert replay.status_code == 404
        assert replay.json()["detail"] == "run_session_not_found"


@pytest.mark.asyncio
async def test_daily_run_returns_challenge(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post("/run/start", json={"mode": "daily"}, headers=API_HEADERS)

    assert response.status_code == 200
    challenge = response.json()["challenge"]
    assert challenge["cycle_key"] == "2025-03-12"
    assert challenge["expires_at"] == "2025-03-13T00:00:00Z"


@pytest.mark.asyncio
async def test_expired_ticket_returns_410_then_404(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        start = await client.post("/run/start", json={}, headers=API_HEADERS)
        ticket = start.json()["ticket"]

        clock.advance(minutes=21)
        expired = await client.post("/run/complete", json={"ticket": ticket, "score": 500}, headers=API_HEADERS)
        again = await client.post("/run/complete", json={"ticket": ticket, "score": 500}, headers=API_HEADERS)

    assert expired.status_code == 410
    assert expired.json()["detail"] == "run_session_expired"
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_anonymous_player_is_rejected_before_body_validation(test_app, store, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        start = await client.post("/run/start", json={}, headers=ANONYMOUS_HEADERS)
        complete = await client.post("/run/complete", json={}, headers=ANONYMOUS_HEADERS)

    assert start.status_code == 401
    assert start.json()["detail"] == "login_required"
    assert complete.status_code == 401
    assert store.get(StoreKeys.progression(SCOPE, "anonymous")) is None


@pytest.mark.asyncio
async def test_missing_post_id(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post("/run/start", json={}, headers={"X-Username": PLAYER})

    assert response.status_code == 400
    assert response.json()["detail"] == "missing_post_id"


@pytest.mark.asyncio
async def test_invalid_payloads_return_422(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        bad_mode = await client.post("/run/start", json={"mode": "hardcore"}, headers=API_HEADERS)
        bad_score = await client.post(
            "/run/complete", json={"ticket": "abc", "score": "lots"}, headers=API_HEADERS
        )
        missing_ticket = await client.post("/run/complete", json={"score": 100}, headers=API_HEADERS)
        empty_ticket = await client.post(
            "/run/complete", json={"ticket": "", "score": 100}, headers=API_HEADERS
        )

    for response in (bad_mode, bad_score, missing_ticket, empty_ticket):
        assert response.status_code == 422
        body = response.json()
        assert body["detail"] == "Request validation failed"
        assert body["errors"]

    assert missing_ticket.json()["errors"][0]["field"] == "ticket"


@pytest.mark.asyncio
async def test_unknown_ticket_returns_404(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post(
            "/run/complete", json={"ticket": "never-issued", "score": 100}, headers=API_HEADERS
        )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_selected_perks_are_validated_against_unlocks(test_app, store, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post(
            "/run/start",
            json={"selected_perk_ids": ["tempo_core", "arc_synth", "arc_synth"]},
            headers=API_HEADERS,
        )

    ticket = response.json()["ticket"]
    stored = store.get(StoreKeys.run_session(SCOPE, PLAYER, ticket))
    assert '"selected_perk_ids":["arc_synth"]' in stored
