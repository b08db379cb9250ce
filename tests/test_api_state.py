"""Tests for saved-state, score, init and health endpoints."""
import asyncio
import threading

import pytest

from httpx import AsyncClient, ASGITransport

from tests.helpers import ANONYMOUS_HEADERS, API_HEADERS, PLAYER, SCOPE


API_BASE_URL = "http://test/api"


@pytest.mark.asyncio
async def test_state_not_found_then_saved(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        missing = await client.get("/state", headers=API_HEADERS)

        saved = await client.post("/state", json={"level": 3}, headers=API_HEADERS)
        clock.advance(minutes=1)
        updated = await client.post("/state", json={"data": {"checkpoint": "b2"}}, headers=API_HEADERS)
        fetched = await client.get("/state", headers=API_HEADERS)

    assert missing.status_code == 404
    assert missing.json()["detail"] == "no_state_found"

    assert saved.status_code == 200
    assert saved.json()["level"] == 3

    # Saving data alone keeps the stored level
    assert updated.json()["level"] == 3
    assert updated.json()["data"] == {"checkpoint": "b2"}
    assert fetched.json()["updated_at"] == "2025-03-12T12:01:00Z"
    assert fetched.json()["username"] == PLAYER


@pytest.mark.asyncio
async def test_empty_state_update_is_rejected(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post("/state", json={}, headers=API_HEADERS)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_state_writes_require_login(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        state = await client.post("/state", json={"level": 1}, headers=ANONYMOUS_HEADERS)
        score = await client.post("/score", json={"score": 1}, headers=ANONYMOUS_HEADERS)

    assert state.status_code == 401
    assert score.status_code == 401


@pytest.mark.asyncio
async def test_score_keeps_personal_best(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        first = await client.post("/score", json={"score": 500.7}, headers=API_HEADERS)
        lower = await client.post("/score", json={"score": 300}, headers=API_HEADERS)
        board = await client.get("/leaderboard", headers=API_HEADERS)
        state = await client.get("/state", headers=API_HEADERS)

    assert first.json()["score"] == 500
    assert lower.json()["score"] == 500
    assert board.json()["me"] == {"rank": 1, "username": PLAYER, "score": 500}
    assert state.json()["best_score"] == 500


@pytest.mark.asyncio
async def test_init_bootstrap(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        fresh = await client.get("/init", headers=API_HEADERS)
        await client.post("/state", json={"level": 2}, headers=API_HEADERS)
        returning = await client.get("/init", headers=API_HEADERS)

    assert fresh.status_code == 200
    assert fresh.json()["post_id"] == SCOPE
    assert fresh.json()["username"] == PLAYER
    assert fresh.json()["previous_time"] == ""
    assert fresh.json()["state"] is None

    assert returning.json()["previous_time"] == "2025-03-12T12:00:00Z"
    assert returning.json()["state"]["level"] == 2


@pytest.mark.asyncio
async def test_init_for_anonymous_caller(test_app, clock):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.get("/init", headers=ANONYMOUS_HEADERS)

    assert response.status_code == 200
    assert response.json()["username"] == "anonymous"


@pytest.mark.asyncio
async def test_health_and_status(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        health = await client.get("/health")
        status = await client.get("/status")
        root = await client.get("/")

    assert health.status_code == 200
    assert health.json() == {"status": "ok", "store": "memory"}
    assert status.json()["version"]
    assert root.json()["message"] == "Rift Relay API"


@pytest.mark.asyncio
async def test_slow_store_call_does_not_block_other_requests(test_app, store, monkeypatch):
    released = threading.Event()
    waited = []

    def slow_ping():
        waited.append(released.wait(timeout=5))

    monkeypatch.setattr(store, "ping", slow_ping)

    async def status_then_release(client):
        response = await client.get("/status")
        released.set()
        return response

    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        health, status = await asyncio.gather(client.get("/health"), status_then_release(client))

    assert health.status_code == 200
    assert status.status_code == 200
    # The status request was served while the health check was still waiting on the store
    assert waited == [True]
