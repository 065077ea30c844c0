"""Tests for API endpoints."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.main import app
from api.routes import table as table_routes
from api.session import create_session, get_session_store
from helpers import stacked_deck


@pytest_asyncio.fixture
async def client():
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def new_table(client, players=("Alice",), *stack: str) -> dict[str, str]:
    """Seat a table, optionally on a stacked deck, and return its headers."""
    response = await client.post("/api/table/new", json={"players": list(players)})
    assert response.status_code == 200
    session_id = response.json()["session_id"]
    if stack:
        table_routes._games[session_id].deck = stacked_deck(*stack)
    return {"X-Session-ID": session_id}


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_new_table(client):
    response = await client.post("/api/table/new", json={"players": ["Alice", "Bob"]})
    assert response.status_code == 200
    assert "session_id" in response.json()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "players",
    [["Alice", "Alice"], ["A", "B", "C", "D", "E"], ["  "]],
)
async def test_new_table_rejects_bad_players(client, players):
    response = await client.post("/api/table/new", json={"players": players})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_new_table_requires_players(client):
    response = await client.post("/api/table/new", json={"players": []})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_initial_state(client):
    headers = await new_table(client, ("Alice", "Bob"))

    response = await client.get("/api/table/state", headers=headers)
    assert response.status_code == 200
    data = response.json()

    assert data["state"] == "IDLE"
    assert data["round_number"] == 0
    assert [p["name"] for p in data["players"]] == ["Alice", "Bob"]
    assert data["can_start_round"]
    assert not data["can_hit"]
    assert data["cards_remaining"] == 52


@pytest.mark.asyncio
async def test_unknown_session(client):
    response = await client.get("/api/table/state", headers={"X-Session-ID": "forged"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_start_round_conceals_dealer(client):
    headers = await new_table(client, ("Alice",), "10C", "8H", "7D", "9C")

    response = await client.post("/api/table/round", headers=headers)
    assert response.status_code == 200
    data = response.json()

    assert data["state"] == "PLAYER_TURNS"
    assert data["current_player"] == "Alice"
    assert data["players"][0]["score"] == 18
    dealer = data["dealer"]
    assert dealer["score"] is None
    assert dealer["cards"][0]["hidden"]
    assert dealer["cards"][1]["rank"] == "9"
    assert dealer["display"] == "Dealer: [hidden] 9♣"


@pytest.mark.asyncio
async def test_dealer_bust_round(client):
    headers = await new_table(client, ("Alice",), "10C", "8H", "10S", "6H", "9D")
    await client.post("/api/table/round", headers=headers)

    response = await client.post("/api/table/action", json={"action": "stand"}, headers=headers)
    assert response.status_code == 200
    data = response.json()

    assert data["state"] == "ROUND_COMPLETE"
    assert data["dealer"]["score"] == 25
    assert data["dealer"]["is_busted"]
    assert data["results"] == [
        {"name": "Alice", "score": 18, "outcome": "dealer_bust", "points": 2}
    ]
    assert data["players"][0]["wins"] == 1


@pytest.mark.asyncio
async def test_hit_to_bust(client):
    headers = await new_table(client, ("Alice",), "9C", "8D", "10S", "7C", "5H")
    await client.post("/api/table/round", headers=headers)

    response = await client.post("/api/table/action", json={"action": "hit"}, headers=headers)
    data = response.json()

    assert data["players"][0]["score"] == 22
    assert data["players"][0]["is_busted"]
    assert data["results"][0]["outcome"] == "bust"


@pytest.mark.asyncio
async def test_invalid_action(client):
    headers = await new_table(client, ("Alice",), "10C", "8H", "10S", "7C")
    await client.post("/api/table/round", headers=headers)

    response = await client.post("/api/table/action", json={"action": "double"}, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_action_out_of_turn(client):
    headers = await new_table(client)

    response = await client.post("/api/table/action", json={"action": "hit"}, headers=headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_round_while_in_progress(client):
    headers = await new_table(client, ("Alice",), "10C", "8H", "10S", "7C")
    await client.post("/api/table/round", headers=headers)

    response = await client.post("/api/table/round", headers=headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_leaderboard(client):
    headers = await new_table(client, ("Alice", "Bob"), "10C", "6H", "10H", "AS", "10S", "7C")
    await client.post("/api/table/round", headers=headers)
    await client.post("/api/table/action", json={"action": "stand"}, headers=headers)

    response = await client.get("/api/table/leaderboard", headers=headers)
    assert response.status_code == 200
    data = response.json()

    assert data["standings"] == [
        {"name": "Bob", "points": 3, "wins": 1},
        {"name": "Alice", "points": 0, "wins": 0},
    ]
    assert data["leader"] == "Bob"


@pytest.mark.asyncio
async def test_end_game(client):
    headers = await new_table(client, ("Alice", "Bob"), "10C", "9H", "10H", "6S", "10S", "7C")
    await client.post("/api/table/round", headers=headers)
    await client.post("/api/table/action", json={"action": "stand"}, headers=headers)
    await client.post("/api/table/action", json={"action": "stand"}, headers=headers)

    response = await client.post("/api/table/end", headers=headers)
    assert response.status_code == 200
    data = response.json()

    assert data["champion"] == "Alice"
    assert data["rounds"] == 1

    state = (await client.get("/api/table/state", headers=headers)).json()
    assert state["state"] == "GAME_OVER"
    assert not state["can_start_round"]


@pytest.mark.asyncio
async def test_signed_session_without_table(client):
    session_id = await create_session()

    response = await client.get("/api/table/state", headers={"X-Session-ID": session_id})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_expired_session_evicts_cached_table(client):
    headers = await new_table(client)
    session_id = headers["X-Session-ID"]
    store = get_session_store()
    await store.set(session_id, await store.get(session_id), ttl=-1)

    response = await client.get("/api/table/state", headers=headers)

    assert response.status_code == 404
    assert session_id not in table_routes._games
