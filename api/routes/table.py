"""Table API endpoints."""

import time
from fastapi import APIRouter, HTTPException, Header
from typing import Annotated, Any

from api.schemas import (
    ActionRequest,
    CardResponse,
    GameOverResponse,
    LeaderboardResponse,
    NewTableRequest,
    ParticipantResponse,
    RoundResultResponse,
    StandingResponse,
    TableStateResponse,
)
from api.session import create_session, extract_session_id, get_session_store
from config import config
from core.cards import Card, Deck, Rank, Suit
from core.game import BlackjackGame, Decision
from core.participant import Participant, Role
from core.settlement import Outcome, RoundResult
from logging_utils import get_logger

logger = get_logger(__name__)

router = APIRouter()

# In-memory table cache (for performance, backed by session store)
_games: dict[str, BlackjackGame] = {}

# Session data keys
SESSION_KEY_GAME = "game"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


def _serialize_card(card: Card) -> dict[str, str]:
    """Serialize a card to a dict."""
    return {"rank": card.rank.value, "suit": card.suit.value}


def _deserialize_card(data: dict[str, str]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]))


def _serialize_participant(participant: Participant) -> dict[str, Any]:
    return {
        "name": participant.name,
        "role": participant.role.value,
        "cards": [_serialize_card(c) for c in participant.cards],
        "wins": participant.wins,
    }


def _deserialize_participant(data: dict[str, Any]) -> Participant:
    """Rebuild a participant; the score is recomputed from the cards."""
    participant = Participant(name=data["name"], role=Role(data["role"]))
    for card in data["cards"]:
        participant.add_card(_deserialize_card(card))
    participant.wins = data["wins"]
    return participant


def _serialize_result(result: RoundResult) -> dict[str, Any]:
    return {
        "name": result.name,
        "score": result.score,
        "outcome": result.outcome.name,
        "points": result.points,
    }


def _deserialize_result(data: dict[str, Any]) -> RoundResult:
    return RoundResult(
        name=data["name"],
        score=data["score"],
        outcome=Outcome[data["outcome"]],
        points=data["points"],
    )


def _serialize_game(game: BlackjackGame) -> dict[str, Any]:
    """Serialize table state for session storage."""
    return {
        "state": game._machine_state,
        "round_number": game.round_number,
        "current_player_index": game.current_player_index,
        "deck": [_serialize_card(c) for c in game.deck.cards],
        "players": [_serialize_participant(p) for p in game.players],
        "dealer": _serialize_participant(game.dealer),
        "leaderboard": [[name, points] for name, points in game.leaderboard.as_dict().items()],
        "last_results": [_serialize_result(r) for r in game.last_results],
        "rules": {
            "low_water_mark": game.low_water_mark,
            "dealer_stands_on": game.dealer_stands_on,
        },
    }


def _deserialize_game(data: dict[str, Any]) -> BlackjackGame:
    """Restore a table from session data."""
    names = [p["name"] for p in data["players"]]
    rules = data["rules"]

    game = BlackjackGame(
        names,
        max_players=len(names),
        low_water_mark=rules["low_water_mark"],
        dealer_stands_on=rules["dealer_stands_on"],
        deck=Deck.from_cards([_deserialize_card(c) for c in data["deck"]]),
        history_limit=config.game.event_history_limit,
    )

    # Restore state machine state
    game._machine_state = data["state"]
    game.round_number = data["round_number"]
    game.current_player_index = data["current_player_index"]

    game.players = [_deserialize_participant(p) for p in data["players"]]
    game.dealer = _deserialize_participant(data["dealer"])
    for name, points in data["leaderboard"]:
        game.leaderboard.award(name, points)
    game.last_results = [_deserialize_result(r) for r in data["last_results"]]

    return game


def _new_game(players: list[str]) -> BlackjackGame:
    """Seat a new table with the configured rules."""
    return BlackjackGame(
        players,
        max_players=config.game.max_players,
        low_water_mark=config.game.low_water_mark,
        dealer_stands_on=config.game.dealer_stands_on,
        history_limit=config.game.event_history_limit,
    )


async def _load_game(session_id: str) -> BlackjackGame | None:
    """Load a table from the session store."""
    session_data = await get_session_store().get(session_id)
    if session_data and SESSION_KEY_GAME in session_data:
        return _deserialize_game(session_data[SESSION_KEY_GAME])
    return None


async def evict_expired() -> None:
    """Forget cached tables whose sessions have expired."""
    for session_id in await get_session_store().cleanup_expired():
        if _games.pop(session_id, None) is not None:
            logger.info("Table evicted after session expiry")


async def save_game(session_id: str, game: BlackjackGame) -> None:
    """Save a table to the session store."""
    await evict_expired()
    store = get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_GAME] = _serialize_game(game)
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    if SESSION_KEY_CREATED_AT not in session_data:
        session_data[SESSION_KEY_CREATED_AT] = int(time.time())
    await store.set(session_id, session_data)


def _check_session(session_id: str) -> None:
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=401, detail="Invalid session")


async def get_game(session_id: str) -> BlackjackGame:
    """Get the table for a session."""
    _check_session(session_id)
    await evict_expired()

    # Check memory cache first
    if session_id in _games:
        return _games[session_id]

    game = await _load_game(session_id)
    if game is None:
        raise HTTPException(status_code=404, detail="No table for this session")

    _games[session_id] = game
    return game


def _card_response(card: Card) -> CardResponse:
    return CardResponse(rank=str(card.rank), suit=str(card.suit), value=card.value)


def _participant_response(participant: Participant, conceal: bool = False) -> ParticipantResponse:
    """Convert a participant to a response, optionally face down."""
    if conceal:
        cards = [CardResponse(rank=None, suit=None, value=None, hidden=True)]
        cards += [_card_response(c) for c in participant.cards[1:]]
        return ParticipantResponse(
            name=participant.name,
            role=participant.role.value,
            cards=cards[: len(participant.cards)],
            score=None,
            is_soft=None,
            is_blackjack=None,
            is_busted=None,
            wins=None,
            display=participant.show(reveal=False),
        )

    return ParticipantResponse(
        name=participant.name,
        role=participant.role.value,
        cards=[_card_response(c) for c in participant.cards],
        score=participant.score,
        is_soft=participant.hand.is_soft,
        is_blackjack=participant.has_blackjack,
        is_busted=participant.is_busted,
        wins=None if participant.is_dealer else participant.wins,
        display=participant.show(),
    )


def _result_response(result: RoundResult) -> RoundResultResponse:
    return RoundResultResponse(
        name=result.name,
        score=result.score,
        outcome=result.outcome.label,
        points=result.points,
    )


def table_state_response(game: BlackjackGame) -> TableStateResponse:
    """Convert table state to a response; the dealer stays concealed during turns."""
    current = game.current_player
    return TableStateResponse(
        state=game.state.name,
        round_number=game.round_number,
        players=[_participant_response(p) for p in game.players],
        dealer=_participant_response(game.dealer, conceal=game.dealer_concealed),
        current_player=current.name if current else None,
        can_hit=game.can_hit,
        can_stand=game.can_stand,
        can_start_round=game.can_start_round,
        cards_remaining=game.deck.remaining,
        results=[_result_response(r) for r in game.last_results],
    )


def standings_response(game: BlackjackGame) -> list[StandingResponse]:
    return [StandingResponse(**row) for row in game.standings()]


@router.post("/new")
async def new_table(
    request: NewTableRequest,
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> dict[str, str]:
    """Seat players at a new table."""
    try:
        game = _new_game(request.players)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if session_id is None:
        session_id = await create_session()
    else:
        _check_session(session_id)

    _games[session_id] = game
    await save_game(session_id, game)
    logger.info("New table with %d players", len(game.players))

    return {"session_id": session_id}


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Get current table state."""
    game = await get_game(session_id)
    return table_state_response(game)


@router.post("/round")
async def start_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Deal a new round."""
    game = await get_game(session_id)
    game.start_round()
    await save_game(session_id, game)
    return table_state_response(game)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Apply the current player's decision."""
    game = await get_game(session_id)
    game.decide(Decision(request.action))
    await save_game(session_id, game)
    return table_state_response(game)


@router.get("/leaderboard")
async def get_leaderboard(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> LeaderboardResponse:
    """Ranked leaderboard with win counters."""
    game = await get_game(session_id)
    return LeaderboardResponse(
        standings=standings_response(game),
        leader=game.leaderboard.champion(),
    )


@router.post("/end")
async def end_game(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameOverResponse:
    """Close the table and name the champion."""
    game = await get_game(session_id)
    champion = game.end_game()
    await save_game(session_id, game)
    return GameOverResponse(
        champion=champion,
        rounds=game.round_number,
        standings=standings_response(game),
    )
