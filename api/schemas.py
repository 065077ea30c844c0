"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal


class NewTableRequest(BaseModel):
    """Request to seat players at a new table."""

    players: list[str] = Field(..., min_length=1, description="Player names in seating order")

    @field_validator("players")
    @classmethod
    def strip_names(cls, names: list[str]) -> list[str]:
        return [name.strip() for name in names]


class ActionRequest(BaseModel):
    """Request for the current player's decision."""

    action: Literal["hit", "stand"]


class CardResponse(BaseModel):
    """Card representation. Hidden cards carry no rank or suit."""

    model_config = ConfigDict(from_attributes=True)

    rank: str | None
    suit: str | None
    value: int | None
    hidden: bool = False


class ParticipantResponse(BaseModel):
    """A seat at the table."""

    name: str
    role: Literal["player", "dealer"]
    cards: list[CardResponse]
    score: int | None
    is_soft: bool | None
    is_blackjack: bool | None
    is_busted: bool | None
    wins: int | None
    display: str


class RoundResultResponse(BaseModel):
    """How one player's round ended."""

    name: str
    score: int
    outcome: Literal["bust", "blackjack", "dealer_bust", "win", "push", "lose"]
    points: int


class StandingResponse(BaseModel):
    """One leaderboard row."""

    name: str
    points: int
    wins: int


class TableStateResponse(BaseModel):
    """Current table state."""

    state: str
    round_number: int
    players: list[ParticipantResponse]
    dealer: ParticipantResponse
    current_player: str | None
    can_hit: bool
    can_stand: bool
    can_start_round: bool
    cards_remaining: int
    results: list[RoundResultResponse]


class LeaderboardResponse(BaseModel):
    """Ranked leaderboard."""

    standings: list[StandingResponse]
    leader: str | None


class GameOverResponse(BaseModel):
    """Final standings when the table closes."""

    champion: str | None
    rounds: int
    standings: list[StandingResponse]
