"""Core blackjack table engine - 100% UI-agnostic."""

from core.cards import Card, Deck, Rank, Suit
from core.errors import PreconditionError
from core.hand import Hand, hand_value, has_blackjack, is_busted
from core.leaderboard import Leaderboard
from core.participant import Participant, Role
from core.settlement import Outcome, RoundResult, determine_outcome, settle

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "PreconditionError",
    "Hand",
    "hand_value",
    "has_blackjack",
    "is_busted",
    "Leaderboard",
    "Participant",
    "Role",
    "Outcome",
    "RoundResult",
    "determine_outcome",
    "settle",
]
