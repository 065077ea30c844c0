"""Card and Deck classes - immutable card representations."""

from dataclasses import dataclass
from enum import Enum
from random import Random
from typing import Iterator

from core.errors import PreconditionError


class Suit(Enum):
    """Card suits, in deck order."""

    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"
    SPADES = "♠"

    def __str__(self) -> str:
        return self.value


class Rank(Enum):
    """Card ranks, valued by their blackjack points."""

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"

    def __str__(self) -> str:
        return self.value

    @property
    def points(self) -> int:
        """Return the base point value (Ace = 11, face cards = 10)."""
        if self is Rank.ACE:
            return 11
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)


_RANK_ALIASES = {"T": Rank.TEN}

_SUIT_LETTERS = {
    "H": Suit.HEARTS,
    "D": Suit.DIAMONDS,
    "C": Suit.CLUBS,
    "S": Suit.SPADES,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the base point value."""
        return self.rank.points

    @property
    def is_ace(self) -> bool:
        return self.rank is Rank.ACE

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '10♥', 'AS', 'Kh'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str, suit_str = s[:-1], s[-1]

        try:
            rank = _RANK_ALIASES.get(rank_str) or Rank(rank_str)
        except ValueError:
            raise ValueError(f"Invalid rank: {rank_str}") from None

        suit = _SUIT_LETTERS.get(suit_str)
        if suit is None:
            try:
                suit = Suit(suit_str)
            except ValueError:
                raise ValueError(f"Invalid suit: {suit_str}") from None

        return cls(rank, suit)


def full_deck() -> list[Card]:
    """Return the 52 cards in canonical (suit-major) order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


class Deck:
    """
    A single 52-card supply.

    Cards are drawn from the front. Replenishment is the caller's job: once
    a deck runs low, the game replaces it with a fresh shuffled one.
    """

    SIZE = 52

    def __init__(self, rng: Random | None = None) -> None:
        self._rng = rng or Random()
        self._cards: list[Card] = full_deck()

    def shuffle(self) -> None:
        """Shuffle the remaining cards into a uniformly random order."""
        self._rng.shuffle(self._cards)

    def draw(self) -> Card:
        """Remove and return the front card."""
        if not self._cards:
            raise PreconditionError("Cannot draw from empty deck")
        return self._cards.pop(0)

    @property
    def remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def cards(self) -> list[Card]:
        """Return a copy of the remaining cards, front first."""
        return list(self._cards)

    @classmethod
    def from_cards(cls, cards: list[Card], rng: Random | None = None) -> "Deck":
        """
        Build a deck holding exactly ``cards`` in the given order.

        Used to restore a persisted table and to stack decks in tests.
        """
        if len(cards) > cls.SIZE:
            raise ValueError(f"A deck holds at most {cls.SIZE} cards")
        if len(set(cards)) != len(cards):
            raise ValueError("A deck cannot hold duplicate cards")
        deck = cls(rng=rng)
        deck._cards = list(cards)
        return deck

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
