"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from core.cards import Card

BLACKJACK = 21


def hand_value(cards: Iterable[Card]) -> int:
    """
    Calculate the point total of a sequence of cards.

    Non-Ace cards are summed first. Each Ace then adds 11 if the running
    total stays at or below 21, otherwise 1. With this greedy rule at most
    one Ace is ever counted as 11.
    """
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        else:
            total += card.value

    for _ in range(aces):
        total += 11 if total + 11 <= BLACKJACK else 1

    return total


def is_busted(cards: Iterable[Card]) -> bool:
    """Check if the cards total more than 21."""
    return hand_value(cards) > BLACKJACK


def has_blackjack(cards: Iterable[Card]) -> bool:
    """Check for a natural: exactly two cards totalling 21."""
    cards = list(cards)
    return len(cards) == 2 and hand_value(cards) == BLACKJACK


def is_soft(cards: Iterable[Card]) -> bool:
    """Check if an Ace is currently counted as 11 in a live hand."""
    cards = list(cards)
    if not any(card.is_ace for card in cards):
        return False
    value = hand_value(cards)
    if value > BLACKJACK:
        return False
    hard_total = sum(1 if card.is_ace else card.value for card in cards)
    return value != hard_total


@dataclass
class Hand:
    """An ordered hand of cards. Order is kept for display only."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def clear(self) -> None:
        """Remove all cards from the hand."""
        self.cards.clear()

    @property
    def value(self) -> int:
        return hand_value(self.cards)

    @property
    def is_soft(self) -> bool:
        return is_soft(self.cards)

    @property
    def is_blackjack(self) -> bool:
        return has_blackjack(self.cards)

    @property
    def is_busted(self) -> bool:
        return is_busted(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        return " ".join(str(card) for card in self.cards)

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"
