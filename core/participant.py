"""Players and the dealer seated at the table."""

from dataclasses import dataclass, field
from enum import Enum

from core.cards import Card
from core.errors import PreconditionError
from core.hand import Hand

DEALER_NAME = "Dealer"
HIDDEN_CARD = "[hidden]"


class Role(Enum):
    """Seat role. Players and the dealer share one type."""

    PLAYER = "player"
    DEALER = "dealer"


@dataclass
class Participant:
    """
    Someone holding a hand at the table.

    The score is recomputed on every card addition. ``wins`` survives
    across rounds and only applies to players.
    """

    name: str
    role: Role = Role.PLAYER
    hand: Hand = field(default_factory=Hand)
    score: int = 0
    wins: int = 0

    @classmethod
    def player(cls, name: str) -> "Participant":
        return cls(name=name, role=Role.PLAYER)

    @classmethod
    def dealer(cls, name: str = DEALER_NAME) -> "Participant":
        return cls(name=name, role=Role.DEALER)

    @property
    def is_dealer(self) -> bool:
        return self.role is Role.DEALER

    @property
    def cards(self) -> list[Card]:
        return list(self.hand.cards)

    @property
    def is_busted(self) -> bool:
        return self.hand.is_busted

    @property
    def has_blackjack(self) -> bool:
        return self.hand.is_blackjack

    @property
    def turn_over(self) -> bool:
        """A natural or a bust ends a player's turn without a decision."""
        return self.has_blackjack or self.is_busted

    def add_card(self, card: Card) -> None:
        self.hand.add_card(card)
        self.score = self.hand.value

    def clear_hand(self) -> None:
        self.hand.clear()
        self.score = 0

    def record_win(self) -> None:
        if self.is_dealer:
            raise PreconditionError("The dealer has no win counter")
        self.wins += 1

    def show(self, reveal: bool = True) -> str:
        """
        Render the hand.

        Revealed: every card plus the total. Concealed (dealer only): the
        first card is hidden and no total is shown.
        """
        if reveal:
            total = f"soft {self.score}" if self.hand.is_soft else str(self.score)
            cards = f"{self.hand} " if len(self.hand) else ""
            return f"{self.name}: {cards}[{total}]"

        if not self.is_dealer:
            raise PreconditionError("Only the dealer's hand can be concealed")

        visible = [str(card) for card in self.hand.cards[1:]]
        return " ".join([f"{self.name}:", HIDDEN_CARD, *visible])

    def __str__(self) -> str:
        if self.is_dealer:
            return f"{self.name} (score: {self.score})"
        return f"{self.name} (score: {self.score}, wins: {self.wins})"
