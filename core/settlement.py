"""Round settlement: outcomes and leaderboard points."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from core.leaderboard import Leaderboard
from core.participant import Participant


class Outcome(Enum):
    """Round outcome for one player, with its points and win flag."""

    BUST = ("bust", 0, False)
    BLACKJACK = ("blackjack", 3, True)
    DEALER_BUST = ("dealer_bust", 2, True)
    WIN = ("win", 2, True)
    PUSH = ("push", 1, False)
    LOSE = ("lose", 0, False)

    def __init__(self, label: str, points: int, is_win: bool) -> None:
        self.label = label
        self.points = points
        self.is_win = is_win

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class RoundResult:
    """How one player's round ended."""

    name: str
    score: int
    outcome: Outcome
    points: int

    @property
    def is_win(self) -> bool:
        return self.outcome.is_win


def determine_outcome(player: Participant, dealer: Participant) -> Outcome:
    """
    Compare a final player hand against the final dealer hand.

    Rules apply in order, first match wins. When both hold a natural the
    Blackjack rule does not apply and the equal scores push.
    """
    if player.is_busted:
        return Outcome.BUST
    if player.has_blackjack and not dealer.has_blackjack:
        return Outcome.BLACKJACK
    if dealer.is_busted:
        return Outcome.DEALER_BUST
    if player.score > dealer.score:
        return Outcome.WIN
    if player.score == dealer.score:
        return Outcome.PUSH
    return Outcome.LOSE


def settle(
    players: Iterable[Participant],
    dealer: Participant,
    leaderboard: Leaderboard,
) -> list[RoundResult]:
    """
    Settle every player against the dealer.

    Awards leaderboard points and bumps win counters, once per player.

    Returns:
        One RoundResult per player, in seating order
    """
    results = []
    for player in players:
        outcome = determine_outcome(player, dealer)
        if outcome.points:
            leaderboard.award(player.name, outcome.points)
        if outcome.is_win:
            player.record_win()
        results.append(
            RoundResult(
                name=player.name,
                score=player.score,
                outcome=outcome,
                points=outcome.points,
            )
        )
    return results
