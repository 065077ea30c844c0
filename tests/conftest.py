"""Pytest fixtures for blackjack table tests."""

import pytest
from random import Random

from core.cards import Deck
from core.game import BlackjackGame
from core.leaderboard import Leaderboard
from helpers import seat, stacked_deck


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    d = Deck(rng=rng)
    d.shuffle()
    return d


@pytest.fixture
def blackjack_player():
    """A natural blackjack (10-A)."""
    return seat("Alice", "10H", "AS")


@pytest.fixture
def bust_player():
    """A busted hand (9-8-5)."""
    return seat("Alice", "9C", "8D", "5H")


@pytest.fixture
def dealer_17():
    """Dealer standing on hard 17."""
    return seat("Dealer", "10S", "7C", dealer=True)


@pytest.fixture
def leaderboard():
    return Leaderboard(["Alice", "Bob"])


@pytest.fixture
def game(rng):
    """A new two-player table."""
    return BlackjackGame(["Alice", "Bob"], rng=rng)


@pytest.fixture
def make_game(rng):
    """Factory for a table dealt from a stacked deck."""

    def _make(*codes: str, players=("Alice",), **kwargs) -> BlackjackGame:
        return BlackjackGame(list(players), rng=rng, deck=stacked_deck(*codes), **kwargs)

    return _make
