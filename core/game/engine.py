"""Blackjack table engine with state machine."""

import logging
from enum import Enum
from random import Random
from typing import Callable, Iterable

from transitions import Machine

from core.cards import Card, Deck
from core.errors import PreconditionError
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.state import ROUND_READY_STATES, GameState
from core.leaderboard import Leaderboard
from core.participant import HIDDEN_CARD, Participant
from core.settlement import Outcome, RoundResult, settle

logger = logging.getLogger(__name__)


class Decision(Enum):
    """A player's choice on their turn."""

    HIT = "hit"
    STAND = "stand"


# Input collaborator: asked for a decision whenever a player needs one
DecisionProvider = Callable[[Participant], Decision]

# Called after every dealer draw, e.g. to pace an animation
DealerDrawHook = Callable[[Participant, Card], None]


class BlackjackGame:
    """
    One table: a dealer, up to four players, a deck and a leaderboard.

    This is the core game logic, completely UI-agnostic. Rounds advance
    through a state machine; callers feed player decisions in and read
    events, hands and results out. The engine never waits on input.
    """

    MAX_PLAYERS = 4
    LOW_WATER_MARK = 20
    DEALER_STANDS_ON = 17

    # State machine states
    STATES = [s.name.lower() for s in GameState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "reset_table", "source": ["idle", "round_complete"], "dest": "reset"},
        {"trigger": "deal", "source": "reset", "dest": "dealing"},
        {"trigger": "begin_player_turns", "source": "dealing", "dest": "player_turns"},
        {"trigger": "begin_dealer_turn", "source": "player_turns", "dest": "dealer_turn"},
        {"trigger": "settle_round", "source": "dealer_turn", "dest": "settlement"},
        {"trigger": "complete_round", "source": "settlement", "dest": "round_complete"},
        {"trigger": "leave_table", "source": ["idle", "round_complete"], "dest": "game_over"},
    ]

    def __init__(
        self,
        player_names: Iterable[str],
        rng: Random | None = None,
        max_players: int = MAX_PLAYERS,
        low_water_mark: int = LOW_WATER_MARK,
        dealer_stands_on: int = DEALER_STANDS_ON,
        on_dealer_draw: DealerDrawHook | None = None,
        deck: Deck | None = None,
        history_limit: int = 500,
    ) -> None:
        """
        Seat the players and shuffle the deck.

        Args:
            player_names: Seating order; 1 to ``max_players`` unique names
            rng: Random number generator for reproducible games
            max_players: Seats at the table
            low_water_mark: Replace the deck before a round below this many cards
            dealer_stands_on: Dealer draws while under this total
            on_dealer_draw: Pacing hook run after each dealer draw
            deck: Use this deck as-is instead of a freshly shuffled one
            history_limit: Number of events kept in the event history
        """
        names = self._validate_names(player_names, max_players)

        self._rng = rng or Random()
        self.low_water_mark = low_water_mark
        self.dealer_stands_on = dealer_stands_on
        self.on_dealer_draw = on_dealer_draw

        if deck is None:
            deck = Deck(rng=self._rng)
            deck.shuffle()
        self.deck = deck

        self.players = [Participant.player(name) for name in names]
        self.dealer = Participant.dealer()
        self.leaderboard = Leaderboard(names)
        self.events = EventEmitter(history_limit=history_limit)

        self.round_number = 0
        self.current_player_index = 0
        self.last_results: list[RoundResult] = []

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="idle",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

        self.events.emit_new(EventType.GAME_STARTED, players=names)

    @staticmethod
    def _validate_names(player_names: Iterable[str], max_players: int) -> list[str]:
        names = [name.strip() for name in player_names]
        if not 1 <= len(names) <= max_players:
            raise ValueError(f"A table seats 1 to {max_players} players")
        if not all(names):
            raise ValueError("Player names cannot be empty")
        if len(set(names)) != len(names):
            raise ValueError("Player names must be unique")
        return names

    @property
    def state(self) -> GameState:
        """Get current game state as enum."""
        return GameState[self._machine_state.upper()]  # type: ignore

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    @property
    def participants(self) -> list[Participant]:
        """Players in seating order, then the dealer."""
        return [*self.players, self.dealer]

    def player(self, name: str) -> Participant:
        for player in self.players:
            if player.name == name:
                return player
        raise KeyError(name)

    @property
    def current_player(self) -> Participant | None:
        """The player whose decision is pending, if any."""
        if self.state != GameState.PLAYER_TURNS:
            return None
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    @property
    def needs_decision(self) -> bool:
        return self.current_player is not None

    @property
    def dealer_concealed(self) -> bool:
        """The dealer's first card stays face down until the dealer's turn."""
        return self.state in (GameState.DEALING, GameState.PLAYER_TURNS)

    def dealer_view(self) -> str:
        return self.dealer.show(reveal=not self.dealer_concealed)

    # Round flow

    def start_round(self) -> None:
        """
        Reset every hand, deal two cards each and open the player turns.

        Players holding a natural are passed over. If nobody needs a
        decision the dealer plays and the round settles immediately.
        """
        if self.state not in ROUND_READY_STATES:
            raise PreconditionError(f"Cannot start a round in state {self.state}")

        self._replenish_if_low()

        self.round_number += 1
        self.last_results = []
        self.reset_table()
        for participant in self.participants:
            participant.clear_hand()

        logger.info(
            "Round %d: %d players, %d cards in deck",
            self.round_number,
            len(self.players),
            self.deck.remaining,
        )
        self.events.emit_new(EventType.ROUND_STARTED, round=self.round_number)

        self.deal()
        for player in self.players:
            self._deal_card(player)
            self._deal_card(player)
        self._deal_card(self.dealer)
        self._deal_card(self.dealer)

        self.begin_player_turns()
        self.current_player_index = -1
        self._advance_to_next_player()

    def _replenish_if_low(self) -> None:
        """Swap in a fresh shuffled deck when too few cards are left."""
        needed = max(self.low_water_mark, 2 * len(self.participants))
        if self.deck.remaining >= needed:
            return

        previous = self.deck.remaining
        self.deck = Deck(rng=self._rng)
        self.deck.shuffle()
        logger.info("Deck replenished (%d cards were left)", previous)
        self.events.emit_new(
            EventType.DECK_REPLENISHED,
            previous_remaining=previous,
            remaining=self.deck.remaining,
        )

    def _deal_card(self, participant: Participant) -> Card:
        """Draw the front card of the deck into a participant's hand."""
        card = self.deck.draw()
        participant.add_card(card)

        hidden = (
            participant.is_dealer
            and self.dealer_concealed
            and len(participant.hand) == 1
        )
        concealed_score = participant.is_dealer and self.dealer_concealed
        self.events.emit_new(
            EventType.CARD_DEALT,
            participant=participant.name,
            role=participant.role.value,
            card=HIDDEN_CARD if hidden else str(card),
            score=None if concealed_score else participant.score,
        )
        return card

    def _require_turn(self) -> Participant:
        player = self.current_player
        if player is None:
            raise PreconditionError(f"No player decision pending in state {self.state}")
        return player

    def hit(self) -> Card:
        """Current player takes another card."""
        player = self._require_turn()

        card = self._deal_card(player)
        self.events.emit_new(
            EventType.PLAYER_HIT,
            player=player.name,
            card=str(card),
            score=player.score,
        )

        if player.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, player=player.name, score=player.score)
            self._advance_to_next_player()

        return card

    def stand(self) -> None:
        """Current player keeps their hand."""
        player = self._require_turn()
        self.events.emit_new(EventType.PLAYER_STAND, player=player.name, score=player.score)
        self._advance_to_next_player()

    def decide(self, decision: Decision | str) -> None:
        """Apply the current player's decision."""
        decision = Decision(decision)
        if decision is Decision.HIT:
            self.hit()
        else:
            self.stand()

    def _advance_to_next_player(self) -> None:
        """Move to the next player needing a decision, or to the dealer."""
        while True:
            self.current_player_index += 1
            if self.current_player_index >= len(self.players):
                self._play_dealer()
                return

            player = self.players[self.current_player_index]
            if player.has_blackjack:
                self.events.emit_new(EventType.PLAYER_BLACKJACK, player=player.name)
                continue
            if player.is_busted:
                self.events.emit_new(EventType.PLAYER_BUSTS, player=player.name, score=player.score)
                continue

            self.events.emit_new(EventType.PLAYER_TURN, player=player.name, score=player.score)
            return

    def _play_dealer(self) -> None:
        """Dealer reveals and draws while under the stand threshold."""
        self.begin_dealer_turn()

        self.events.emit_new(
            EventType.DEALER_REVEALS,
            cards=[str(card) for card in self.dealer.cards],
            score=self.dealer.score,
        )

        while self.dealer.score < self.dealer_stands_on and not self.dealer.is_busted:
            card = self._deal_card(self.dealer)
            self.events.emit_new(EventType.DEALER_HITS, card=str(card), score=self.dealer.score)
            if self.on_dealer_draw is not None:
                self.on_dealer_draw(self.dealer, card)

        if self.dealer.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, score=self.dealer.score)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, score=self.dealer.score)

        self._settle()

    def _settle(self) -> None:
        """Score every player against the dealer and close the round."""
        self.settle_round()

        results = settle(self.players, self.dealer, self.leaderboard)
        for result in results:
            if result.is_win:
                event_type = EventType.PLAYER_WINS
            elif result.outcome is Outcome.PUSH:
                event_type = EventType.PUSH
            else:
                event_type = EventType.PLAYER_LOSES
            self.events.emit_new(
                event_type,
                player=result.name,
                outcome=result.outcome.label,
                score=result.score,
                points=result.points,
            )

        self.last_results = results
        self.events.emit_new(
            EventType.LEADERBOARD_UPDATED,
            ranking=[[name, points] for name, points in self.leaderboard.ranked()],
        )

        self.complete_round()
        logger.info(
            "Round %d settled: %s",
            self.round_number,
            ", ".join(f"{r.name}={r.outcome.label}" for r in results),
        )
        self.events.emit_new(
            EventType.ROUND_ENDED,
            round=self.round_number,
            dealer_score=self.dealer.score,
            results={r.name: r.outcome.label for r in results},
        )

    def play_round(self, decide: DecisionProvider) -> list[RoundResult]:
        """
        Play a whole round, asking ``decide`` for every pending decision.

        Returns:
            The settled results in seating order
        """
        self.start_round()
        while self.current_player is not None:
            self.decide(decide(self.current_player))
        return list(self.last_results)

    def end_game(self) -> str | None:
        """
        Close the table.

        Returns:
            The champion's name
        """
        if self.state not in ROUND_READY_STATES:
            raise PreconditionError(f"Cannot end the game in state {self.state}")

        self.leave_table()
        champion = self.leaderboard.champion()
        logger.info("Game over after %d rounds, champion: %s", self.round_number, champion)
        self.events.emit_new(
            EventType.GAME_ENDED,
            champion=champion,
            rounds=self.round_number,
            standings=self.standings(),
        )
        return champion

    def standings(self) -> list[dict[str, int | str]]:
        """Leaderboard ranking with each player's win counter."""
        return [
            {"name": name, "points": points, "wins": self.player(name).wins}
            for name, points in self.leaderboard.ranked()
        ]

    @property
    def can_hit(self) -> bool:
        return self.needs_decision

    @property
    def can_stand(self) -> bool:
        return self.needs_decision

    @property
    def can_start_round(self) -> bool:
        return self.state in ROUND_READY_STATES
