"""Game state enumeration."""

from enum import Enum, auto


class GameState(Enum):
    """
    Round state machine states.

    Flow: IDLE → RESET → DEALING → PLAYER_TURNS → DEALER_TURN → SETTLEMENT → ROUND_COMPLETE
    """

    # Table seated, no round played yet
    IDLE = auto()

    # Hands being cleared
    RESET = auto()

    # Initial two cards each
    DEALING = auto()

    # Players decide in seating order
    PLAYER_TURNS = auto()

    # Dealer draws to the stand threshold
    DEALER_TURN = auto()

    # Outcomes and points
    SETTLEMENT = auto()

    # Round finished, ready for next
    ROUND_COMPLETE = auto()

    # Players left the table
    GAME_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# States in which a new round may begin
ROUND_READY_STATES = (GameState.IDLE, GameState.ROUND_COMPLETE)

