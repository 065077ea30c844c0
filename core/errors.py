"""Engine error types."""


class PreconditionError(RuntimeError):
    """
    Raised when the engine is driven out of contract.

    Drawing from an empty deck, acting outside a player's turn or asking for
    a concealed player hand are caller bugs, not recoverable game conditions.
    """
