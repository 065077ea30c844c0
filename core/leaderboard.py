"""Cross-round point table."""

from typing import Iterable, Iterator


class Leaderboard:
    """
    Player name to accumulated points.

    Entries start at zero and only ever grow. Iteration and tie-breaks
    follow registration order.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._points: dict[str, int] = {}
        for name in names:
            self.register(name)

    def register(self, name: str) -> None:
        if name in self._points:
            raise ValueError(f"Player already registered: {name}")
        self._points[name] = 0

    def award(self, name: str, points: int) -> int:
        """Add points to a player's total and return the new total."""
        if points < 0:
            raise ValueError("Leaderboard points can only be added")
        if name not in self._points:
            raise KeyError(name)
        self._points[name] += points
        return self._points[name]

    def points(self, name: str) -> int:
        return self._points[name]

    def ranked(self) -> list[tuple[str, int]]:
        """Return (name, points) pairs, highest first; ties keep registration order."""
        return sorted(self._points.items(), key=lambda item: item[1], reverse=True)

    def champion(self) -> str | None:
        """Return the leader, preferring the first registered on ties."""
        champion = None
        best = None
        for name, points in self._points.items():
            if best is None or points > best:
                champion, best = name, points
        return champion

    def as_dict(self) -> dict[str, int]:
        return dict(self._points)

    def __contains__(self, name: object) -> bool:
        return name in self._points

    def __iter__(self) -> Iterator[str]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)
