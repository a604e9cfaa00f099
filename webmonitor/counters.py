"""Flat named integer counters."""

from __future__ import annotations

from collections.abc import Iterable, Mapping


class Counters(dict):
    """A mapping of counter name to integer value."""

    def inc(self, key: str, value: int) -> None:
        """Increase ``key`` by ``value``, starting from zero."""
        self[key] = self.get(key, 0) + value

    def dec(self, key: str, value: int) -> None:
        """Decrease ``key`` by ``value``, starting from zero."""
        self[key] = self.get(key, 0) - value

    def init_keys(self, keys: Iterable[str]) -> None:
        """Set each of ``keys`` to zero."""
        for key in keys:
            self[key] = 0

    def copy(self) -> "Counters":
        return Counters(self)

    def diff(self, last: Mapping[str, int]) -> "Counters":
        """Return the change of every counter since ``last``."""
        return Counters({key: value - last.get(key, 0) for key, value in self.items()})

    def sum(self, other: Mapping[str, int]) -> None:
        """Add every counter of ``other`` into this one."""
        for key, value in other.items():
            self[key] = self.get(key, 0) + value