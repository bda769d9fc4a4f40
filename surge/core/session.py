"""
Interactive session state: the browsable result set and the current selection.

A result is either browsable or the current selection, never both: selecting
moves it out of the result set. Nothing here performs I/O.
"""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from surge.exceptions import (
    EmptyResultSetError,
    InvalidSelectionError,
    NoSelectionError,
)
from surge.models.track import SearchResult

log = logging.getLogger(__name__)


class ResultSet:
    """Ordered search results plus the cursor used for round-robin browsing."""

    def __init__(self, results: Iterable[SearchResult] = ()):
        self._items: list[SearchResult] = list(results)
        self.cursor = 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[SearchResult]:
        return iter(self._items)

    def __getitem__(self, index: int) -> SearchResult:
        return self._items[index]

    @property
    def items(self) -> tuple[SearchResult, ...]:
        return tuple(self._items)

    def replace(self, results: Iterable[SearchResult]) -> None:
        """Discards the current contents in favour of `results`."""
        self._items = list(results)
        self.cursor = 0

    def clear(self) -> None:
        self._items = []
        self.cursor = 0

    def take(self, index: int) -> SearchResult:
        """Removes and returns the result at `index`; later results shift down."""
        if not 0 <= index < len(self._items):
            raise InvalidSelectionError(
                f"No result at index {index} "
                f"({len(self._items)} result(s) available)."
            )
        return self._items.pop(index)

    def advance(self) -> tuple[int, SearchResult]:
        """
        Returns the entry under the cursor with its index, then moves the cursor on.

        The cursor wraps to the start once it runs past the end.
        """
        if not self._items:
            raise EmptyResultSetError("Nothing to cycle through. Try 'search' first.")
        if self.cursor >= len(self._items):
            self.cursor = 0
        index = self.cursor
        self.cursor += 1
        return index, self._items[index]


def parse_index(raw: str) -> int:
    """Parses a user-supplied result index (a plain non-negative integer)."""
    if not (raw.isascii() and raw.isdigit()):
        raise InvalidSelectionError(f"'{raw}' is not a valid result index.")
    return int(raw)


@dataclass(frozen=True)
class SessionSnapshot:
    results: tuple[SearchResult, ...]
    cursor: int
    selection: SearchResult | None


class Session:
    """The mutable state of one interactive session."""

    def __init__(self):
        self.results = ResultSet()
        self.selection: SearchResult | None = None

    def require_selection(self) -> SearchResult:
        if self.selection is None:
            raise NoSelectionError(
                "No current selection. Pick a result with 'play' or 'queue' first."
            )
        return self.selection

    def select(self, raw_index: str) -> SearchResult:
        """Moves the result at `raw_index` out of the result set into the selection."""
        index = parse_index(raw_index)
        self.selection = self.results.take(index)
        log.debug(f"Selected '{self.selection.id}' from index {index}")
        return self.selection

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(self.results.items, self.results.cursor, self.selection)

    def restore(self, snapshot: SessionSnapshot) -> None:
        self.results.replace(snapshot.results)
        self.results.cursor = snapshot.cursor
        self.selection = snapshot.selection

    @contextmanager
    def atomic(self):
        """Rolls the session back if the block raises or is cancelled."""
        snapshot = self.snapshot()
        try:
            yield self
        except BaseException:
            log.debug("Rolling session state back after a failed command")
            self.restore(snapshot)
            raise
