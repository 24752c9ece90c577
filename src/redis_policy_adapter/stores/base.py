# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""ListStore protocol — the list primitives and atomic routines the adapter needs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from types import TracebackType


class ListStore(ABC):
    """Abstract base for a store holding policy records as one ordered list.

    Entries are opaque byte strings (the encoded records).  Plain primitives
    act on exact values only.  Predicate-based mutation goes through the
    four atomic routines, each of which the store must evaluate as one
    indivisible unit.  ``pattern`` arguments are in the store's own
    server-side pattern dialect.
    """

    # ── primitives ───────────────────────────────────────────

    @abstractmethod
    def length(self) -> int:
        """Return the number of entries.  A missing list has length 0."""
        ...

    @abstractmethod
    def read_all(self) -> list[bytes]:
        """Return every entry in list order."""
        ...

    @abstractmethod
    def append(self, entry: bytes) -> None:
        """Append one entry at the tail."""
        ...

    @abstractmethod
    def append_many(self, entries: Sequence[bytes]) -> None:
        """Append ``entries`` at the tail, in order."""
        ...

    @abstractmethod
    def remove_first(self, entry: bytes) -> int:
        """Remove the first occurrence of ``entry``; return how many were removed (0 or 1)."""
        ...

    @abstractmethod
    def remove_first_many(self, entries: Sequence[bytes]) -> int:
        """Remove the first occurrence of each of ``entries`` in one transaction."""
        ...

    @abstractmethod
    def replace_all(self, entries: Sequence[bytes]) -> None:
        """Drop the whole list and write ``entries`` in one transaction."""
        ...

    # ── atomic routines ──────────────────────────────────────

    @abstractmethod
    def delete_matching(self, pattern: str) -> int:
        """Remove every entry matching ``pattern``; return the number removed.

        Relative order of surviving entries is preserved.
        """
        ...

    @abstractmethod
    def replace_one(self, old: bytes, new: bytes) -> bool:
        """Replace the first entry equal to ``old`` in place.

        Returns ``False`` (and changes nothing) when no entry matches.
        """
        ...

    @abstractmethod
    def replace_many(self, olds: Sequence[bytes], news: Sequence[bytes]) -> int:
        """Replace every entry equal to ``olds[i]`` with ``news[i]``, in place.

        Raises:
            ArityMismatchError: the two sequences differ in length.  Raised
                before the store is contacted.
        """
        ...

    @abstractmethod
    def replace_filtered(self, pattern: str, news: Sequence[bytes]) -> list[bytes]:
        """Remove entries matching ``pattern``, then append ``news``.

        Returns the removed entries exactly as they were stored.
        """
        ...

    # ── lifecycle ────────────────────────────────────────────

    def close(self) -> None:
        """Release the underlying connection.  Safe to call more than once."""

    def __enter__(self) -> ListStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
