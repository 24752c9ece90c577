# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Filter types used to select a subset of stored rules.

Two shapes exist and together form the closed :data:`PolicyFilter`
variant:

* :class:`Filter` — one allowed-value set per position (``ptype`` and
  ``v0``..``v5``).  Values within a position are OR'd, positions are AND'd.
  An empty position is unconstrained.
* :class:`FieldRangePredicate` — the ``field_index`` / ``*field_values``
  arguments the policy engine passes to filtered removal and update.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from redis_policy_adapter.record import FIELD_COUNT


def _as_tuple(values: Iterable[str] | None) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True)
class Filter:
    """Positional allowed-value filter.

    Example:
        Filter(ptype=["p"], v0=["alice", "bob"])  # p-rules for alice or bob
    """

    ptype: tuple[str, ...] = field(default=())
    v0: tuple[str, ...] = field(default=())
    v1: tuple[str, ...] = field(default=())
    v2: tuple[str, ...] = field(default=())
    v3: tuple[str, ...] = field(default=())
    v4: tuple[str, ...] = field(default=())
    v5: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        # Accept lists (or a bare string) for convenience; store tuples.
        for name in ("ptype", "v0", "v1", "v2", "v3", "v4", "v5"):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))

    def positions(self) -> tuple[tuple[str, ...], ...]:
        """Return the seven allowed-value sets in record key order."""
        return (self.ptype, self.v0, self.v1, self.v2, self.v3, self.v4, self.v5)

    def is_unconstrained(self) -> bool:
        return not any(self.positions())


@dataclass(frozen=True)
class FieldRangePredicate:
    """Contiguous literal match over rule fields starting at ``field_index``.

    Positions before ``field_index`` and after the last value are
    unconstrained, as is any position whose supplied value is ``""``.
    """

    field_index: int
    values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _as_tuple(self.values))
        if not 0 <= self.field_index < FIELD_COUNT:
            raise ValueError(
                f"field_index must be between 0 and {FIELD_COUNT - 1}, got {self.field_index}"
            )
        if self.field_index + len(self.values) > FIELD_COUNT:
            raise ValueError(
                f"{len(self.values)} values starting at field {self.field_index} "
                f"run past V{FIELD_COUNT - 1}"
            )

    def field_values(self) -> tuple[str | None, ...]:
        """Return the literal for each of V0..V5, ``None`` where unconstrained."""
        result: list[str | None] = [None] * FIELD_COUNT
        for offset, value in enumerate(self.values):
            if value != "":
                result[self.field_index + offset] = value
        return tuple(result)

    def to_filter(self, ptype: str | None = None) -> Filter:
        """Express this predicate as an equivalent :class:`Filter`."""
        v0, v1, v2, v3, v4, v5 = (() if v is None else (v,) for v in self.field_values())
        return Filter(
            ptype=() if ptype is None else (ptype,),
            v0=v0,
            v1=v1,
            v2=v2,
            v3=v3,
            v4=v4,
            v5=v5,
        )


PolicyFilter = Filter | FieldRangePredicate
"""Closed variant accepted by filtered loads."""
