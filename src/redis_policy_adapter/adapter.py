# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Adapter — the policy-engine-facing side of the Redis list store.

Implements pycasbin's adapter contract (plain, batch, filtered and
updatable).  Every call is one synchronous round trip; the adapter keeps
no copy of the policy, the Redis list is the only source of truth.

Example:
    with Adapter(address="127.0.0.1:6379", password="secret") as adapter:
        enforcer = casbin.Enforcer("rbac_model.conf", adapter)
        enforcer.add_policy("alice", "data1", "read")
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from types import TracebackType
from typing import TYPE_CHECKING, Any

from casbin import persist

from redis_policy_adapter.config import AdapterConfig
from redis_policy_adapter.exceptions import CodecError
from redis_policy_adapter.filters import FieldRangePredicate, Filter, PolicyFilter
from redis_policy_adapter.patterns import compile_client_pattern, compile_server_pattern
from redis_policy_adapter.record import PolicyRecord, decode, encode
from redis_policy_adapter.stores.redis_store import RedisListStore

if TYPE_CHECKING:
    import redis
    from casbin.model import Model

    from redis_policy_adapter.stores.base import ListStore

logger = logging.getLogger(__name__)

_SECTIONS = ("p", "g")


def _load_policy_line(record: PolicyRecord, model: Model) -> None:
    ptype = record.ptype
    sec = ptype[:1]
    assertions = model.model.get(sec)
    if not assertions or ptype not in assertions:
        logger.debug("Skipping rule with undeclared ptype %r", ptype)
        return
    model.add_policy(sec, ptype, record.to_rule())


def _entry_text(entry: bytes | str) -> str:
    if isinstance(entry, str):
        return entry
    try:
        return entry.decode()
    except UnicodeDecodeError as exc:
        raise CodecError(entry, "not valid UTF-8") from exc


class Adapter(persist.Adapter):
    """Stores policy rules as JSON records in a Redis list.

    Parameters:
        config:  Connection settings.  Defaults to :class:`AdapterConfig`.
        client:  An existing ``redis.Redis`` to use instead of opening one.
                 The adapter does not close it.
        store:   A ready :class:`ListStore`, mainly for testing.  Takes
                 precedence over ``config`` and ``client``; not closed by
                 the adapter.
        options: Field overrides applied on top of ``config``
                 (``address=``, ``password=``, ``key=`` ...).

    Raises:
        StoreConnectionError: Redis could not be reached.  The adapter is
            unusable; nothing is retried.
    """

    def __init__(
        self,
        config: AdapterConfig | None = None,
        *,
        client: redis.Redis | None = None,
        store: ListStore | None = None,
        **options: Any,
    ) -> None:
        config = config or AdapterConfig()
        if options:
            config = config.with_options(**options)
        self.config = config
        self._filtered = False

        if store is not None:
            self._store = store
            self._owns_store = False
        elif client is not None:
            self._store = RedisListStore(client, config.key)
            self._owns_store = True
        else:
            self._store = RedisListStore.from_config(config)
            self._owns_store = True

    @property
    def store(self) -> ListStore:
        return self._store

    # ── lifecycle ────────────────────────────────────────────

    def close(self) -> None:
        """Release the connection.  Call it (or use ``with``) when done."""
        if self._owns_store:
            self._store.close()

    def __enter__(self) -> Adapter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ── loading ──────────────────────────────────────────────

    def _load(self, model: Model, pattern: re.Pattern[str] | None) -> int:
        # A missing key has length 0: an empty policy, not an error.
        if self._store.length() == 0:
            return 0
        loaded = 0
        for entry in self._store.read_all():
            if pattern is not None and not pattern.match(_entry_text(entry)):
                continue
            try:
                record = decode(entry)
            except CodecError:
                logger.error("Aborting load after %d rules: malformed entry %r", loaded, entry)
                raise
            _load_policy_line(record, model)
            loaded += 1
        return loaded

    def load_policy(self, model: Model) -> None:
        """Load every stored rule into ``model``."""
        loaded = self._load(model, None)
        self._filtered = False
        logger.debug("Loaded %d rules from %s", loaded, self.config.key)

    def load_filtered_policy(self, model: Model, filter: PolicyFilter | None) -> None:
        """Load only the rules matching ``filter``.

        ``None`` or a :class:`Filter` with no constrained position loads
        everything, exactly like :meth:`load_policy`.
        """
        if filter is None or (isinstance(filter, Filter) and filter.is_unconstrained()):
            self.load_policy(model)
            return

        if isinstance(filter, Filter):
            pattern = compile_client_pattern(filter)
        elif isinstance(filter, FieldRangePredicate):
            pattern = compile_client_pattern(filter.to_filter())
        else:
            raise TypeError(f"unsupported filter type: {type(filter).__name__}")

        loaded = self._load(model, pattern)
        self._filtered = True
        logger.debug("Loaded %d filtered rules from %s", loaded, self.config.key)

    def is_filtered(self) -> bool:
        """``True`` when the last load was a filtered one."""
        return self._filtered

    # ── saving ───────────────────────────────────────────────

    def save_policy(self, model: Model) -> bool:
        """Replace the stored list with every ``p`` and ``g`` rule of ``model``."""
        entries = [
            encode(ptype, rule)
            for sec in _SECTIONS
            for ptype, assertion in model.model.get(sec, {}).items()
            for rule in assertion.policy
        ]
        self._store.replace_all(entries)
        return True

    def add_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        self._store.append(encode(ptype, rule))
        return True

    def add_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> bool:
        self._store.append_many([encode(ptype, rule) for rule in rules])
        return True

    def remove_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        """Remove the first stored copy of ``rule``.  Later duplicates stay."""
        self._store.remove_first(encode(ptype, rule))
        return True

    def remove_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> bool:
        self._store.remove_first_many([encode(ptype, rule) for rule in rules])
        return True

    def remove_filtered_policy(
        self, sec: str, ptype: str, field_index: int, *field_values: str
    ) -> bool:
        """Remove every ``ptype`` rule whose fields match from ``field_index`` on.

        An empty value leaves its position unconstrained.
        """
        predicate = FieldRangePredicate(field_index, field_values)
        self._store.delete_matching(compile_server_pattern(ptype, predicate))
        return True

    # ── updating ─────────────────────────────────────────────

    def update_policy(
        self, sec: str, ptype: str, old_rule: Sequence[str], new_rule: Sequence[str]
    ) -> bool:
        """Replace the first stored copy of ``old_rule`` in place.

        Nothing happens (and no error is raised) when ``old_rule`` is absent.
        """
        replaced = self._store.replace_one(encode(ptype, old_rule), encode(ptype, new_rule))
        if not replaced:
            logger.debug("update_policy: %r not found under %s", list(old_rule), ptype)
        return True

    def update_policies(
        self,
        sec: str,
        ptype: str,
        old_rules: Sequence[Sequence[str]],
        new_rules: Sequence[Sequence[str]],
    ) -> bool:
        """Replace every stored copy of ``old_rules[i]`` with ``new_rules[i]``.

        Raises:
            ArityMismatchError: the two lists differ in length.  Redis is
                not contacted.
        """
        self._store.replace_many(
            [encode(ptype, rule) for rule in old_rules],
            [encode(ptype, rule) for rule in new_rules],
        )
        return True

    def update_filtered_policies(
        self,
        sec: str,
        ptype: str,
        new_rules: Sequence[Sequence[str]],
        field_index: int,
        *field_values: str,
    ) -> list[list[str]]:
        """Atomically swap the rules matching the predicate for ``new_rules``.

        Returns the removed rules (without ``ptype``) in their stored order.
        """
        predicate = FieldRangePredicate(field_index, field_values)
        removed = self._store.replace_filtered(
            compile_server_pattern(ptype, predicate),
            [encode(ptype, rule) for rule in new_rules],
        )
        return [decode(entry).to_rule() for entry in removed]
