# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""RedisListStore — policy records in a Redis list, via redis-py."""

from __future__ import annotations

import logging
import weakref
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import redis

from redis_policy_adapter.config import DEFAULT_KEY, AdapterConfig
from redis_policy_adapter.exceptions import (
    ArityMismatchError,
    ScriptError,
    StoreConnectionError,
    StoreError,
)
from redis_policy_adapter.stores.base import ListStore
from redis_policy_adapter.stores.scripts import TOMBSTONE, ScriptLibrary

if TYPE_CHECKING:
    from redis.commands.core import Script

logger = logging.getLogger(__name__)


class RedisListStore(ListStore):
    """List store backed by one blocking Redis connection.

    The connection is checked with ``PING`` on construction, so an
    unreachable server fails here rather than on first use.  There is no
    retry and no reconnect after :meth:`close`.

    Parameters:
        client:      A ``redis.Redis`` instance.
        key:         Name of the list holding the records.
        owns_client: Close ``client`` when the store is closed.  Left
                     ``False`` for clients the caller manages.
    """

    def __init__(
        self,
        client: redis.Redis,
        key: str = DEFAULT_KEY,
        *,
        owns_client: bool = False,
    ) -> None:
        self.key = key
        self._client = client
        self._closed = False
        try:
            client.ping()
        except redis.RedisError as exc:
            if owns_client:
                client.close()
            raise StoreConnectionError("connect", str(exc)) from exc
        self._scripts = ScriptLibrary.register(client)
        # Backstop only: releases an owned client if close() is never called.
        self._finalizer = weakref.finalize(self, client.close) if owns_client else None
        logger.info("Connected to Redis list store (key=%s)", key)

    @classmethod
    def from_config(cls, config: AdapterConfig) -> RedisListStore:
        """Open a new connection described by ``config``; the store owns it."""
        client = redis.Redis(**config.client_kwargs())
        return cls(client, config.key, owns_client=True)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._finalizer is not None:
            self._finalizer()
        logger.info("Closed Redis list store (key=%s)", self.key)

    @contextmanager
    def _command(self, operation: str) -> Iterator[redis.Redis]:
        if self._closed:
            raise StoreError(operation, "store is closed")
        try:
            yield self._client
        except redis.RedisError as exc:
            raise StoreError(operation, str(exc)) from exc

    def _invoke(self, operation: str, script: Script, args: Sequence[Any]) -> Any:
        if self._closed:
            raise StoreError(operation, "store is closed")
        try:
            return script(keys=[self.key], args=list(args))
        except redis.ResponseError as exc:
            raise ScriptError(operation, str(exc)) from exc
        except redis.RedisError as exc:
            raise StoreError(operation, str(exc)) from exc

    # ── primitives ───────────────────────────────────────────

    def length(self) -> int:
        with self._command("length") as client:
            return int(client.llen(self.key))

    def read_all(self) -> list[bytes]:
        with self._command("read_all") as client:
            return list(client.lrange(self.key, 0, -1))

    def append(self, entry: bytes) -> None:
        with self._command("append") as client:
            client.rpush(self.key, entry)

    def append_many(self, entries: Sequence[bytes]) -> None:
        if not entries:
            return
        with self._command("append_many") as client:
            client.rpush(self.key, *entries)
        logger.debug("Appended %d entries to %s", len(entries), self.key)

    def remove_first(self, entry: bytes) -> int:
        with self._command("remove_first") as client:
            return int(client.lrem(self.key, 1, entry))

    def remove_first_many(self, entries: Sequence[bytes]) -> int:
        if not entries:
            return 0
        with self._command("remove_first_many") as client, client.pipeline() as pipe:
            for entry in entries:
                pipe.lrem(self.key, 1, entry)
            removed = sum(int(n) for n in pipe.execute())
        logger.debug("Removed %d of %d entries from %s", removed, len(entries), self.key)
        return removed

    def replace_all(self, entries: Sequence[bytes]) -> None:
        with self._command("replace_all") as client, client.pipeline() as pipe:
            pipe.delete(self.key)
            if entries:
                pipe.rpush(self.key, *entries)
            pipe.execute()
        logger.debug("Rewrote %s with %d entries", self.key, len(entries))

    # ── atomic routines ──────────────────────────────────────

    def delete_matching(self, pattern: str) -> int:
        removed = int(
            self._invoke("delete_matching", self._scripts.delete_matching, [pattern, TOMBSTONE])
        )
        logger.debug("Deleted %d entries matching %s", removed, pattern)
        return removed

    def replace_one(self, old: bytes, new: bytes) -> bool:
        return bool(self._invoke("replace_one", self._scripts.replace_one, [old, new]))

    def replace_many(self, olds: Sequence[bytes], news: Sequence[bytes]) -> int:
        if len(olds) != len(news):
            raise ArityMismatchError(len(olds), len(news))
        if not olds:
            return 0
        replaced = int(
            self._invoke("replace_many", self._scripts.replace_many, [*olds, *news])
        )
        logger.debug("Replaced %d entries in %s", replaced, self.key)
        return replaced

    def replace_filtered(self, pattern: str, news: Sequence[bytes]) -> list[bytes]:
        removed = self._invoke(
            "replace_filtered",
            self._scripts.replace_filtered,
            [pattern, TOMBSTONE, *news],
        )
        logger.debug(
            "Replaced %d entries matching %s with %d new entries",
            len(removed),
            pattern,
            len(news),
        )
        return list(removed)
