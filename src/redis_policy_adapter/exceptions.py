# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Custom exceptions for the redis_policy_adapter package."""

from __future__ import annotations


class AdapterError(Exception):
    """Base exception for all adapter errors."""


class CodecError(AdapterError):
    """Raised when a stored entry is not a well-formed policy record."""

    def __init__(self, entry: bytes | str, detail: str = "") -> None:
        self.entry = entry
        msg = f"Malformed policy record {entry!r}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ArityMismatchError(AdapterError, ValueError):
    """Raised when old and new rule lists of a batch update differ in length."""

    def __init__(self, old_count: int, new_count: int) -> None:
        self.old_count = old_count
        self.new_count = new_count
        super().__init__(
            f"old and new rules must have the same length ({old_count} != {new_count})"
        )


class StoreError(AdapterError):
    """Raised when a store operation fails."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        self.detail = detail
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class StoreConnectionError(StoreError):
    """Raised when the store cannot be reached while the adapter is built."""


class ScriptError(StoreError):
    """Raised when the store fails to evaluate an atomic script.

    ``detail`` carries the store's own error message unchanged.
    """
