"""redis_policy_adapter — pycasbin policy storage in a Redis list.

Each rule is one list entry holding a fixed-shape JSON record.  Filtered
removal and updates run as atomic Lua scripts inside Redis.
"""

from redis_policy_adapter.adapter import Adapter
from redis_policy_adapter.config import AdapterConfig
from redis_policy_adapter.exceptions import (
    AdapterError,
    ArityMismatchError,
    CodecError,
    ScriptError,
    StoreConnectionError,
    StoreError,
)
from redis_policy_adapter.filters import FieldRangePredicate, Filter, PolicyFilter
from redis_policy_adapter.record import PolicyRecord, decode, encode

__all__ = [
    "Adapter",
    "AdapterConfig",
    "AdapterError",
    "ArityMismatchError",
    "CodecError",
    "FieldRangePredicate",
    "Filter",
    "PolicyFilter",
    "PolicyRecord",
    "ScriptError",
    "StoreConnectionError",
    "StoreError",
    "decode",
    "encode",
]
