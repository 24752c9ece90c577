"""Storage backends holding policy records as an ordered list."""

from redis_policy_adapter.stores.base import ListStore
from redis_policy_adapter.stores.redis_store import RedisListStore
from redis_policy_adapter.stores.scripts import TOMBSTONE, ScriptLibrary

__all__ = ["TOMBSTONE", "ListStore", "RedisListStore", "ScriptLibrary"]
