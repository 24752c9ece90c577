# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Lua routines that Redis runs atomically against the policy list.

Every routine takes the list key as ``KEYS[1]`` and positional string
arguments in ``ARGV``.  Redis executes a script as a single uninterruptible
unit, which is the only way to express "remove everything matching a
predicate" on a store whose list commands work by exact value or index.

Deletion is two-pass: matching positions are first overwritten with the
tombstone, then all tombstones are dropped with one ``LREM``.  Deleting
during the scan would shift the indices still to be visited.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import redis
    from redis.commands.core import Script

TOMBSTONE = b"__CASBIN_DELETED__"
"""Placeholder written over entries being deleted.  Never valid JSON."""

# ARGV[1] = pattern, ARGV[2] = tombstone.  Returns the number removed.
DELETE_MATCHING = """
local key = KEYS[1]
local pattern = ARGV[1]
local tombstone = ARGV[2]

local entries = redis.call('LRANGE', key, 0, -1)
local removed = 0
for i = 1, #entries do
    if string.find(entries[i], pattern) then
        redis.call('LSET', key, i - 1, tombstone)
        removed = removed + 1
    end
end
if removed > 0 then
    redis.call('LREM', key, 0, tombstone)
end
return removed
"""

# ARGV[1] = old entry, ARGV[2] = new entry.  Returns 1 if replaced, else 0.
REPLACE_ONE = """
local key = KEYS[1]
local old = ARGV[1]
local new = ARGV[2]

local entries = redis.call('LRANGE', key, 0, -1)
for i = 1, #entries do
    if entries[i] == old then
        redis.call('LSET', key, i - 1, new)
        return 1
    end
end
return 0
"""

# ARGV = n old entries followed by n new entries.  Returns the number replaced.
REPLACE_MANY = """
local key = KEYS[1]
local n = math.floor(#ARGV / 2)

local mapping = {}
for i = 1, n do
    mapping[ARGV[i]] = ARGV[i + n]
end

local entries = redis.call('LRANGE', key, 0, -1)
local replaced = 0
for i = 1, #entries do
    local new = mapping[entries[i]]
    if new ~= nil then
        redis.call('LSET', key, i - 1, new)
        replaced = replaced + 1
    end
end
return replaced
"""

# ARGV[1] = pattern, ARGV[2] = tombstone, ARGV[3..] = entries to append.
# Returns the removed entries.
REPLACE_FILTERED = """
local key = KEYS[1]
local pattern = ARGV[1]
local tombstone = ARGV[2]

local removed = {}
local entries = redis.call('LRANGE', key, 0, -1)
for i = 1, #entries do
    if string.find(entries[i], pattern) then
        table.insert(removed, entries[i])
        redis.call('LSET', key, i - 1, tombstone)
    end
end
if #removed > 0 then
    redis.call('LREM', key, 0, tombstone)
end

for i = 3, #ARGV do
    redis.call('RPUSH', key, ARGV[i])
end
return removed
"""


@dataclass(frozen=True)
class ScriptLibrary:
    """The four routines registered on one Redis client.

    Built once when a store is set up and never mutated afterwards.
    """

    delete_matching: Script
    replace_one: Script
    replace_many: Script
    replace_filtered: Script

    @classmethod
    def register(cls, client: redis.Redis) -> ScriptLibrary:
        return cls(
            delete_matching=client.register_script(DELETE_MATCHING),
            replace_one=client.register_script(REPLACE_ONE),
            replace_many=client.register_script(REPLACE_MANY),
            replace_filtered=client.register_script(REPLACE_FILTERED),
        )
