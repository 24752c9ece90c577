# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Pattern compilers turning filters into match expressions over encoded records.

Two dialects are produced and they do not share escaping code:

**Client-side regex** (Python :mod:`re`), used when filtering a loaded list
in process.  Literals go through :func:`escape_regex`, which escapes every
regex metacharacter (``re.escape``).  The braces of the record are escaped
as ``\\{`` and ``\\}``.  Alternatives are grouped as ``(?:a|b)``.

**Server-side Lua pattern**, evaluated by ``string.find`` inside a Redis
script.  Lua patterns have no alternation and a different magic set:
``^ $ ( ) % . [ ] * + - ?``, escaped with ``%`` rather than a backslash
(:func:`escape_lua_pattern`).  Braces are not magic in Lua and stay bare.

Both dialects anchor the whole record and match an unconstrained position
with ``.*``.  Literals are first put in their JSON-escaped form
(:func:`~redis_policy_adapter.record.encode_literal`), because that is how
they appear in the stored bytes.  JSON escapes every ``"`` inside a value,
so ``.*`` can never reach across a field boundary into a false match.
"""

from __future__ import annotations

import re

from redis_policy_adapter.filters import FieldRangePredicate, Filter
from redis_policy_adapter.record import encode_literal

_RECORD_KEYS = ("PType", "V0", "V1", "V2", "V3", "V4", "V5")

_ANY = ".*"

_LUA_MAGIC = frozenset("^$()%.[]*+-?")


def escape_regex(value: str) -> str:
    """Escape ``value`` for Python's regular-expression dialect."""
    return re.escape(value)


def escape_lua_pattern(value: str) -> str:
    """Escape ``value`` for Lua's pattern dialect by prefixing magic characters with ``%``."""
    return "".join(f"%{char}" if char in _LUA_MAGIC else char for char in value)


def compile_client_pattern(filter: Filter) -> re.Pattern[str]:
    """Compile a :class:`Filter` into an anchored regex over an encoded record.

    Example output for ``Filter(v0=["data2_admin", "data1_admin"])``::

        ^\\{"PType":".*","V0":"(?:data2_admin|data1_admin)","V1":".*",...,"V5":".*"\\}$
    """
    parts = []
    for key, allowed in zip(_RECORD_KEYS, filter.positions(), strict=True):
        if allowed:
            alternatives = "|".join(escape_regex(encode_literal(v)) for v in allowed)
            value = f"(?:{alternatives})"
        else:
            value = _ANY
        parts.append(f'"{key}":"{value}"')
    return re.compile(r"^\{" + ",".join(parts) + r"\}$")


def compile_server_pattern(ptype: str, predicate: FieldRangePredicate) -> str:
    """Compile a rule type and field-range predicate into an anchored Lua pattern.

    Example output for ``("p", FieldRangePredicate(0, ("data2_admin",)))``::

        ^{"PType":"p","V0":"data2_admin","V1":".*","V2":".*",...,"V5":".*"}$
    """
    values = [escape_lua_pattern(encode_literal(ptype))]
    for literal in predicate.field_values():
        values.append(_ANY if literal is None else escape_lua_pattern(encode_literal(literal)))
    parts = [f'"{key}":"{value}"' for key, value in zip(_RECORD_KEYS, values, strict=True)]
    return "^{" + ",".join(parts) + "}$"
