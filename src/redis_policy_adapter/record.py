# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""PolicyRecord — the canonical stored form of one policy rule.

Every rule is persisted as a compact JSON object with exactly the keys
``PType, V0, V1, V2, V3, V4, V5`` in that order, all strings.  Unset
trailing fields are written as ``""`` and never omitted, so two equal
rules always encode to the same bytes.  Updates and removals rely on
that: the store matches entries by exact byte equality.

Example entry::

    {"PType":"p","V0":"alice","V1":"data1","V2":"read","V3":"","V4":"","V5":""}
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from redis_policy_adapter.exceptions import CodecError

FIELD_COUNT = 6

_STR_ADAPTER: TypeAdapter[str] = TypeAdapter(str)


class PolicyRecord(BaseModel):
    """One stored rule: a rule type plus six positional string fields.

    Attributes:
        ptype:  Rule-type discriminator (``"p"``, ``"g"``, ``"g2"``, ...).
        v0..v5: Positional rule fields.  Unused positions hold ``""``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    ptype: str = Field(alias="PType")
    v0: str = Field(alias="V0")
    v1: str = Field(alias="V1")
    v2: str = Field(alias="V2")
    v3: str = Field(alias="V3")
    v4: str = Field(alias="V4")
    v5: str = Field(alias="V5")

    @classmethod
    def from_rule(cls, ptype: str, rule: Sequence[str]) -> PolicyRecord:
        """Build a record from a rule tuple, padding missing fields with ``""``."""
        if len(rule) > FIELD_COUNT:
            raise ValueError(
                f"a rule has at most {FIELD_COUNT} fields, got {len(rule)}: {list(rule)!r}"
            )
        padded = [*rule, *([""] * (FIELD_COUNT - len(rule)))]
        data = {"PType": ptype}
        data.update({f"V{i}": value for i, value in enumerate(padded)})
        return cls.model_validate(data)

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.v0, self.v1, self.v2, self.v3, self.v4, self.v5)

    def to_rule(self) -> list[str]:
        """Return the rule tuple, dropping only *trailing* empty fields."""
        rule = list(self.fields)
        while rule and rule[-1] == "":
            rule.pop()
        return rule

    def encode(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode()


def encode(ptype: str, rule: Sequence[str]) -> bytes:
    """Serialize ``ptype`` and ``rule`` to the canonical stored bytes."""
    return PolicyRecord.from_rule(ptype, rule).encode()


def decode(entry: bytes | str) -> PolicyRecord:
    """Parse a stored entry.

    Raises:
        CodecError: ``entry`` is not a JSON object with exactly the seven
            string-valued keys of a record.
    """
    try:
        return PolicyRecord.model_validate_json(entry)
    except ValidationError as exc:
        detail = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or 'record'}: {err['msg']}"
            for err in exc.errors()
        )
        raise CodecError(entry, detail) from exc


def encode_literal(value: str) -> str:
    """Return ``value`` escaped exactly as it appears inside an encoded record.

    Pattern compilers match against the encoded bytes, so a literal holding
    a quote or backslash has to be compared in its JSON-escaped form.
    """
    return _STR_ADAPTER.dump_json(value).decode()[1:-1]
