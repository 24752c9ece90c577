"""Tests for the record codec."""

import pytest

from redis_policy_adapter import CodecError, PolicyRecord, decode, encode
from redis_policy_adapter.record import encode_literal


def test_encode_canonical_bytes():
    assert encode("p", ["alice", "data1", "read"]) == (
        b'{"PType":"p","V0":"alice","V1":"data1","V2":"read","V3":"","V4":"","V5":""}'
    )


def test_encode_is_deterministic():
    assert encode("g", ["alice", "admin"]) == encode("g", ("alice", "admin"))


def test_encode_always_emits_seven_keys():
    assert encode("p", []) == (
        b'{"PType":"p","V0":"","V1":"","V2":"","V3":"","V4":"","V5":""}'
    )


def test_encode_rejects_more_than_six_fields():
    with pytest.raises(ValueError):
        encode("p", ["a", "b", "c", "d", "e", "f", "g"])


@pytest.mark.parametrize(
    "ptype, rule",
    [
        ("p", ["alice"]),
        ("p", ["alice", "data1", "read"]),
        ("g", ["alice", "data2_admin"]),
        ("p", ["a", "b", "c", "d", "e", "f"]),
        ("p", ['quote"d', "back\\slash", "ünïcode"]),
    ],
)
def test_round_trip(ptype, rule):
    record = decode(encode(ptype, rule))
    assert record.ptype == ptype
    assert record.to_rule() == rule


def test_to_rule_trims_only_trailing_empty_fields():
    record = decode(encode("p", ["alice", "", "read", "", ""]))
    assert record.to_rule() == ["alice", "", "read"]
    assert record.fields == ("alice", "", "read", "", "", "")


def test_decode_accepts_str():
    record = decode('{"PType":"g","V0":"a","V1":"b","V2":"","V3":"","V4":"","V5":""}')
    assert record == PolicyRecord.from_rule("g", ["a", "b"])


@pytest.mark.parametrize(
    "entry",
    [
        b"not json",
        b"[]",
        b'"p"',
        b'{"PType":"p"}',
        b'{"PType":"p","V0":1,"V1":"","V2":"","V3":"","V4":"","V5":""}',
        b'{"PType":"p","V0":"","V1":"","V2":"","V3":"","V4":"","V5":"","V6":""}',
        b"__CASBIN_DELETED__",
        b"\xff\xfe",
    ],
)
def test_decode_rejects_malformed(entry):
    with pytest.raises(CodecError) as exc_info:
        decode(entry)
    assert exc_info.value.entry == entry


def test_encode_literal_matches_stored_form():
    value = 'say "hi"\\'
    assert encode_literal(value) == 'say \\"hi\\"\\\\'
    assert encode_literal(value).encode() in encode("p", [value])
