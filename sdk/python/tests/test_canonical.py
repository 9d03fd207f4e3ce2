import json
from pathlib import Path

import pytest

from swarmauth import (
    InvalidFieldValue,
    MalformedToken,
    MissingRequiredField,
    Operation,
    UnsupportedOperation,
    build_message,
)
from swarmauth.canonical import CANONICAL_VERSION, SUPPORTED_OPERATIONS, build_message_str

TOKEN_A = "00070000000102030405060708090a0b0c0d0e0f101112131415161718191a1b1c1d1e1f"


def _cases():
    root = Path(__file__).resolve().parents[3]
    fx = json.loads((root / "conformance" / "cases" / "canonical_messages_v1.json").read_text())
    assert fx["version"] == CANONICAL_VERSION
    return fx["cases"]


def test_canonical_messages_conformance():
    cases = _cases()
    assert {c["operation"] for c in cases} == set(SUPPORTED_OPERATIONS)
    for c in cases:
        got = build_message(c["operation"], **c["fields"])
        assert got == c["expected"].encode("ascii"), c["name"]


def test_store_exact_bytes():
    assert build_message(Operation.STORE, namespace=0, timestamp=1753933969153) == b"store1753933969153"
    assert build_message(Operation.STORE, namespace=42, timestamp=1) == b"store421"


def test_message_hashes_keep_caller_order():
    a = build_message(Operation.DELETE, messages=["b", "a"])
    b = build_message(Operation.DELETE, messages=["a", "b"])
    assert a == b"deleteba"
    assert a != b


def test_expire_shorten_wins_over_extend():
    both = build_message_str(Operation.EXPIRE_MSGS, messages=["h"], expiry=10, shorten=True, extend=True)
    assert both == "expireshorten10h"


def test_unknown_operation_is_rejected():
    with pytest.raises(UnsupportedOperation):
        build_message("update", timestamp=1)
    with pytest.raises(UnsupportedOperation):
        build_message("get_messages")


def test_missing_required_fields():
    with pytest.raises(MissingRequiredField) as exc:
        build_message(Operation.STORE)
    assert exc.value.field == "timestamp"
    with pytest.raises(MissingRequiredField):
        build_message(Operation.DELETE, messages=[])
    with pytest.raises(MissingRequiredField):
        build_message(Operation.EXPIRE_MSGS, expiry=5)
    with pytest.raises(MissingRequiredField):
        build_message(Operation.GET_EXPIRIES, timestamp=5, messages=[])
    with pytest.raises(MissingRequiredField):
        build_message(Operation.UNREVOKE_SUBACCOUNT, timestamp=5, tokens=[])
    with pytest.raises(MissingRequiredField):
        build_message(Operation.DELETE_BEFORE, namespace=1)


def test_invalid_field_values():
    with pytest.raises(InvalidFieldValue):
        build_message(Operation.STORE, timestamp="1700000000000")
    with pytest.raises(InvalidFieldValue):
        build_message(Operation.STORE, timestamp=-1)
    with pytest.raises(InvalidFieldValue):
        build_message(Operation.STORE, timestamp=True)
    with pytest.raises(InvalidFieldValue):
        build_message(Operation.RETRIEVE, namespace="some", timestamp=1)
    with pytest.raises(InvalidFieldValue):
        build_message(Operation.RETRIEVE, namespace=40000, timestamp=1)
    with pytest.raises(InvalidFieldValue):
        build_message(Operation.DELETE, messages="abc")
    with pytest.raises(InvalidFieldValue):
        build_message(Operation.DELETE, messages=["hé"])


def test_revoke_requires_well_formed_token():
    assert build_message(Operation.REVOKE_SUBACCOUNT, token=bytes.fromhex(TOKEN_A)) == ("revoke_subaccount" + TOKEN_A).encode()
    with pytest.raises(MalformedToken):
        build_message(Operation.REVOKE_SUBACCOUNT, token=TOKEN_A[:-2])
    with pytest.raises(MalformedToken):
        build_message(Operation.UNREVOKE_SUBACCOUNT, timestamp=1, tokens=["zz" * 36])


def test_monitor_message():
    account = bytes([5]) + bytes(range(32))
    msg = build_message_str(Operation.MONITOR, account=account, timestamp=12, namespaces=[3, -1], data=False)
    assert msg == "MONITOR" + account.hex() + "120" + "3,-1"
    with pytest.raises(InvalidFieldValue):
        build_message(Operation.MONITOR, account=bytes(32), timestamp=12, namespaces=[0])
    with pytest.raises(MissingRequiredField):
        build_message(Operation.MONITOR, account=account, timestamp=12, namespaces=[])
