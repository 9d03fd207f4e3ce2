"""
Canonical byte strings signed for each storage operation.

Every message is an ASCII concatenation with no separators:

    store                "store" || namespace || sig_timestamp
    retrieve             "retrieve" || namespace || timestamp
    delete               "delete" || messages[0] || ... || messages[N]
    delete_all           "delete_all" || namespace || timestamp
    delete_before        "delete_before" || namespace || before
    expire               "expire" || ("shorten" | "extend" | "") || expiry || messages...
    expire_all           "expire_all" || namespace || expiry
    get_expiries         "get_expiries" || timestamp || messages...
    revoke_subaccount    "revoke_subaccount" || token_hex
    unrevoke_subaccount  "unrevoke_subaccount" || timestamp || token_hex...
    revoked_subaccounts  "revoked_subaccounts" || timestamp
    monitor              "MONITOR" || hex(account) || sig_timestamp || data01 || ns[0] "," ... "," ns[N]

A namespace of 0 (or None) is left out of the message even though the request
body always carries it. Message hashes keep the caller's order.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

from .errors import InvalidFieldValue, MalformedToken, MissingRequiredField, UnsupportedOperation

CANONICAL_VERSION = 1

NAMESPACE_ALL = "all"
NAMESPACE_MIN = -32768
NAMESPACE_MAX = 32767

Namespace = Union[int, str, None]

_TOKEN_HEX_RE = re.compile(r"[0-9a-fA-F]{72}")
_ACCOUNT_HEX_RE = re.compile(r"[0-9a-fA-F]{66}")


class Operation:
    STORE = "store"
    RETRIEVE = "retrieve"
    DELETE = "delete"
    DELETE_ALL = "delete_all"
    DELETE_BEFORE = "delete_before"
    EXPIRE_MSGS = "expire_msgs"
    EXPIRE_ALL = "expire_all"
    GET_EXPIRIES = "get_expiries"
    REVOKE_SUBACCOUNT = "revoke_subaccount"
    UNREVOKE_SUBACCOUNT = "unrevoke_subaccount"
    REVOKED_SUBACCOUNTS = "revoked_subaccounts"
    MONITOR = "monitor"


# Fields each operation cannot be built without. namespace, shorten, extend
# and data are optional everywhere.
REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
    Operation.STORE: ("timestamp",),
    Operation.RETRIEVE: ("timestamp",),
    Operation.DELETE: ("messages",),
    Operation.DELETE_ALL: ("timestamp",),
    Operation.DELETE_BEFORE: ("before",),
    Operation.EXPIRE_MSGS: ("expiry", "messages"),
    Operation.EXPIRE_ALL: ("expiry",),
    Operation.GET_EXPIRIES: ("timestamp", "messages"),
    Operation.REVOKE_SUBACCOUNT: ("token",),
    Operation.UNREVOKE_SUBACCOUNT: ("timestamp", "tokens"),
    Operation.REVOKED_SUBACCOUNTS: ("timestamp",),
    Operation.MONITOR: ("account", "timestamp", "namespaces"),
}


def _ascii(operation: str, field: str, value: str) -> str:
    try:
        value.encode("ascii")
    except UnicodeEncodeError as exc:
        raise InvalidFieldValue(field, "must be ASCII", operation) from exc
    return value


def _int_field(operation: str, field: str, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldValue(field, "must be an integer number of milliseconds", operation)
    if value < 0:
        raise InvalidFieldValue(field, "must not be negative", operation)
    return str(value)


def namespace_part(operation: str, namespace: Namespace, all_literal: bool = True) -> str:
    if namespace is None:
        return ""
    if isinstance(namespace, str):
        if namespace != NAMESPACE_ALL:
            raise InvalidFieldValue("namespace", f"must be an integer or {NAMESPACE_ALL!r}", operation)
        return NAMESPACE_ALL if all_literal else ""
    if isinstance(namespace, bool) or not isinstance(namespace, int):
        raise InvalidFieldValue("namespace", "must be an integer", operation)
    if not NAMESPACE_MIN <= namespace <= NAMESPACE_MAX:
        raise InvalidFieldValue("namespace", f"must be within {NAMESPACE_MIN}..{NAMESPACE_MAX}", operation)
    return "" if namespace == 0 else str(namespace)


def _concat(operation: str, field: str, values: Sequence[str]) -> str:
    if not isinstance(values, (list, tuple)):
        raise InvalidFieldValue(field, "must be a list of strings", operation)
    values = list(values)
    if not values:
        raise MissingRequiredField(operation, field)
    for v in values:
        if not isinstance(v, str):
            raise InvalidFieldValue(field, "must be a list of strings", operation)
        _ascii(operation, field, v)
    return "".join(values)


def token_hex(operation: str, token: Union[str, bytes]) -> str:
    if isinstance(token, (bytes, bytearray)):
        token = bytes(token).hex()
    if not isinstance(token, str) or _TOKEN_HEX_RE.fullmatch(token) is None:
        raise MalformedToken(f"{operation}: subaccount token must be 72 hex characters")
    return token


def _store(f: Dict[str, Any]) -> str:
    op = Operation.STORE
    return "store" + namespace_part(op, f.get("namespace")) + _int_field(op, "timestamp", f["timestamp"])


def _retrieve(f: Dict[str, Any]) -> str:
    op = Operation.RETRIEVE
    return "retrieve" + namespace_part(op, f.get("namespace")) + _int_field(op, "timestamp", f["timestamp"])


def _delete(f: Dict[str, Any]) -> str:
    return "delete" + _concat(Operation.DELETE, "messages", f["messages"])


def _delete_all(f: Dict[str, Any]) -> str:
    op = Operation.DELETE_ALL
    return "delete_all" + namespace_part(op, f.get("namespace")) + _int_field(op, "timestamp", f["timestamp"])


def _delete_before(f: Dict[str, Any]) -> str:
    op = Operation.DELETE_BEFORE
    ns = namespace_part(op, f.get("namespace"), all_literal=False)
    return "delete_before" + ns + _int_field(op, "before", f["before"])


def _expire_msgs(f: Dict[str, Any]) -> str:
    op = Operation.EXPIRE_MSGS
    # shorten takes precedence when both flags are set
    if f.get("shorten"):
        mode = "shorten"
    elif f.get("extend"):
        mode = "extend"
    else:
        mode = ""
    return "expire" + mode + _int_field(op, "expiry", f["expiry"]) + _concat(op, "messages", f["messages"])


def _expire_all(f: Dict[str, Any]) -> str:
    op = Operation.EXPIRE_ALL
    return "expire_all" + namespace_part(op, f.get("namespace")) + _int_field(op, "expiry", f["expiry"])


def _get_expiries(f: Dict[str, Any]) -> str:
    op = Operation.GET_EXPIRIES
    return "get_expiries" + _int_field(op, "timestamp", f["timestamp"]) + _concat(op, "messages", f["messages"])


def _revoke_subaccount(f: Dict[str, Any]) -> str:
    return "revoke_subaccount" + token_hex(Operation.REVOKE_SUBACCOUNT, f["token"])


def _unrevoke_subaccount(f: Dict[str, Any]) -> str:
    op = Operation.UNREVOKE_SUBACCOUNT
    tokens = f["tokens"]
    if not isinstance(tokens, (list, tuple)):
        raise InvalidFieldValue("tokens", "must be a list of tokens", op)
    tokens = [token_hex(op, t) for t in tokens]
    if not tokens:
        raise MissingRequiredField(op, "tokens")
    return "unrevoke_subaccount" + _int_field(op, "timestamp", f["timestamp"]) + "".join(tokens)


def _revoked_subaccounts(f: Dict[str, Any]) -> str:
    return "revoked_subaccounts" + _int_field(Operation.REVOKED_SUBACCOUNTS, "timestamp", f["timestamp"])


def _monitor(f: Dict[str, Any]) -> str:
    op = Operation.MONITOR
    account = f["account"]
    if isinstance(account, (bytes, bytearray)):
        account = bytes(account).hex()
    if not isinstance(account, str) or _ACCOUNT_HEX_RE.fullmatch(account) is None:
        raise InvalidFieldValue("account", "must be a 33-byte account id", op)
    namespaces = f["namespaces"]
    if not isinstance(namespaces, (list, tuple)):
        raise InvalidFieldValue("namespaces", "must be a list of integers", op)
    parts: List[str] = []
    for ns in namespaces:
        if isinstance(ns, bool) or not isinstance(ns, int) or not NAMESPACE_MIN <= ns <= NAMESPACE_MAX:
            raise InvalidFieldValue("namespaces", "must be a list of integers", op)
        parts.append(str(ns))
    if not parts:
        raise MissingRequiredField(op, "namespaces")
    data = "1" if f.get("data") else "0"
    return "MONITOR" + account.lower() + _int_field(op, "timestamp", f["timestamp"]) + data + ",".join(parts)


_BUILDERS: Dict[str, Callable[[Dict[str, Any]], str]] = {
    Operation.STORE: _store,
    Operation.RETRIEVE: _retrieve,
    Operation.DELETE: _delete,
    Operation.DELETE_ALL: _delete_all,
    Operation.DELETE_BEFORE: _delete_before,
    Operation.EXPIRE_MSGS: _expire_msgs,
    Operation.EXPIRE_ALL: _expire_all,
    Operation.GET_EXPIRIES: _get_expiries,
    Operation.REVOKE_SUBACCOUNT: _revoke_subaccount,
    Operation.UNREVOKE_SUBACCOUNT: _unrevoke_subaccount,
    Operation.REVOKED_SUBACCOUNTS: _revoked_subaccounts,
    Operation.MONITOR: _monitor,
}

SUPPORTED_OPERATIONS = frozenset(_BUILDERS)


def build_message(operation: str, **fields: Any) -> bytes:
    builder = _BUILDERS.get(operation)
    if builder is None:
        raise UnsupportedOperation(operation)
    for name in REQUIRED_FIELDS[operation]:
        if fields.get(name) is None:
            raise MissingRequiredField(operation, name)
    return builder(fields).encode("ascii")


def build_message_str(operation: str, **fields: Any) -> str:
    return build_message(operation, **fields).decode("ascii")

