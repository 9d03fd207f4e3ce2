from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from .errors import InvalidFieldValue, MalformedToken, ReservedBytesNonZero
from .keys import PUBLIC_KEY_LENGTH, _require_key

TOKEN_LENGTH = 36
TOKEN_HEX_LENGTH = TOKEN_LENGTH * 2
_RESERVED = b"\x00\x00"


class Permission(enum.IntFlag):
    NONE = 0x0
    READ = 0x1
    WRITE = 0x2
    DELETE = 0x4
    ANY_PREFIX = 0x8


def _byte(field: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
        raise InvalidFieldValue(field, "must be an integer in 0..255")
    return int(value)


def encode_token(prefix: int, permissions: int, target_public_key: bytes) -> bytes:
    """prefix(1) || permissions(1) || reserved(2, zero) || pubkey(32)"""
    key = _require_key(target_public_key, "target public key")
    return bytes([_byte("prefix", prefix), _byte("permissions", permissions)]) + _RESERVED + key


@dataclass(frozen=True)
class SubaccountToken:
    prefix: int
    permissions: int
    public_key: bytes
    # as received; lax decoding keeps non-zero values
    reserved: bytes = _RESERVED

    def __post_init__(self) -> None:
        _byte("prefix", self.prefix)
        _byte("permissions", self.permissions)
        _require_key(self.public_key, "token public key")
        if not isinstance(self.reserved, (bytes, bytearray)) or len(self.reserved) != 2:
            raise InvalidFieldValue("reserved", "must be 2 bytes")

    def to_bytes(self) -> bytes:
        return bytes([self.prefix, self.permissions]) + bytes(self.reserved) + self.public_key

    def hex(self) -> str:
        return self.to_bytes().hex()

    def allows(self, flag: int) -> bool:
        return has_permission(self.permissions, flag)

    def applies_to(self, account_prefix: int) -> bool:
        return token_applies_to(self, account_prefix)


def decode_token(token: Union[bytes, str], strict: bool = True) -> SubaccountToken:
    if isinstance(token, str):
        if len(token) != TOKEN_HEX_LENGTH:
            raise MalformedToken(f"subaccount token must be {TOKEN_HEX_LENGTH} hex characters, got {len(token)}")
        try:
            token = bytes.fromhex(token)
        except ValueError as exc:
            raise MalformedToken("subaccount token is not valid hex") from exc
    if not isinstance(token, (bytes, bytearray)):
        raise MalformedToken("subaccount token must be bytes or hex")
    token = bytes(token)
    if len(token) != TOKEN_LENGTH:
        raise MalformedToken(f"subaccount token must be {TOKEN_LENGTH} bytes, got {len(token)}")
    if strict and token[2:4] != _RESERVED:
        raise ReservedBytesNonZero(token[2:4])
    return SubaccountToken(
        prefix=token[0],
        permissions=token[1],
        public_key=token[4:4 + PUBLIC_KEY_LENGTH],
        reserved=token[2:4],
    )


def has_permission(permissions: int, flag: int) -> bool:
    flag = int(flag)
    if flag == 0:
        return False
    return (int(permissions) & flag) == flag


def token_applies_to(token: SubaccountToken, account_prefix: int) -> bool:
    """Tokens without ANY_PREFIX only cover accounts with the token's own prefix."""
    if token.allows(Permission.ANY_PREFIX):
        return True
    return token.prefix == account_prefix


def describe_permissions(permissions: int) -> str:
    names = [p.name.lower() for p in (Permission.READ, Permission.WRITE, Permission.DELETE, Permission.ANY_PREFIX) if permissions & p]
    return "+".join(names) if names else "none"
