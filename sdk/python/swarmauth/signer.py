from __future__ import annotations

import base64
from typing import Union

from nacl.exceptions import CryptoError
from nacl.signing import SigningKey, VerifyKey

from .errors import InvalidFieldValue, InvalidKeyLength, KeyMismatch

SIGNATURE_LENGTH = 64


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"), validate=True)


def _signing_key(secret_key: bytes) -> SigningKey:
    if not isinstance(secret_key, (bytes, bytearray)) or len(secret_key) not in (32, 64):
        raise InvalidKeyLength(len(secret_key) if isinstance(secret_key, (bytes, bytearray)) else -1, 64, "secret key")
    sk = SigningKey(bytes(secret_key[:32]))
    if len(secret_key) == 64 and bytes(sk.verify_key) != bytes(secret_key[32:]):
        raise KeyMismatch("secret key public half does not match its seed")
    return sk


def sign(secret_key: bytes, message: Union[bytes, str]) -> bytes:
    """Ed25519 signature over message. secret_key is a 32-byte seed or the
    64-byte seed || public key form."""
    if isinstance(message, str):
        message = message.encode("ascii")
    return bytes(_signing_key(secret_key).sign(bytes(message)).signature)


def sign_b64(secret_key: bytes, message: Union[bytes, str]) -> str:
    return b64e(sign(secret_key, message))


def verify(public_key: bytes, message: Union[bytes, str], signature: Union[bytes, str]) -> bool:
    if isinstance(message, str):
        message = message.encode("ascii")
    try:
        if isinstance(signature, str):
            signature = b64d(signature)
        if len(public_key) != 32 or len(signature) != SIGNATURE_LENGTH:
            return False
        VerifyKey(bytes(public_key)).verify(bytes(message), bytes(signature))
        return True
    except (CryptoError, ValueError, TypeError):
        return False


def decode_signature(signature_b64: str) -> bytes:
    try:
        raw = b64d(signature_b64)
    except (ValueError, TypeError) as exc:
        raise InvalidFieldValue("signature", "must be base64") from exc
    if len(raw) != SIGNATURE_LENGTH:
        raise InvalidFieldValue("signature", f"must decode to {SIGNATURE_LENGTH} bytes")
    return raw
