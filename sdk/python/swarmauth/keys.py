from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from nacl.exceptions import CryptoError
from nacl.signing import SigningKey, VerifyKey

from .config import NETWORK_PREFIX_SESSION, SigningConfig
from .errors import InvalidFieldValue, InvalidKeyLength, InvalidPublicKey, InvalidSeedLength

SEED_LENGTH = 32
PUBLIC_KEY_LENGTH = 32
SECRET_KEY_LENGTH = 64


class KeyType:
    ED25519 = "ed25519"
    X25519 = "x25519"


@dataclass(frozen=True)
class KeyPair:
    public_key: bytes
    secret_key: bytes

    @property
    def seed(self) -> bytes:
        return self.secret_key[:SEED_LENGTH]

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key.hex()})"


def _require_key(key: bytes, what: str = "public key") -> bytes:
    if not isinstance(key, (bytes, bytearray)) or len(key) != PUBLIC_KEY_LENGTH:
        raise InvalidKeyLength(len(key) if isinstance(key, (bytes, bytearray)) else -1, PUBLIC_KEY_LENGTH, what)
    return bytes(key)


def generate(seed: Optional[bytes] = None) -> KeyPair:
    if seed is None:
        sk = SigningKey.generate()
    else:
        if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_LENGTH:
            raise InvalidSeedLength(len(seed) if isinstance(seed, (bytes, bytearray)) else -1)
        sk = SigningKey(bytes(seed))
    pk = bytes(sk.verify_key)
    return KeyPair(public_key=pk, secret_key=bytes(sk) + pk)


def derive_public_key_x25519(ed25519_public_key: bytes) -> bytes:
    pk = _require_key(ed25519_public_key)
    try:
        return bytes(VerifyKey(pk).to_curve25519_public_key())
    except CryptoError as exc:
        raise InvalidPublicKey("ed25519 public key is not a valid curve point") from exc


@dataclass(frozen=True)
class PublicKeyHandle:
    """Account identifier: a network prefix byte followed by a 32-byte key.

    When the key is X25519-derived the raw Ed25519 key travels alongside so
    the server can check Ed25519 signatures.
    """

    prefix: int
    key: bytes
    key_type: str = KeyType.ED25519
    ed25519_key: Optional[bytes] = None

    def __post_init__(self) -> None:
        if isinstance(self.prefix, bool) or not isinstance(self.prefix, int) or not 0 <= self.prefix <= 0xFF:
            raise InvalidFieldValue("prefix", "must be an integer in 0..255")
        _require_key(self.key)
        if self.key_type not in (KeyType.ED25519, KeyType.X25519):
            raise InvalidFieldValue("key_type", f"must be {KeyType.ED25519} or {KeyType.X25519}")
        if self.key_type == KeyType.X25519:
            if self.ed25519_key is None:
                raise InvalidFieldValue("ed25519_key", "is required for x25519-identified accounts")
            _require_key(self.ed25519_key, "ed25519 key")

    def to_bytes(self) -> bytes:
        return bytes([self.prefix]) + self.key

    def hex(self) -> str:
        return self.to_bytes().hex()

    @property
    def pubkey_ed25519_hex(self) -> Optional[str]:
        if self.key_type != KeyType.X25519:
            return None
        return self.ed25519_key.hex()

    @classmethod
    def parse(cls, pubkey_hex: str) -> "PublicKeyHandle":
        try:
            raw = bytes.fromhex(pubkey_hex)
        except (TypeError, ValueError) as exc:
            raise InvalidFieldValue("pubkey", "must be hex") from exc
        if len(raw) != PUBLIC_KEY_LENGTH + 1:
            raise InvalidKeyLength(len(raw), PUBLIC_KEY_LENGTH + 1, "pubkey")
        return cls(prefix=raw[0], key=raw[1:])


class KeyMaterial:
    """One principal's Ed25519 key pair and the keys derived from it."""

    __slots__ = ("_pair", "_x25519")

    def __init__(self, pair: KeyPair):
        _require_key(pair.public_key)
        if len(pair.secret_key) != SECRET_KEY_LENGTH:
            raise InvalidKeyLength(len(pair.secret_key), SECRET_KEY_LENGTH, "secret key")
        self._pair = pair
        self._x25519 = derive_public_key_x25519(pair.public_key)

    @classmethod
    def generate(cls, seed: Optional[bytes] = None) -> "KeyMaterial":
        return cls(generate(seed))

    @classmethod
    def from_seed_hex(cls, seed_hex: str) -> "KeyMaterial":
        try:
            seed = bytes.fromhex(seed_hex)
        except (TypeError, ValueError) as exc:
            raise InvalidFieldValue("seed", "must be hex") from exc
        return cls.generate(seed)

    @property
    def key_pair(self) -> KeyPair:
        return self._pair

    @property
    def public_key(self) -> bytes:
        return self._pair.public_key

    @property
    def x25519_public_key(self) -> bytes:
        return self._x25519

    def handle(self, config: SigningConfig) -> PublicKeyHandle:
        if config.session_id:
            return PublicKeyHandle(
                prefix=NETWORK_PREFIX_SESSION,
                key=self.x25519_public_key,
                key_type=KeyType.X25519,
                ed25519_key=self.public_key,
            )
        return PublicKeyHandle(prefix=config.network_prefix, key=self.public_key)

    def __repr__(self) -> str:
        return f"KeyMaterial(public_key={self.public_key.hex()})"
