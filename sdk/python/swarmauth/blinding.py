"""
Subaccount key blinding.

The owner and the delegate both derive

    k = BLAKE2b-512(owner_pubkey || target_pubkey, person="SwarmSubaccount") mod L

The owner embeds Z = k*A in the token, where A is the delegate's Ed25519 key.
The delegate signs with the scalar k*a mod L, which yields ordinary Ed25519
signatures that verify against Z. Z alone does not reveal A.
"""

from __future__ import annotations

import hashlib

import nacl.bindings as sodium
import nacl.encoding
import nacl.hash
from nacl.exceptions import CryptoError

from .errors import InvalidPublicKey
from .keys import KeyPair, _require_key

BLINDING_PERSONALIZATION = b"SwarmSubaccount"


def _reduce(wide: bytes) -> bytes:
    return sodium.crypto_core_ed25519_scalar_reduce(wide)


def blinding_factor(owner_public_key: bytes, target_public_key: bytes) -> bytes:
    owner = _require_key(owner_public_key, "owner public key")
    target = _require_key(target_public_key, "target public key")
    h = nacl.hash.blake2b(
        owner + target,
        digest_size=64,
        person=BLINDING_PERSONALIZATION,
        encoder=nacl.encoding.RawEncoder,
    )
    return _reduce(h)


def blind_public_key(owner_public_key: bytes, target_public_key: bytes) -> bytes:
    target = _require_key(target_public_key, "target public key")
    if not sodium.crypto_core_ed25519_is_valid_point(target):
        raise InvalidPublicKey("target public key is not a valid ed25519 point")
    k = blinding_factor(owner_public_key, target)
    try:
        return sodium.crypto_scalarmult_ed25519_noclamp(k, target)
    except CryptoError as exc:
        raise InvalidPublicKey("could not blind target public key") from exc


def _expand_seed(seed: bytes):
    h = hashlib.sha512(seed).digest()
    a = bytearray(h[:32])
    a[0] &= 248
    a[31] &= 127
    a[31] |= 64
    return _reduce(bytes(a) + bytes(32)), h[32:]


class BlindedSigningKey:
    """A delegate's signing key for one owner's account."""

    __slots__ = ("public_key", "_scalar", "_nonce_prefix")

    def __init__(self, public_key: bytes, scalar: bytes, nonce_prefix: bytes):
        self.public_key = public_key
        self._scalar = scalar
        self._nonce_prefix = nonce_prefix

    @classmethod
    def derive(cls, delegate: KeyPair, owner_public_key: bytes) -> "BlindedSigningKey":
        k = blinding_factor(owner_public_key, delegate.public_key)
        a, prefix = _expand_seed(delegate.seed)
        scalar = sodium.crypto_core_ed25519_scalar_mul(k, a)
        public_key = sodium.crypto_scalarmult_ed25519_base_noclamp(scalar)
        nonce_prefix = nacl.hash.blake2b(prefix + k, digest_size=32, encoder=nacl.encoding.RawEncoder)
        return cls(public_key, scalar, nonce_prefix)

    def sign(self, message: bytes) -> bytes:
        r = _reduce(hashlib.sha512(self._nonce_prefix + self.public_key + message).digest())
        big_r = sodium.crypto_scalarmult_ed25519_base_noclamp(r)
        hram = _reduce(hashlib.sha512(big_r + self.public_key + message).digest())
        s = sodium.crypto_core_ed25519_scalar_add(sodium.crypto_core_ed25519_scalar_mul(hram, self._scalar), r)
        return big_r + s

    def __repr__(self) -> str:
        return f"BlindedSigningKey(public_key={self.public_key.hex()})"
