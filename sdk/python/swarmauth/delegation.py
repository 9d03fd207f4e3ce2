from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Union

from .blinding import BlindedSigningKey, blind_public_key
from .canonical import Operation, build_message
from .config import SigningConfig
from .errors import InvalidFieldValue, KeyMismatch
from .keys import KeyMaterial, _require_key
from .signer import b64e, decode_signature, sign, sign_b64, verify
from .subaccount import Permission, SubaccountToken, decode_token, describe_permissions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DelegationCertificate:
    """An owner-signed grant: the token plus the owner's signature over its
    36 raw bytes. Attached unchanged to every delegated request."""

    token: SubaccountToken
    owner_signature: bytes
    owner_public_key: bytes
    blinded: bool = True

    @property
    def token_hex(self) -> str:
        return self.token.hex()

    @property
    def signature_b64(self) -> str:
        return b64e(self.owner_signature)

    def verify(self) -> bool:
        return verify(self.owner_public_key, self.token.to_bytes(), self.owner_signature)

    def request_fields(self) -> Dict[str, str]:
        return {"subaccount": self.token_hex, "subaccount_sig": self.signature_b64}


@dataclass(frozen=True)
class DelegatedSignature:
    signature: str
    subaccount: str
    subaccount_sig: str

    def to_dict(self) -> Dict[str, str]:
        return {"signature": self.signature, "subaccount": self.subaccount, "subaccount_sig": self.subaccount_sig}


def _parse_key(field: str, key: Union[str, bytes]) -> bytes:
    if isinstance(key, str):
        try:
            key = bytes.fromhex(key)
        except ValueError as exc:
            raise InvalidFieldValue(field, "must be hex") from exc
    return _require_key(key, field.replace("_", " "))


class DelegationAuthority:
    """Creates subaccount grants for one account owner and signs the
    revocation messages for them."""

    def __init__(self, owner: KeyMaterial, config: Optional[SigningConfig] = None):
        self.owner = owner
        self.config = config or SigningConfig()

    def create_delegation(
        self,
        target_public_key: Union[str, bytes],
        permissions: int = Permission.READ,
        network_prefix: Optional[int] = None,
    ) -> DelegationCertificate:
        target = _parse_key("target_public_key", target_public_key)
        prefix = self.config.network_prefix if network_prefix is None else network_prefix
        if self.config.blind_subaccounts:
            embedded = blind_public_key(self.owner.public_key, target)
        else:
            logger.warning("creating unblinded subaccount token; the delegate's key is visible and linkable")
            embedded = target
        token = SubaccountToken(prefix=prefix, permissions=int(permissions), public_key=embedded)
        owner_sig = sign(self.owner.key_pair.secret_key, token.to_bytes())
        logger.debug(
            "created subaccount token prefix=%02x permissions=%s blinded=%s",
            token.prefix,
            describe_permissions(token.permissions),
            self.config.blind_subaccounts,
        )
        return DelegationCertificate(
            token=token,
            owner_signature=owner_sig,
            owner_public_key=self.owner.public_key,
            blinded=self.config.blind_subaccounts,
        )

    def sign_revocation(self, token: Union[DelegationCertificate, SubaccountToken, str, bytes]) -> str:
        message = build_message(Operation.REVOKE_SUBACCOUNT, token=token_ref(token))
        return sign_b64(self.owner.key_pair.secret_key, message)

    def sign_unrevocation(self, tokens: Sequence[Union[DelegationCertificate, SubaccountToken, str, bytes]], timestamp: int) -> str:
        message = build_message(Operation.UNREVOKE_SUBACCOUNT, timestamp=timestamp, tokens=[token_ref(t) for t in tokens])
        return sign_b64(self.owner.key_pair.secret_key, message)


def token_ref(token: Union[DelegationCertificate, SubaccountToken, str, bytes]) -> Union[str, bytes]:
    if isinstance(token, DelegationCertificate):
        return token.token_hex
    if isinstance(token, SubaccountToken):
        return token.hex()
    return token


def load_delegation(
    token: Union[str, bytes],
    owner_signature: Union[str, bytes],
    owner_public_key: Union[str, bytes],
    blinded: bool = True,
    config: Optional[SigningConfig] = None,
) -> DelegationCertificate:
    """Rebuild a certificate received from an owner and check its signature."""
    config = config or SigningConfig()
    if isinstance(owner_signature, str):
        owner_signature = decode_signature(owner_signature)
    cert = DelegationCertificate(
        token=decode_token(token, strict=config.strict_reserved),
        owner_signature=bytes(owner_signature),
        owner_public_key=_parse_key("owner_public_key", owner_public_key),
        blinded=blinded,
    )
    if not cert.verify():
        raise InvalidFieldValue("subaccount_sig", "does not verify against the owner public key")
    return cert


def delegate_signing_key(delegate: KeyMaterial, certificate: DelegationCertificate) -> Optional[BlindedSigningKey]:
    """The key a delegate must sign with to act under certificate."""
    if certificate.blinded:
        key = BlindedSigningKey.derive(delegate.key_pair, certificate.owner_public_key)
        if key.public_key != certificate.token.public_key:
            raise KeyMismatch("delegate key does not match the blinded key in the subaccount token")
        return key
    if delegate.public_key != certificate.token.public_key:
        raise KeyMismatch("delegate key does not match the key in the subaccount token")
    return None


def assemble_delegated_request(
    operation_message: bytes,
    delegate: KeyMaterial,
    certificate: DelegationCertificate,
) -> DelegatedSignature:
    """The delegate signs the operation's own canonical message; the owner's
    signature only vouches for the token."""
    blinded_key = delegate_signing_key(delegate, certificate)
    if blinded_key is not None:
        sig = blinded_key.sign(operation_message)
    else:
        sig = sign(delegate.key_pair.secret_key, operation_message)
    return DelegatedSignature(
        signature=b64e(sig),
        subaccount=certificate.token_hex,
        subaccount_sig=certificate.signature_b64,
    )
