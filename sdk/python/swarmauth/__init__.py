from .canonical import CANONICAL_VERSION, NAMESPACE_ALL, Operation, build_message
from .client import (
    DelegatedAuth,
    OwnerAuth,
    SessionAuth,
    SignedRequest,
    StorageRequestBuilder,
)
from .config import NETWORK_PREFIX_SESSION, NETWORK_PREFIX_TESTNET, SigningConfig
from .delegation import (
    DelegationAuthority,
    DelegationCertificate,
    assemble_delegated_request,
    load_delegation,
)
from .errors import (
    InvalidFieldValue,
    InvalidKeyLength,
    InvalidPublicKey,
    InvalidSeedLength,
    KeyMismatch,
    MalformedToken,
    MissingRequiredField,
    PermissionDenied,
    ReservedBytesNonZero,
    SwarmAuthError,
    UnsupportedOperation,
)
from .keys import KeyMaterial, KeyPair, KeyType, PublicKeyHandle, derive_public_key_x25519, generate
from .signer import sign, sign_b64, verify
from .subaccount import Permission, SubaccountToken, decode_token, encode_token, has_permission

__all__ = [
    "CANONICAL_VERSION",
    "NAMESPACE_ALL",
    "Operation",
    "build_message",
    "DelegatedAuth",
    "OwnerAuth",
    "SessionAuth",
    "SignedRequest",
    "StorageRequestBuilder",
    "NETWORK_PREFIX_SESSION",
    "NETWORK_PREFIX_TESTNET",
    "SigningConfig",
    "DelegationAuthority",
    "DelegationCertificate",
    "assemble_delegated_request",
    "load_delegation",
    "InvalidFieldValue",
    "InvalidKeyLength",
    "InvalidPublicKey",
    "InvalidSeedLength",
    "KeyMismatch",
    "MalformedToken",
    "MissingRequiredField",
    "PermissionDenied",
    "ReservedBytesNonZero",
    "SwarmAuthError",
    "UnsupportedOperation",
    "KeyMaterial",
    "KeyPair",
    "KeyType",
    "PublicKeyHandle",
    "derive_public_key_x25519",
    "generate",
    "sign",
    "sign_b64",
    "verify",
    "Permission",
    "SubaccountToken",
    "decode_token",
    "encode_token",
    "has_permission",
]
