from __future__ import annotations

import base64
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Union

from .canonical import Namespace, Operation, build_message, token_hex
from .config import SigningConfig
from .delegation import DelegationCertificate, assemble_delegated_request, delegate_signing_key, token_ref
from .errors import InvalidFieldValue, PermissionDenied
from .keys import KeyMaterial, KeyType, PublicKeyHandle
from .signer import sign_b64
from .subaccount import Permission, SubaccountToken, describe_permissions

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 14 * 24 * 60 * 60 * 1000

REQUIRED_PERMISSION: Dict[str, Permission] = {
    Operation.RETRIEVE: Permission.READ,
    Operation.GET_EXPIRIES: Permission.READ,
    Operation.MONITOR: Permission.READ,
    Operation.STORE: Permission.WRITE,
    Operation.EXPIRE_MSGS: Permission.WRITE,
    Operation.EXPIRE_ALL: Permission.WRITE,
    Operation.DELETE: Permission.DELETE,
    Operation.DELETE_ALL: Permission.DELETE,
    Operation.DELETE_BEFORE: Permission.DELETE,
}

OWNER_ONLY_OPERATIONS = frozenset({
    Operation.REVOKE_SUBACCOUNT,
    Operation.UNREVOKE_SUBACCOUNT,
    Operation.REVOKED_SUBACCOUNTS,
})


def now_ms() -> int:
    return int(time.time() * 1000)


def stable_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class OwnerAuth:
    pubkey: str
    signature: str

    def fields(self) -> Dict[str, str]:
        return {"pubkey": self.pubkey, "signature": self.signature}


@dataclass(frozen=True)
class SessionAuth:
    pubkey: str
    pubkey_ed25519: str
    signature: str
    ed25519_field: str = "pubkey_ed25519"

    def fields(self) -> Dict[str, str]:
        return {"pubkey": self.pubkey, self.ed25519_field: self.pubkey_ed25519, "signature": self.signature}


@dataclass(frozen=True)
class DelegatedAuth:
    pubkey: str
    signature: str
    subaccount: str
    subaccount_sig: str

    def fields(self) -> Dict[str, str]:
        return {
            "pubkey": self.pubkey,
            "signature": self.signature,
            "subaccount": self.subaccount,
            "subaccount_sig": self.subaccount_sig,
        }


RequestAuth = Union[OwnerAuth, SessionAuth, DelegatedAuth]


@dataclass(frozen=True)
class SignedRequest:
    method: str
    params: Dict[str, Any]
    auth: Optional[RequestAuth] = None

    def to_dict(self) -> Dict[str, Any]:
        params = dict(self.params)
        if self.auth is not None:
            params.update(self.auth.fields())
        return {"method": self.method, "params": params}

    def to_json(self) -> str:
        return stable_json(self.to_dict())


def _encode_data(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    if not isinstance(data, (bytes, bytearray)):
        raise InvalidFieldValue("data", "must be bytes or str", Operation.STORE)
    return base64.b64encode(bytes(data)).decode("ascii")


class StorageRequestBuilder:
    """Builds signed storage RPC requests for one account.

    Owner builders sign with the account key. Delegated builders (see
    delegated()) address the owner's account but sign with the delegate's key
    and attach the owner's subaccount grant.
    """

    def __init__(
        self,
        keys: KeyMaterial,
        config: Optional[SigningConfig] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.keys = keys
        self.config = config or SigningConfig()
        self.clock = clock or now_ms
        self.account: PublicKeyHandle = keys.handle(self.config)
        self.certificate: Optional[DelegationCertificate] = None

    @classmethod
    def delegated(
        cls,
        delegate: KeyMaterial,
        certificate: DelegationCertificate,
        config: Optional[SigningConfig] = None,
        clock: Optional[Callable[[], int]] = None,
        account_prefix: Optional[int] = None,
    ) -> "StorageRequestBuilder":
        config = config or SigningConfig()
        if config.session_id:
            raise InvalidFieldValue("session_id", "is not supported for delegated requests")
        builder = cls(delegate, config, clock)
        prefix = certificate.token.prefix if account_prefix is None else account_prefix
        builder.account = PublicKeyHandle(prefix=prefix, key=certificate.owner_public_key)
        if not certificate.token.applies_to(prefix):
            raise PermissionDenied(
                "delegation",
                f"token prefix {certificate.token.prefix:02x} does not cover account prefix {prefix:02x}",
            )
        delegate_signing_key(delegate, certificate)
        builder.certificate = certificate
        return builder

    @property
    def pubkey(self) -> str:
        return self.account.hex()

    def _timestamp(self, timestamp: Optional[int]) -> int:
        return self.clock() if timestamp is None else timestamp

    def _check_permission(self, operation: str) -> None:
        token: SubaccountToken = self.certificate.token
        if operation in OWNER_ONLY_OPERATIONS:
            raise PermissionDenied(operation, "is restricted to the account owner")
        needed = REQUIRED_PERMISSION[operation]
        if not token.allows(needed):
            raise PermissionDenied(
                operation,
                f"requires {needed.name.lower()} permission, token grants {describe_permissions(token.permissions)}",
            )

    def _signed(self, operation: str, method: str, params: Dict[str, Any], ed25519_field: str = "pubkey_ed25519", **fields: Any) -> SignedRequest:
        message = build_message(operation, **fields)
        if self.certificate is not None:
            self._check_permission(operation)
            d = assemble_delegated_request(message, self.keys, self.certificate)
            auth: RequestAuth = DelegatedAuth(
                pubkey=self.pubkey,
                signature=d.signature,
                subaccount=d.subaccount,
                subaccount_sig=d.subaccount_sig,
            )
        elif self.account.key_type == KeyType.X25519:
            auth = SessionAuth(
                pubkey=self.pubkey,
                pubkey_ed25519=self.account.pubkey_ed25519_hex,
                signature=sign_b64(self.keys.key_pair.secret_key, message),
                ed25519_field=ed25519_field,
            )
        else:
            auth = OwnerAuth(pubkey=self.pubkey, signature=sign_b64(self.keys.key_pair.secret_key, message))
        logger.debug("signed %s request prefix=%02x auth=%s", method, self.account.prefix, type(auth).__name__)
        return SignedRequest(method=method, params=params, auth=auth)

    def store(
        self,
        data: Union[bytes, str],
        ttl: int = DEFAULT_TTL_MS,
        namespace: int = 0,
        timestamp: Optional[int] = None,
    ) -> SignedRequest:
        ts = self._timestamp(timestamp)
        params = {"timestamp": ts, "ttl": ttl, "data": _encode_data(data), "namespace": namespace}
        return self._signed(Operation.STORE, "store", params, timestamp=ts, namespace=namespace)

    def retrieve(
        self,
        namespace: int = 0,
        last_hash: Optional[str] = None,
        max_count: Optional[int] = None,
        max_size: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> SignedRequest:
        ts = self._timestamp(timestamp)
        params: Dict[str, Any] = {"namespace": namespace, "timestamp": ts}
        if last_hash is not None:
            params["last_hash"] = last_hash
        if max_count is not None:
            params["max_count"] = max_count
        if max_size is not None:
            params["max_size"] = max_size
        return self._signed(Operation.RETRIEVE, "retrieve", params, timestamp=ts, namespace=namespace)

    def delete(self, messages: Sequence[str], required: bool = False) -> SignedRequest:
        params = {"messages": list(messages), "required": required}
        return self._signed(Operation.DELETE, "delete", params, messages=list(messages))

    def delete_all(self, namespace: Namespace = 0, timestamp: Optional[int] = None) -> SignedRequest:
        ts = self._timestamp(timestamp)
        params = {"namespace": namespace, "timestamp": ts}
        return self._signed(Operation.DELETE_ALL, "delete_all", params, timestamp=ts, namespace=namespace)

    def delete_before(self, before: int, namespace: Namespace = 0) -> SignedRequest:
        params = {"namespace": namespace, "before": before}
        return self._signed(Operation.DELETE_BEFORE, "delete_before", params, before=before, namespace=namespace)

    def expire(self, messages: Sequence[str], expiry: int, shorten: bool = False, extend: bool = False) -> SignedRequest:
        params: Dict[str, Any] = {"messages": list(messages), "expiry": expiry}
        if shorten:
            params["shorten"] = True
        if extend:
            params["extend"] = True
        return self._signed(
            Operation.EXPIRE_MSGS, "expire", params,
            messages=list(messages), expiry=expiry, shorten=shorten, extend=extend,
        )

    def expire_all(self, expiry: int, namespace: Namespace = None) -> SignedRequest:
        params: Dict[str, Any] = {"expiry": expiry}
        if namespace is not None:
            params["namespace"] = namespace
        return self._signed(Operation.EXPIRE_ALL, "expire_all", params, expiry=expiry, namespace=namespace)

    def get_expiries(self, messages: Sequence[str], timestamp: Optional[int] = None) -> SignedRequest:
        ts = self._timestamp(timestamp)
        params = {"messages": list(messages), "timestamp": ts}
        return self._signed(Operation.GET_EXPIRIES, "get_expiries", params, timestamp=ts, messages=list(messages))

    def revoke_subaccount(
        self,
        token: Union[DelegationCertificate, SubaccountToken, str],
        timestamp: Optional[int] = None,
    ) -> SignedRequest:
        ts = self._timestamp(timestamp)
        revoke = token_hex(Operation.REVOKE_SUBACCOUNT, token_ref(token))
        # the signed message covers the token only
        params = {"revoke": revoke, "timestamp": ts}
        return self._signed(Operation.REVOKE_SUBACCOUNT, "revoke_subaccount", params, token=revoke)

    def unrevoke_subaccount(
        self,
        tokens: Sequence[Union[DelegationCertificate, SubaccountToken, str]],
        timestamp: Optional[int] = None,
    ) -> SignedRequest:
        ts = self._timestamp(timestamp)
        hexes = [token_hex(Operation.UNREVOKE_SUBACCOUNT, token_ref(t)) for t in tokens]
        params = {"unrevoke": hexes, "timestamp": ts}
        return self._signed(Operation.UNREVOKE_SUBACCOUNT, "unrevoke_subaccount", params, timestamp=ts, tokens=hexes)

    def revoked_subaccounts(self, timestamp: Optional[int] = None) -> SignedRequest:
        ts = self._timestamp(timestamp)
        return self._signed(Operation.REVOKED_SUBACCOUNTS, "revoked_subaccounts", {"timestamp": ts}, timestamp=ts)

    def get_swarm(self) -> SignedRequest:
        return SignedRequest(method="get_swarm", params={"pubkey": self.pubkey})

    def monitor(
        self,
        namespaces: Sequence[int],
        service: str,
        service_info: Dict[str, Any],
        enc_key: str,
        data: bool = False,
        timestamp: Optional[int] = None,
    ) -> SignedRequest:
        ts = self._timestamp(timestamp)
        namespaces = list(namespaces)
        params = {
            "namespaces": namespaces,
            "data": data,
            "sig_ts": ts,
            "service": service,
            "service_info": dict(service_info),
            "enc_key": enc_key,
        }
        return self._signed(
            Operation.MONITOR, "monitor", params, ed25519_field="session_ed25519",
            account=self.account.to_bytes(), timestamp=ts, namespaces=namespaces, data=data,
        )

