from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidFieldValue

NETWORK_PREFIX_TESTNET = 0x00
NETWORK_PREFIX_SESSION = 0x05


@dataclass(frozen=True)
class SigningConfig:
    """Immutable signing options, fixed when a builder or authority is created.

    session_id identifies the account by its X25519 key under the 05 prefix
    and makes requests carry the raw Ed25519 key in pubkey_ed25519.
    blind_subaccounts=False embeds the delegate's real key in subaccount
    tokens; that layout is not unlinkable and is meant for tests only.
    """

    network_prefix: int = NETWORK_PREFIX_TESTNET
    session_id: bool = False
    blind_subaccounts: bool = True
    strict_reserved: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.network_prefix, bool) or not isinstance(self.network_prefix, int) or not 0 <= self.network_prefix <= 0xFF:
            raise InvalidFieldValue("network_prefix", "must be an integer in 0..255")
        if self.session_id and self.network_prefix != NETWORK_PREFIX_SESSION:
            raise InvalidFieldValue("network_prefix", "must be 0x05 when session_id is set")

    @classmethod
    def testnet(cls, **kwargs) -> "SigningConfig":
        return cls(network_prefix=NETWORK_PREFIX_TESTNET, **kwargs)

    @classmethod
    def session(cls, **kwargs) -> "SigningConfig":
        return cls(network_prefix=NETWORK_PREFIX_SESSION, session_id=True, **kwargs)
