from __future__ import annotations

from typing import Optional


class SwarmAuthError(ValueError):
    pass


class InvalidSeedLength(SwarmAuthError):
    def __init__(self, length: int):
        self.length = length
        super().__init__(f"ed25519 seed must be 32 bytes, got {length}")


class InvalidKeyLength(SwarmAuthError):
    def __init__(self, length: int, expected: int = 32, what: str = "public key"):
        self.length = length
        self.expected = expected
        super().__init__(f"{what} must be {expected} bytes, got {length}")


class InvalidPublicKey(SwarmAuthError):
    pass


class MalformedToken(SwarmAuthError):
    pass


class ReservedBytesNonZero(MalformedToken):
    def __init__(self, reserved: bytes):
        self.reserved = reserved
        super().__init__(f"subaccount token reserved bytes must be zero, got {reserved.hex()}")


class UnsupportedOperation(SwarmAuthError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"unsupported operation: {operation!r}")


class MissingRequiredField(SwarmAuthError):
    def __init__(self, operation: str, field: str):
        self.operation = operation
        self.field = field
        super().__init__(f"{operation}: {field} is required")


class InvalidFieldValue(SwarmAuthError):
    def __init__(self, field: str, message: str, operation: Optional[str] = None):
        self.operation = operation
        self.field = field
        prefix = f"{operation}: " if operation else ""
        super().__init__(f"{prefix}{field} {message}")


class KeyMismatch(SwarmAuthError):
    pass


class PermissionDenied(SwarmAuthError):
    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation}: {message}")
