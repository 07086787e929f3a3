"""Exceptions raised by the local chain runtime."""

from typing import Optional


class ChainError(Exception):
    """Base exception for chain runtime errors."""
    pass


class Revert(ChainError):
    """Raised when a contract call aborts.

    Every state change made by the aborted call is rolled back before the
    exception reaches the caller.
    """

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or reason)


class InsufficientFunds(ChainError):
    """Raised when a sender cannot cover value plus gas."""

    def __init__(self, address: str, available: int, required: int):
        self.address = address
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient funds for {address}: "
            f"available {available}, required {required}"
        )


class TransferFailed(Revert):
    """Raised when an outbound value transfer fails."""

    def __init__(self, to_address: str, amount: int, cause: Optional[Exception] = None):
        self.to_address = to_address
        self.amount = amount
        self.cause = cause
        super().__init__(
            "TransferFailed",
            f"Transfer of {amount} wei to {to_address} failed"
            + (f": {cause}" if cause else "")
        )


class UnknownContract(Revert):
    """Raised when no contract is deployed at an address."""

    def __init__(self, message: str):
        super().__init__("UnknownContract", message)


class UnknownMethod(Revert):
    """Raised when a contract has no public method with the given name."""

    def __init__(self, message: str):
        super().__init__("UnknownMethod", message)
