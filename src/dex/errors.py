"""Domain errors raised by route discovery, quoting and swap execution."""

from __future__ import annotations

from typing import Optional


class DexError(Exception):
    """Base class for dex errors."""


class NoDataError(DexError):
    """Pool data source unreachable or returned a malformed response."""


class NoRouteError(DexError):
    """Route search produced zero candidates."""


class QuoteError(DexError):
    """Simulated trade reverted or returned an unusable result."""

    def __init__(self, message: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(message)


class EncodingError(DexError):
    """Malformed swap path input."""


class InsufficientBalanceError(DexError):
    """Pre-flight balance check failed; nothing was submitted."""


class TransactionFailedError(DexError):
    """Submitted transaction has no receipt or was mined unsuccessfully."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)
