# nftmarket/errors.py
"""
Failure kinds raised by the marketplace.

Every failed operation raises a MarketError subclass that names exactly
one ErrorKind. Callers should branch on ``error.kind`` (or the subclass),
never on the message text.
"""

from enum import Enum


class ErrorKind(Enum):
    """Closed set of ledger failure kinds."""
    NULL_PRICE = "NullPrice"
    NOT_FOUND = "NotFound"
    INCORRECT_PRICE = "IncorrectPrice"
    NOT_ASSET_OWNER = "NotAssetOwner"
    UNAUTHORIZED = "Unauthorized"
    NO_FUNDS_TO_WITHDRAW = "NoFundsToWithdraw"


class MarketError(Exception):
    """Base class for ledger failures. Subclasses bind ``kind``."""

    kind: ErrorKind

    def __init__(self, message: str = None):
        super().__init__(message or self.kind.value)


class NullPrice(MarketError):
    """Listing price was zero or negative."""
    kind = ErrorKind.NULL_PRICE


class NotFound(MarketError):
    """Unknown asset id, or no active listing for it."""
    kind = ErrorKind.NOT_FOUND


class IncorrectPrice(MarketError):
    """Payment did not exactly match the listing price."""
    kind = ErrorKind.INCORRECT_PRICE


class NotAssetOwner(MarketError):
    """Caller has no authority over the asset or listing."""
    kind = ErrorKind.NOT_ASSET_OWNER


class Unauthorized(MarketError):
    """Non-administrator called an administrator-only operation."""
    kind = ErrorKind.UNAUTHORIZED


class NoFundsToWithdraw(MarketError):
    """Fee balance is zero."""
    kind = ErrorKind.NO_FUNDS_TO_WITHDRAW


