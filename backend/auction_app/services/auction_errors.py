"""Business-rule errors raised by the auction services.

Each error carries the severity/state pair the legacy stored procedures
reported through ``RAISERROR(message, 16, 1)``, so callers can surface the
same triple they always have.
"""
from __future__ import annotations


class AuctionError(RuntimeError):
    """Base class for auction business-rule failures."""

    def __init__(self, message: str, severity: int = 16, state: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.state = state


class ValidationError(AuctionError):
    """Raised when a request violates an auction rule (sellability, bid bounds, listing state)."""


class NotFoundError(AuctionError):
    """Raised when the product has no listing or no threshold row."""
