"""
Error taxonomy for the payment client core.

  - InvalidInputError: caller-supplied input out of domain (fails fast)
  - TransientError: retryable lookup failure, never a payment outcome
  - NotFoundError: the gateway does not know the transaction (terminal)
  - EncodingError: data that cannot be embedded in a UPI deep link
"""

from typing import Optional


class ClickpayError(Exception):
    """Base exception for the client core."""


class InvalidInputError(ClickpayError, ValueError):
    """A numeric or enum input is outside its domain."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class TransientError(ClickpayError):
    """Network, timeout or malformed-response failure. Safe to retry."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ClickpayError):
    """The remote authority explicitly reported the transaction as unknown."""

    def __init__(self, transaction_id: str, message: str = ""):
        super().__init__(message or f"Payment not found: {transaction_id}")
        self.transaction_id = transaction_id


class EncodingError(ClickpayError, ValueError):
    """A value cannot be safely embedded in a UPI link."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
