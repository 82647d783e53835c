"""Enumerations for the payment client domain model."""

from enum import Enum


class OperationMode(str, Enum):
    """Merchant payment-processing arrangement."""

    GATEWAY_ONLY = "GATEWAY_ONLY"
    FULL_PROCESSOR = "FULL_PROCESSOR"
    HYBRID = "HYBRID"


class PaymentStatus(str, Enum):
    """Lifecycle states for a tracked payment."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class SessionEventKind(str, Enum):
    """Notifications a payment session sends to its observer."""

    STATUS_CHANGED = "status_changed"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"
