"""Value types exchanged between the status client, sessions and the link builder."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from clickpay.engine.errors import NotFoundError
from clickpay.models.enums import PaymentStatus, SessionEventKind


@dataclass(frozen=True)
class ClientContext:
    """
    Explicit connection context for the status client.

    Credentials travel with the client instance instead of living in
    process-wide default headers.
    """

    base_url: str
    token: Optional[str] = None
    timeout: float = 10.0

    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers


@dataclass(frozen=True)
class StatusSnapshot:
    """One reading of a payment from the gateway."""

    transaction_id: str
    status: PaymentStatus
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: Optional[str] = None
    remote_status: Optional[str] = None  # gateway value before normalization


@dataclass(frozen=True)
class SessionEvent:
    """State-change notification delivered to a session observer."""

    kind: SessionEventKind
    transaction_id: str
    status: PaymentStatus
    error: Optional[NotFoundError] = None
