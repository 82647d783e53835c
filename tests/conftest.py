"""Shared test fixtures."""

from decimal import Decimal

import pytest

from clickpay.models.enums import PaymentStatus
from clickpay.models.payment import StatusSnapshot
from clickpay.providers.mock_provider import MockStatusClient

TXN_ID = "TXN1700000000000ABC123"

# Fast cadence so polling tests finish in well under a second
FAST_POLL = 0.01


def make_snapshot(status: PaymentStatus, transaction_id: str = TXN_ID, **kwargs) -> StatusSnapshot:
    kwargs.setdefault("amount", Decimal("250.00"))
    return StatusSnapshot(
        transaction_id=transaction_id,
        status=status,
        remote_status=status.value,
        **kwargs,
    )


@pytest.fixture
def pending_client():
    """Gateway that never settles."""
    return MockStatusClient(script=[PaymentStatus.PENDING], latency_ms=0, amount=Decimal("250.00"))


@pytest.fixture
def events():
    """Collects observer notifications."""
    return []
