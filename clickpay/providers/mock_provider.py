"""
Mock status client for demos and tests.

Plays back a script of outcomes, one per call. Each entry is either a
PaymentStatus, a StatusSnapshot, or an exception instance to raise; the
last entry repeats once the script runs out. Also simulates latency and
records how many lookups were in flight at once.
"""

import asyncio
from decimal import Decimal
from typing import Optional, Sequence, Union

from clickpay.config import settings
from clickpay.models.enums import PaymentStatus
from clickpay.models.payment import StatusSnapshot
from clickpay.providers.base import PaymentStatusClient

Outcome = Union[PaymentStatus, StatusSnapshot, Exception]


class MockStatusClient(PaymentStatusClient):
    """Scripted status lookups with call accounting."""

    def __init__(
        self,
        script: Sequence[Outcome] = (PaymentStatus.PENDING,),
        latency_ms: Optional[int] = None,
        amount: Decimal = Decimal("100.00"),
        description: Optional[str] = None,
    ):
        if not script:
            raise ValueError("script must contain at least one outcome")
        self._script = list(script)
        self._latency_ms = latency_ms if latency_ms is not None else settings.mock_latency_ms
        self._amount = amount
        self._description = description
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "mock"

    def _next_outcome(self) -> Outcome:
        index = min(self.calls - 1, len(self._script) - 1)
        return self._script[index]

    async def fetch_status(self, transaction_id: str) -> StatusSnapshot:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            outcome = self._next_outcome()
            if self._latency_ms > 0:
                await asyncio.sleep(self._latency_ms / 1000)
            if isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, StatusSnapshot):
                return outcome
            return StatusSnapshot(
                transaction_id=transaction_id,
                status=outcome,
                amount=self._amount,
                description=self._description,
                payment_method="UPI_QR",
                remote_status=outcome.value,
            )
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True
