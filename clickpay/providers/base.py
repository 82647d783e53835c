"""
Abstract payment status lookup interface.

A payment session only needs one thing from the gateway: the current
state of a transaction. Implementations wrap the real HTTP endpoint or
simulate it for demos and tests.
"""

from abc import ABC, abstractmethod

from clickpay.models.payment import StatusSnapshot


class PaymentStatusClient(ABC):
    """Abstract base class for status lookups."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Client identifier (e.g. 'http', 'mock')."""
        ...

    @abstractmethod
    async def fetch_status(self, transaction_id: str) -> StatusSnapshot:
        """
        Look up the current status of a transaction.

        Raises:
            NotFoundError: The gateway explicitly reports the transaction as unknown.
            TransientError: Network, timeout or malformed response (retry later).
        """
        ...

    async def aclose(self) -> None:
        """Release any held connections."""
