"""
HTTP status client for the payment gateway.

Talks to the gateway's JSON API, where every response is wrapped as
``{"success": bool, "data": ..., "error": ...}``:

  GET  /api/payments/status/{transaction_id}
  GET  /api/merchant/config/fee-estimate
  POST /api/payments/upi-request

Failure mapping:
  - 404, or success=false with a "not found" message -> NotFoundError
  - timeouts, transport errors, other non-2xx, success=false,
    unparseable bodies -> TransientError
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from urllib.parse import quote

import httpx

from clickpay.engine.errors import InvalidInputError, NotFoundError, TransientError
from clickpay.engine.upi import is_valid_vpa
from clickpay.fees.catalog import resolve_mode
from clickpay.models.enums import OperationMode, PaymentStatus
from clickpay.models.fees import FeeEstimate
from clickpay.models.payment import ClientContext, StatusSnapshot
from clickpay.providers.base import PaymentStatusClient

logger = logging.getLogger("clickpay.providers.http")

# Gateway status values -> session status
REMOTE_STATUS_MAP: dict[str, PaymentStatus] = {
    "PENDING": PaymentStatus.PENDING,
    "SUCCESS": PaymentStatus.SUCCESS,
    "COMPLETED": PaymentStatus.SUCCESS,
    # Refunds are only issued against settled payments
    "REFUNDED": PaymentStatus.SUCCESS,
    "FAILED": PaymentStatus.FAILED,
    "CANCELLED": PaymentStatus.FAILED,
    "EXPIRED": PaymentStatus.FAILED,
}


def _decimal_or_none(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise TransientError(f"Malformed amount in gateway response: {value!r}") from None


def _error_message(body: dict) -> str:
    return str(body.get("error") or body.get("message") or "")


def _signals_not_found(body: dict) -> bool:
    return "not found" in _error_message(body).lower()


class HttpStatusClient(PaymentStatusClient):
    """
    httpx-backed gateway client.

    Pass an existing ``httpx.AsyncClient`` to share a connection pool (or a
    mock transport in tests); otherwise one is created from the context and
    closed by ``aclose()``.
    """

    def __init__(self, context: ClientContext, client: Optional[httpx.AsyncClient] = None):
        self._context = context
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=context.base_url,
            timeout=context.timeout,
        )

    @property
    def name(self) -> str:
        return "http"

    @property
    def context(self) -> ClientContext:
        return self._context

    async def __aenter__(self) -> "HttpStatusClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(
                method, path, headers=self._context.headers(), **kwargs
            )
        except httpx.TimeoutException as e:
            raise TransientError(f"Gateway timeout on {method} {path}: {e}") from e
        except httpx.TransportError as e:
            raise TransientError(f"Gateway unreachable on {method} {path}: {e}") from e

    def _unwrap(self, response: httpx.Response, transaction_id: Optional[str] = None) -> Any:
        """Return the ``data`` member of a successful envelope or raise."""
        body: Any = None
        try:
            body = response.json()
        except ValueError:
            body = None

        if transaction_id is not None:
            if response.status_code == 404:
                raise NotFoundError(transaction_id)
            if isinstance(body, dict) and body.get("success") is False and _signals_not_found(body):
                raise NotFoundError(transaction_id, _error_message(body))

        if not response.is_success:
            raise TransientError(
                f"Gateway returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if not isinstance(body, dict):
            raise TransientError("Gateway returned a non-JSON body", status_code=response.status_code)
        if not body.get("success"):
            raise TransientError(
                f"Gateway reported failure: {_error_message(body) or 'unknown error'}",
                status_code=response.status_code,
            )
        return body.get("data")

    async def fetch_status(self, transaction_id: str) -> StatusSnapshot:
        path = f"/api/payments/status/{quote(transaction_id, safe='')}"
        response = await self._request("GET", path)
        data = self._unwrap(response, transaction_id=transaction_id)
        if not isinstance(data, dict):
            raise TransientError("Status response has no data object")

        remote_status = str(data.get("status") or "").upper()
        status = REMOTE_STATUS_MAP.get(remote_status)
        if status is None:
            raise TransientError(f"Unrecognized payment status: {data.get('status')!r}")

        snapshot = StatusSnapshot(
            transaction_id=str(data.get("transactionId") or transaction_id),
            status=status,
            amount=_decimal_or_none(data.get("amount")),
            description=data.get("description"),
            payment_method=data.get("paymentMethod"),
            created_at=data.get("createdAt"),
            remote_status=remote_status,
        )
        logger.debug("Status for %s: %s (%s)", transaction_id, status.value, remote_status)
        return snapshot

    async def fetch_fee_estimate(
        self,
        mode: OperationMode | str,
        monthly_volume: Decimal | float | int,
        avg_transaction_size: Decimal | float | int,
    ) -> FeeEstimate:
        """Ask the gateway for an estimate; the local estimator is the reference."""
        resolved = resolve_mode(mode)
        response = await self._request(
            "GET",
            "/api/merchant/config/fee-estimate",
            params={
                "mode": resolved.value,
                "monthlyVolume": str(monthly_volume),
                "avgTransactionSize": str(avg_transaction_size),
            },
        )
        data = self._unwrap(response)
        if not isinstance(data, dict):
            raise TransientError("Fee estimate response has no data object")

        def money(*keys: str) -> Decimal:
            for key in keys:
                if data.get(key) is not None:
                    return _decimal_or_none(data[key]) or Decimal("0")
            return Decimal("0")

        count = data.get("transactionCount", data.get("transactions", 0))
        return FeeEstimate(
            mode=resolved,
            setup_fee=money("setupFee"),
            monthly_fee=money("monthlyFee"),
            transaction_fees=money("transactionFees"),
            percentage_fees=money("percentageFees"),
            total_monthly_fee=money("totalMonthlyFee"),
            transaction_count=int(count or 0),
            effective_rate_percent=money("effectiveRatePercent", "effectiveRate"),
        )

    async def send_upi_request(self, transaction_id: str, upi_id: str) -> None:
        """Ask the gateway to push a collect request to the shopper's UPI id."""
        if not is_valid_vpa(upi_id):
            raise InvalidInputError("upi_id", f"not a valid UPI id: {upi_id!r}")
        response = await self._request(
            "POST",
            "/api/payments/upi-request",
            json={"transactionId": transaction_id, "upiId": upi_id},
        )
        self._unwrap(response, transaction_id=transaction_id)
        logger.info("UPI collect request sent for %s to %s", transaction_id, upi_id)
