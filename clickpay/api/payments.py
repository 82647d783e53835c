"""
Payment link endpoints.

GET /payments/{transaction_id}/upi-link — Deep link, QR text and payload fields.
GET /payments/{transaction_id}/qr       — QR code as a base64 PNG.

Both read the transaction's current amount and description from the
gateway, then build the link locally.
"""

from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from clickpay.config import settings
from clickpay.engine.errors import EncodingError, InvalidInputError, NotFoundError, TransientError
from clickpay.engine.session import PaymentSession
from clickpay.engine.upi import UpiLinkBuilder, UpiPayload, format_amount
from clickpay.models.payment import ClientContext
from clickpay.providers.base import PaymentStatusClient
from clickpay.providers.http_provider import HttpStatusClient

router = APIRouter(prefix="/payments", tags=["payments"])


class UpiLinkResponse(BaseModel):
    transaction_id: str
    status: str
    uri: str
    qr_text: str
    payee_address: str
    amount: str
    note: str
    currency_code: str


class QrResponse(BaseModel):
    transaction_id: str
    png_base64: str


async def get_status_client() -> AsyncGenerator[PaymentStatusClient, None]:
    context = ClientContext(
        base_url=settings.gateway_base_url,
        token=settings.gateway_token,
        timeout=settings.http_timeout_s,
    )
    async with HttpStatusClient(context) as client:
        yield client


def get_link_builder() -> UpiLinkBuilder:
    return UpiLinkBuilder()


async def _load_session(client: PaymentStatusClient, transaction_id: str) -> PaymentSession:
    try:
        snapshot = await client.fetch_status(transaction_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransientError as e:
        raise HTTPException(status_code=503, detail=f"Payment status unavailable: {e}")
    try:
        return PaymentSession.from_snapshot(snapshot, client)
    except InvalidInputError as e:
        raise HTTPException(status_code=502, detail=f"Gateway returned unusable payment data: {e}")


def _build(builder: UpiLinkBuilder, session: PaymentSession) -> UpiPayload:
    try:
        return builder.build(session)
    except EncodingError as e:
        raise HTTPException(status_code=422, detail={"field": e.field, "error": e.message})


@router.get("/{transaction_id}/upi-link", response_model=UpiLinkResponse)
async def get_upi_link(
    transaction_id: str,
    client: PaymentStatusClient = Depends(get_status_client),
    builder: UpiLinkBuilder = Depends(get_link_builder),
):
    """Build the UPI deep link shoppers open in their payment app."""
    session = await _load_session(client, transaction_id)
    payload = _build(builder, session)
    return UpiLinkResponse(
        transaction_id=session.transaction_id,
        status=session.status.value,
        uri=payload.to_uri(),
        qr_text=payload.to_qr_string(),
        payee_address=payload.payee_address,
        amount=format_amount(payload.amount),
        note=payload.note,
        currency_code=payload.currency_code,
    )


@router.get("/{transaction_id}/qr", response_model=QrResponse)
async def get_qr(
    transaction_id: str,
    client: PaymentStatusClient = Depends(get_status_client),
    builder: UpiLinkBuilder = Depends(get_link_builder),
):
    """Render the payment QR code."""
    session = await _load_session(client, transaction_id)
    payload = _build(builder, session)
    return QrResponse(transaction_id=session.transaction_id, png_base64=payload.qr_png_base64())
