"""
UPI deep link and QR payload construction.

Builds the standard pay intent understood by every UPI app:

    upi://pay?pa=<payee>&am=<amount>&tr=<transactionRef>&tn=<note>&cu=<currency>

The same URI is the text content of the QR code shoppers scan. Every
value is percent-encoded, so a description containing ``&``, ``=`` or
``#`` can never inject or truncate parameters. Values that cannot be
represented faithfully raise EncodingError instead of producing a link
the UPI app would misread.
"""

import base64
import io
import re
import unicodedata
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Protocol
from urllib.parse import parse_qs, quote, urlsplit

import qrcode

from clickpay.config import settings
from clickpay.engine.errors import EncodingError

UPI_SCHEME = "upi"
DEFAULT_NOTE = "Payment"
TWO_PLACES = Decimal("0.01")

VPA_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+$")


class PayableSession(Protocol):
    """What the builder reads from a payment session."""

    transaction_id: str
    amount: Decimal
    description: Optional[str]


@dataclass(frozen=True)
class UpiPayload:
    """Fields of a UPI pay intent. Derived from a session, never stored."""

    payee_address: str
    amount: Decimal
    transaction_ref: str
    note: str
    currency_code: str

    def to_uri(self) -> str:
        params = [
            ("pa", quote(self.payee_address, safe="@")),
            ("am", format_amount(self.amount)),
            ("tr", quote(self.transaction_ref, safe="")),
            ("tn", quote(self.note, safe="")),
            ("cu", quote(self.currency_code, safe="")),
        ]
        return f"{UPI_SCHEME}://pay?" + "&".join(f"{key}={value}" for key, value in params)

    def to_qr_string(self) -> str:
        """QR text content; scanners read the same URI as the deep link."""
        return self.to_uri()

    def qr_png_base64(self, box_size: int = 10) -> str:
        """Render the QR code as a base64-encoded PNG."""
        qr = qrcode.QRCode(box_size=box_size, border=4)
        qr.add_data(self.to_qr_string())
        qr.make(fit=True)
        img = qr.make_image()
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return base64.b64encode(buf.getvalue()).decode()


def is_valid_vpa(address: Optional[str]) -> bool:
    """True for a syntactically valid virtual payment address (name@handle)."""
    return bool(address) and VPA_PATTERN.match(address) is not None


def format_amount(amount: Decimal) -> str:
    """Two-decimal rendering used in the ``am`` parameter."""
    return f"{amount.quantize(TWO_PLACES):f}"


def _check_amount(value: object) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise EncodingError("amount", f"not a number: {value!r}") from None
    if not amount.is_finite() or amount <= 0:
        raise EncodingError("amount", f"must be a positive finite amount, got {value!r}")
    try:
        rounded = amount.quantize(TWO_PLACES)
    except InvalidOperation:
        raise EncodingError("amount", f"out of range: {value!r}") from None
    if amount != rounded:
        raise EncodingError("amount", f"more than two decimal places: {value!r}")
    return amount


def _check_text(field: str, value: str) -> str:
    if any(unicodedata.category(ch) in ("Cc", "Cs") for ch in value):
        raise EncodingError(field, "contains control or unpaired surrogate characters")
    return value


class UpiLinkBuilder:
    """Derives UpiPayloads for one payee and settlement currency."""

    def __init__(self, payee_address: Optional[str] = None, currency_code: Optional[str] = None):
        self.payee_address = payee_address or settings.payee_address
        self.currency_code = (currency_code or settings.currency_code).upper()

    def build(self, session: PayableSession) -> UpiPayload:
        """
        Build the pay intent for a session's current amount and reference.

        Raises:
            EncodingError: amount, reference, note or payee cannot be embedded.
        """
        if not is_valid_vpa(self.payee_address):
            raise EncodingError("payee_address", f"not a valid UPI id: {self.payee_address!r}")
        if not session.transaction_id:
            raise EncodingError("transaction_ref", "transaction id is empty")

        return UpiPayload(
            payee_address=self.payee_address,
            amount=_check_amount(session.amount),
            transaction_ref=_check_text("transaction_ref", session.transaction_id),
            note=_check_text("note", session.description or DEFAULT_NOTE),
            currency_code=self.currency_code,
        )


def parse_upi_uri(uri: str) -> dict[str, str]:
    """Decode a UPI pay URI back into its parameters."""
    parts = urlsplit(uri)
    if parts.scheme != UPI_SCHEME or parts.netloc != "pay":
        raise EncodingError("uri", f"not a UPI pay link: {uri!r}")
    return {key: values[0] for key, values in parse_qs(parts.query, keep_blank_values=True).items()}
