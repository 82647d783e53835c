"""Tests for UPI deep link and QR payload construction."""

import base64
from decimal import Decimal
from types import SimpleNamespace

import pytest

from clickpay.engine.errors import EncodingError
from clickpay.engine.session import PaymentSession
from clickpay.engine.upi import UpiLinkBuilder, format_amount, is_valid_vpa, parse_upi_uri
from clickpay.providers.mock_provider import MockStatusClient

from conftest import TXN_ID


def _session(amount="250.00", description=None, transaction_id=TXN_ID):
    return SimpleNamespace(transaction_id=transaction_id, amount=Decimal(amount), description=description)


@pytest.fixture
def builder():
    return UpiLinkBuilder(payee_address="merchant@upi", currency_code="INR")


class TestBuild:
    def test_standard_link(self, builder):
        payload = builder.build(_session(description="Order 42"))
        assert payload.to_uri() == (
            f"upi://pay?pa=merchant@upi&am=250.00&tr={TXN_ID}&tn=Order%2042&cu=INR"
        )

    def test_built_from_real_session(self, builder):
        session = PaymentSession(TXN_ID, "99.5", MockStatusClient(), description="Coffee")
        payload = builder.build(session)
        assert payload.amount == Decimal("99.5")
        assert "am=99.50" in payload.to_uri()
        assert payload.note == "Coffee"

    def test_default_note(self, builder):
        payload = builder.build(_session())
        assert payload.note == "Payment"
        assert "tn=Payment" in payload.to_uri()

    def test_qr_text_is_the_deep_link(self, builder):
        payload = builder.build(_session())
        assert payload.to_qr_string() == payload.to_uri()

    def test_defaults_from_settings(self):
        payload = UpiLinkBuilder().build(_session())
        assert payload.payee_address == "merchant@upi"
        assert payload.currency_code == "INR"

    def test_currency_is_upper_cased(self):
        assert UpiLinkBuilder(currency_code="inr").currency_code == "INR"

    def test_same_session_same_link(self, builder):
        session = _session(description="Order 42")
        assert builder.build(session).to_uri() == builder.build(session).to_uri()


class TestEscaping:
    @pytest.mark.parametrize("note", [
        "Tea & biscuits",
        "a=b",
        "Invoice #7",
        "50% off?",
        "1+1",
        "chai / samosa",
    ])
    def test_reserved_characters_round_trip(self, builder, note):
        uri = builder.build(_session(description=note)).to_uri()
        params = parse_upi_uri(uri)
        assert params["tn"] == note
        assert set(params) == {"pa", "am", "tr", "tn", "cu"}
        assert params["cu"] == "INR"

    def test_unicode_note(self, builder):
        uri = builder.build(_session(description="चाय ☕")).to_uri()
        assert uri.isascii()
        assert parse_upi_uri(uri)["tn"] == "चाय ☕"

    def test_reference_is_escaped(self, builder):
        uri = builder.build(_session(transaction_id="TXN&am=1")).to_uri()
        params = parse_upi_uri(uri)
        assert params["tr"] == "TXN&am=1"
        assert params["am"] == "250.00"


class TestRejects:
    @pytest.mark.parametrize("amount", ["0", "-10", "NaN", "Infinity", "10.001", "1E+30"])
    def test_bad_amount(self, builder, amount):
        with pytest.raises(EncodingError) as exc:
            builder.build(_session(amount=amount))
        assert exc.value.field == "amount"

    def test_control_characters_in_note(self, builder):
        with pytest.raises(EncodingError) as exc:
            builder.build(_session(description="line\nbreak"))
        assert exc.value.field == "note"

    def test_lone_surrogate_in_note(self, builder):
        with pytest.raises(EncodingError):
            builder.build(_session(description="bad \ud800"))

    def test_invalid_payee(self):
        with pytest.raises(EncodingError) as exc:
            UpiLinkBuilder(payee_address="not-a-vpa").build(_session())
        assert exc.value.field == "payee_address"

    def test_empty_reference(self, builder):
        with pytest.raises(EncodingError):
            builder.build(_session(transaction_id=""))


class TestQr:
    def test_png(self, builder):
        png = base64.b64decode(builder.build(_session()).qr_png_base64())
        assert png.startswith(b"\x89PNG\r\n\x1a\n")


class TestHelpers:
    @pytest.mark.parametrize("address", ["merchant@upi", "john.doe+1@okaxis", "9876543210@ybl"])
    def test_valid_vpa(self, address):
        assert is_valid_vpa(address)

    @pytest.mark.parametrize("address", ["", None, "merchant", "@upi", "merchant@", "a b@upi", "x@y@z"])
    def test_invalid_vpa(self, address):
        assert not is_valid_vpa(address)

    def test_format_amount(self):
        assert format_amount(Decimal("100")) == "100.00"
        assert format_amount(Decimal("1E+3")) == "1000.00"

    def test_parse_rejects_other_schemes(self):
        with pytest.raises(EncodingError):
            parse_upi_uri("https://pay?pa=merchant@upi")
