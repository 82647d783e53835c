"""
Operation mode pricing catalog.

Maps each OperationMode to its fixed pricing. This table is the single
source of truth for the fee estimator, the modes endpoint and any other
display surface.

  - GATEWAY_ONLY: merchant's own bank and processor, no percentage fee
  - FULL_PROCESSOR: we move the money, 1.5% of volume on top of fixed fees
  - HYBRID: split by transaction size, rate comes from a tier table
"""

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Union

from clickpay.engine.errors import InvalidInputError
from clickpay.models.enums import OperationMode
from clickpay.models.fees import PricingRule


PRICING: Mapping[OperationMode, PricingRule] = MappingProxyType({
    OperationMode.GATEWAY_ONLY: PricingRule(
        name="Payment Gateway Only",
        description="Use your own bank account and processor",
        setup_fee=0,
        monthly_fee=2000,
        per_transaction_fee=2,
        percentage_fee=Decimal("0"),
    ),
    OperationMode.FULL_PROCESSOR: PricingRule(
        name="Full Payment Processor",
        description="We handle everything including money movement",
        setup_fee=5000,
        monthly_fee=1000,
        per_transaction_fee=2,
        percentage_fee=Decimal("0.015"),
    ),
    OperationMode.HYBRID: PricingRule(
        name="Hybrid Mode",
        description="Flexible combination based on transaction size",
        setup_fee=2500,
        monthly_fee=1500,
        per_transaction_fee=2,
        percentage_fee=None,  # Variable
    ),
})


def catalog() -> Mapping[OperationMode, PricingRule]:
    """Return the read-only pricing catalog."""
    return PRICING


def resolve_mode(mode: Union[OperationMode, str]) -> OperationMode:
    """Accept an OperationMode or its name (case-insensitive)."""
    if isinstance(mode, OperationMode):
        return mode
    try:
        return OperationMode(str(mode).strip().upper())
    except ValueError:
        raise InvalidInputError("mode", f"unknown operation mode: {mode!r}") from None


def pricing_for(mode: Union[OperationMode, str]) -> PricingRule:
    return PRICING[resolve_mode(mode)]
