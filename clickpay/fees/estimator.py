"""
Merchant fee estimation.

Derives the monthly cost of an operation mode from the merchant's monthly
volume and average transaction size:

  1. transaction_count = floor(volume / avg_size)
  2. transaction_fees  = transaction_count * per_transaction_fee
  3. percentage_fees   = volume * rate
  4. total             = monthly_fee + transaction_fees + percentage_fees
  5. effective rate    = total / volume * 100, one decimal, half-up

HYBRID has no fixed rate. Its rate is read from a tier table keyed on
average transaction size; without a table the estimate is refused rather
than guessed.

All arithmetic is Decimal so the same inputs always give identical output.
Precision grows with the volume to average ratio, so the transaction count
is always exact.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Optional, Sequence, Union

from clickpay.config import settings
from clickpay.engine.errors import InvalidInputError
from clickpay.fees.catalog import PRICING, resolve_mode
from clickpay.models.enums import OperationMode
from clickpay.models.fees import FeeEstimate, HybridTier

Number = Union[int, float, Decimal, str]

ONE_DECIMAL = Decimal("0.1")
HUNDRED = Decimal("100")

# Significant digits kept beyond the whole-transaction count
BASE_PRECISION = 28
MAX_PRECISION = 1000


def _to_positive_decimal(field: str, value: Number) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInputError(field, f"expected a number, got {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInputError(field, f"not a number: {value!r}") from None
    if not amount.is_finite():
        raise InvalidInputError(field, f"must be finite, got {value!r}")
    if amount <= 0:
        raise InvalidInputError(field, f"must be greater than zero, got {value!r}")
    return amount


def _working_precision(whole_digits: int) -> int:
    """Precision that keeps a value with whole_digits integer digits exact."""
    precision = max(whole_digits, 1) + BASE_PRECISION
    if precision > MAX_PRECISION:
        raise InvalidInputError("monthly_volume", "out of range for the average transaction size")
    return precision


def validate_tiers(tiers: Sequence[HybridTier]) -> None:
    """
    Check that a tier table is usable.

    Bounds must strictly increase and only the last tier may be open-ended.
    """
    previous: Optional[Decimal] = None
    for index, tier in enumerate(tiers):
        if tier.up_to is None:
            if index != len(tiers) - 1:
                raise InvalidInputError("hybrid_fee_tiers", "only the last tier may omit up_to")
            continue
        if previous is not None and tier.up_to <= previous:
            raise InvalidInputError("hybrid_fee_tiers", "tier bounds must be strictly increasing")
        previous = tier.up_to


def hybrid_rate(avg_transaction_size: Decimal, tiers: Sequence[HybridTier]) -> Decimal:
    """Rate of the first tier whose bound covers the average transaction size."""
    if not tiers:
        raise InvalidInputError(
            "percentage_fee",
            "HYBRID rate is variable; configure hybrid_fee_tiers to estimate it",
        )
    validate_tiers(tiers)
    for tier in tiers:
        if tier.up_to is None or avg_transaction_size <= tier.up_to:
            return tier.rate
    raise InvalidInputError(
        "percentage_fee",
        f"no HYBRID tier covers an average transaction size of {avg_transaction_size}",
    )


def estimate(
    mode: Union[OperationMode, str],
    monthly_volume: Number,
    avg_transaction_size: Number,
    *,
    hybrid_tiers: Optional[Sequence[HybridTier]] = None,
) -> FeeEstimate:
    """
    Estimate the merchant's monthly cost.

    Args:
        mode: Operation mode (enum or name).
        monthly_volume: Total monthly transaction volume, > 0.
        avg_transaction_size: Average ticket size, > 0.
        hybrid_tiers: Rate table for HYBRID. Defaults to settings.hybrid_fee_tiers.

    Returns:
        FeeEstimate with every component of the monthly total.

    Raises:
        InvalidInputError: naming the offending field.
    """
    resolved = resolve_mode(mode)
    volume = _to_positive_decimal("monthly_volume", monthly_volume)
    avg_size = _to_positive_decimal("avg_transaction_size", avg_transaction_size)
    pricing = PRICING[resolved]

    if pricing.percentage_fee is not None:
        rate = pricing.percentage_fee
    else:
        tiers = settings.hybrid_fee_tiers if hybrid_tiers is None else hybrid_tiers
        rate = hybrid_rate(avg_size, tiers)

    monthly_fee = Decimal(pricing.monthly_fee)
    count_digits = volume.adjusted() - avg_size.adjusted() + 1

    with localcontext() as ctx:
        ctx.prec = _working_precision(max(count_digits, volume.adjusted() + 1, 4) + 2)
        transaction_count = int(volume // avg_size)
        transaction_fees = Decimal(transaction_count * pricing.per_transaction_fee)
        percentage_fees = volume * rate
        total = monthly_fee + transaction_fees + percentage_fees

        # total / volume * 100, one decimal place
        ctx.prec = max(ctx.prec, _working_precision(total.adjusted() - volume.adjusted() + 4))
        effective_rate = (total / volume * HUNDRED).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)

    return FeeEstimate(
        mode=resolved,
        setup_fee=Decimal(pricing.setup_fee),
        monthly_fee=monthly_fee,
        transaction_fees=transaction_fees,
        percentage_fees=percentage_fees,
        total_monthly_fee=total,
        transaction_count=transaction_count,
        effective_rate_percent=effective_rate,
    )
