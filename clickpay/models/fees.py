"""Value types for merchant pricing and fee estimates."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from clickpay.models.enums import OperationMode


@dataclass(frozen=True)
class PricingRule:
    """
    Pricing for one operation mode.

    percentage_fee is a fraction of monthly volume (0.015 == 1.5%). None
    means the rate is variable and comes from a hybrid tier table.
    """

    name: str
    description: str
    setup_fee: int
    monthly_fee: int
    per_transaction_fee: int
    percentage_fee: Optional[Decimal]

    @property
    def is_variable(self) -> bool:
        return self.percentage_fee is None


class HybridTier(BaseModel):
    """One row of the HYBRID rate table, matched on average transaction size."""

    up_to: Optional[Decimal] = Field(default=None, gt=0)  # inclusive; None = no upper bound
    rate: Decimal = Field(ge=0, le=1)

    model_config = {"frozen": True}


@dataclass(frozen=True)
class FeeEstimate:
    """Monthly cost breakdown for a mode, volume and average ticket size."""

    mode: OperationMode
    setup_fee: Decimal  # one-time, not part of the monthly total
    monthly_fee: Decimal
    transaction_fees: Decimal
    percentage_fees: Decimal
    total_monthly_fee: Decimal
    transaction_count: int
    effective_rate_percent: Decimal

    def as_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "setupFee": self.setup_fee,
            "monthlyFee": self.monthly_fee,
            "transactionFees": self.transaction_fees,
            "percentageFees": self.percentage_fees,
            "totalMonthlyFee": self.total_monthly_fee,
            "transactionCount": self.transaction_count,
            "effectiveRatePercent": self.effective_rate_percent,
        }
