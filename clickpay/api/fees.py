"""
Merchant pricing endpoints.

GET /merchant/config/modes        — Pricing catalog for every operation mode.
GET /merchant/config/fee-estimate — Monthly cost for a mode, volume and ticket size.
"""

from decimal import Decimal
from typing import Union

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from clickpay.engine.errors import InvalidInputError
from clickpay.fees import catalog, estimate
from clickpay.models.fees import FeeEstimate

router = APIRouter(prefix="/merchant/config", tags=["merchant-config"])


class ModeDetail(BaseModel):
    name: str
    description: str
    setupFee: int
    monthlyFee: int
    transactionFee: int
    percentageFee: Union[float, str]  # percent of volume, or "Variable"


class FeeEstimateDetail(BaseModel):
    mode: str
    setupFee: float
    monthlyFee: float
    transactionFees: float
    percentageFees: float
    totalMonthlyFee: float
    transactionCount: int
    effectiveRatePercent: float


class FeeEstimateResponse(BaseModel):
    success: bool = True
    data: FeeEstimateDetail


def _estimate_to_detail(result: FeeEstimate) -> FeeEstimateDetail:
    return FeeEstimateDetail(**result.as_dict())


@router.get("/modes", response_model=dict[str, ModeDetail])
async def list_modes():
    """Pricing for every operation mode, as shown on the mode selector."""
    modes = {}
    for mode, rule in catalog().items():
        modes[mode.value] = ModeDetail(
            name=rule.name,
            description=rule.description,
            setupFee=rule.setup_fee,
            monthlyFee=rule.monthly_fee,
            transactionFee=rule.per_transaction_fee,
            percentageFee="Variable" if rule.is_variable else float(rule.percentage_fee * 100),
        )
    return modes


@router.get("/fee-estimate", response_model=FeeEstimateResponse)
async def fee_estimate(
    mode: str = Query(..., description="GATEWAY_ONLY, FULL_PROCESSOR or HYBRID"),
    monthly_volume: Decimal = Query(..., alias="monthlyVolume"),
    avg_transaction_size: Decimal = Query(..., alias="avgTransactionSize"),
):
    """
    Estimate monthly fees.

    Out-of-domain inputs return 422 with the offending field, never a
    partial estimate.
    """
    try:
        result = estimate(mode, monthly_volume, avg_transaction_size)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail={"field": e.field, "error": e.message})
    return FeeEstimateResponse(data=_estimate_to_detail(result))
