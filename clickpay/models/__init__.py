from clickpay.models.enums import OperationMode, PaymentStatus, SessionEventKind
from clickpay.models.fees import FeeEstimate, HybridTier, PricingRule
from clickpay.models.payment import ClientContext, SessionEvent, StatusSnapshot

__all__ = [
    "ClientContext",
    "FeeEstimate",
    "HybridTier",
    "OperationMode",
    "PaymentStatus",
    "PricingRule",
    "SessionEvent",
    "SessionEventKind",
    "StatusSnapshot",
]
