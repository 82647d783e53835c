from clickpay.fees.catalog import PRICING, catalog, pricing_for, resolve_mode
from clickpay.fees.estimator import estimate

__all__ = ["PRICING", "catalog", "pricing_for", "resolve_mode", "estimate"]
