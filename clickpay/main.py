"""
Clickpay — UPI payment client API.

Exposes the merchant pricing catalog, the fee estimator and UPI deep
link / QR generation for payments tracked by the gateway.

Start the server:
    uvicorn clickpay.main:app --reload
"""

import logging

from fastapi import FastAPI

from clickpay.api.fees import router as fees_router
from clickpay.api.health import router as health_router
from clickpay.api.payments import router as payments_router
from clickpay.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


app = FastAPI(
    title="Clickpay",
    description=(
        "Client layer for a UPI payment gateway: merchant fee estimation, "
        "payment status tracking and UPI deep link / QR generation."
    ),
    version="0.1.0",
)

app.include_router(health_router)
app.include_router(fees_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
