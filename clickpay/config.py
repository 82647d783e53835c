"""Application configuration via environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings

from clickpay.models.fees import HybridTier


class Settings(BaseSettings):
    log_level: str = "INFO"

    # Gateway the status client talks to
    gateway_base_url: str = "http://localhost:8084"
    gateway_token: Optional[str] = None
    http_timeout_s: float = 10.0

    # UPI link defaults
    payee_address: str = "merchant@upi"
    currency_code: str = "INR"  # ISO 4217 settlement currency

    # Session polling; caps default to unbounded
    poll_interval_ms: int = 5000
    poll_max_attempts: Optional[int] = None
    poll_max_duration_s: Optional[float] = None

    # HYBRID percentage fee tiers, e.g. '[{"up_to": 2000, "rate": "0.015"}, {"up_to": null, "rate": "0"}]'
    hybrid_fee_tiers: list[HybridTier] = []

    mock_latency_ms: int = 0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "CLICKPAY_"}


settings = Settings()
