"""Centralised application settings loaded from environment / .env file."""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Primary (online) pricing service
    primary_pricing_url: Optional[str] = None  # unset => always use backup
    primary_pricing_timeout_seconds: float = 5.0

    # Backup fare calculator
    distance_rate_per_mile: float = 2.50  # USD / mile
    platform_fee_rate: float = 0.05  # applied to subtotal
    tax_rate: float = 0.08  # applied to subtotal + platform fee

    # Distance plausibility
    road_factor: float = 1.2  # great-circle -> estimated road miles
    min_distance_miles: float = 0.1
    max_distance_miles: float = 3_500.0

    # Bid negotiation
    max_counter_rounds: int = 3
    counter_flexibility: float = 0.30  # +/- 30 % of the original bid

    # Urgency
    urgent_threshold_hours: float = 24.0
    urgent_cancellation_fee_cents: int = 5_000  # flat $50
    late_cancellation_fee_cents: int = 2_500  # flat $25

    # API
    rate_limit: str = "100/minute"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
