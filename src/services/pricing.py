"""
Fare quoting with graceful degradation.

Two ``PricingSource`` implementations sit behind one ``PricingService``:
the primary online service is tried first, and any ``PricingUnavailable``
falls through to the local ``BackupFareCalculator``.  Callers never see
which path failed, only the ``source`` of the quote they got.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from src.config import settings
from src.domain.distance import DistanceCalculator
from src.domain.errors import DomainError, PricingUnavailable
from src.domain.pricing import (
    BackupFareCalculator,
    FareBreakdown,
    FareRequest,
    SuggestedBidRange,
    format_duration,
    suggested_bid_range,
)
from src.infrastructure.pricing_client import PrimaryPricingClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FareQuote:
    success: bool
    source: str
    estimated_fare: Optional[Decimal] = None
    breakdown: Optional[FareBreakdown] = None
    distance_miles: Optional[float] = None
    estimated_duration: Optional[str] = None
    suggested_range: Optional[SuggestedBidRange] = None
    error: Optional[DomainError] = None


# ── Sources ───────────────────────────────────────────────────────────


class PricingSource(ABC):
    name: str

    @abstractmethod
    async def quote(self, request: FareRequest) -> FareQuote: ...


class PrimaryPricingSource(PricingSource):
    name = "primary"

    def __init__(self, client: Optional[PrimaryPricingClient] = None):
        self.client = client

    async def quote(self, request: FareRequest) -> FareQuote:
        if self.client is None:
            raise PricingUnavailable("Primary pricing service is not configured")
        total, distance = await self.client.fetch_quote(request)
        return FareQuote(
            success=True,
            source=self.name,
            estimated_fare=total,
            distance_miles=distance,
            estimated_duration=format_duration(distance) if distance is not None else None,
            suggested_range=suggested_bid_range(total),
        )


class BackupPricingSource(PricingSource):
    name = "backup"

    def __init__(self, calculator: Optional[BackupFareCalculator] = None):
        self.calculator = calculator or BackupFareCalculator()

    async def quote(self, request: FareRequest) -> FareQuote:
        result = self.calculator.calculate_backup_fare(request)
        if not result.success:
            return FareQuote(success=False, source=self.name, error=result.domain_error)
        distance = result.breakdown.distance_miles
        return FareQuote(
            success=True,
            source=self.name,
            estimated_fare=result.estimated_fare,
            breakdown=result.breakdown,
            distance_miles=distance,
            estimated_duration=format_duration(distance),
            suggested_range=suggested_bid_range(result.estimated_fare),
        )


# ── Service facade ────────────────────────────────────────────────────


class PricingService:
    """High-level API used by the booking flow and the API layer.

    Both endpoints are validated and the trip distance checked before any
    source is asked.
    """

    def __init__(
        self,
        primary: PricingSource,
        backup: PricingSource,
        distance_calculator: Optional[DistanceCalculator] = None,
    ):
        self.primary = primary
        self.backup = backup
        self.distance_calculator = distance_calculator or DistanceCalculator()

    @classmethod
    def from_settings(cls) -> PricingService:
        client = None
        if settings.primary_pricing_url:
            client = PrimaryPricingClient(settings.primary_pricing_url)
        return cls(PrimaryPricingSource(client), BackupPricingSource())

    async def quote(self, request: FareRequest) -> FareQuote:
        distance = self.distance_calculator.calculate_validated_distance(
            request.pickup, request.dropoff
        )
        if not distance.success:
            logger.info("Trip cannot be priced: %s", distance.error)
            return FareQuote(success=False, source="validation", error=distance.domain_error)

        try:
            quote = await self.primary.quote(request)
        except PricingUnavailable as exc:
            logger.warning("Primary pricing unavailable, using backup fare: %s", exc)
        else:
            if quote.distance_miles is None:
                quote = replace(
                    quote,
                    distance_miles=distance.distance,
                    estimated_duration=format_duration(distance.distance),
                )
            return quote

        quote = await self.backup.quote(request)
        if not quote.success:
            logger.info("Backup fare refused: %s", quote.error.message)
        return quote

    async def aclose(self) -> None:
        client = getattr(self.primary, "client", None)
        if client is not None:
            await client.aclose()
