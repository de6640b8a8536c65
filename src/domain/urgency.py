"""
Urgency classification.

A ride booked less than ``threshold_hours`` before pickup is *urgent*: it
carries a flat cancellation fee and must be prioritised by dispatch.
The flag is computed once at booking confirmation and never
re-evaluated, otherwise a rider could dodge the fee by waiting.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from src.config import settings


def as_utc(moment: datetime) -> datetime:
    """Read naive timestamps as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class UrgencyFlag:
    is_urgent: bool
    hours_until_pickup: float
    cancellation_fee_cents: int
    priority_matching: bool
    evaluated_at: datetime


class UrgencyPolicy:
    def __init__(
        self,
        threshold_hours: float = settings.urgent_threshold_hours,
        urgent_fee_cents: int = settings.urgent_cancellation_fee_cents,
        late_fee_cents: int = settings.late_cancellation_fee_cents,
    ):
        self.threshold_hours = threshold_hours
        self.urgent_fee_cents = urgent_fee_cents
        self.late_fee_cents = late_fee_cents

    def classify(self, scheduled_time: datetime, now: Optional[datetime] = None) -> UrgencyFlag:
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        hours = (as_utc(scheduled_time) - now).total_seconds() / 3600
        urgent = hours < self.threshold_hours
        return UrgencyFlag(
            is_urgent=urgent,
            hours_until_pickup=hours,
            cancellation_fee_cents=self.urgent_fee_cents if urgent else 0,
            priority_matching=urgent,
            evaluated_at=now,
        )

    def cancellation_fee_cents(
        self,
        flag: UrgencyFlag,
        scheduled_time: datetime,
        cancelled_at: Optional[datetime] = None,
    ) -> int:
        """Fee owed when the rider cancels at *cancelled_at*."""
        if flag.is_urgent:
            return flag.cancellation_fee_cents
        cancelled_at = as_utc(cancelled_at) if cancelled_at is not None else datetime.now(timezone.utc)
        hours_before = (as_utc(scheduled_time) - cancelled_at).total_seconds() / 3600
        return self.late_fee_cents if hours_before < self.threshold_hours else 0
