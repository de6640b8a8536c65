"""
Error taxonomy.

Expected failures (bad coordinates, bound violations, round limits, ...)
travel as ``DomainError`` values inside result objects.  Only contract
violations raise one of the exception classes below.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


class ErrorCode(str, enum.Enum):
    INVALID_COORDINATE = "INVALID_COORDINATE"
    DISTANCE_IMPLAUSIBLE = "DISTANCE_IMPLAUSIBLE"
    BOUNDS_VIOLATION = "BOUNDS_VIOLATION"
    ROUND_LIMIT_EXCEEDED = "ROUND_LIMIT_EXCEEDED"
    INVALID_ACTOR = "INVALID_ACTOR"
    DUPLICATE_SUBMISSION = "DUPLICATE_SUBMISSION"
    STALE_STATE = "STALE_STATE"
    CHAIN_CLOSED = "CHAIN_CLOSED"
    FINAL_OFFER_UNCONFIRMED = "FINAL_OFFER_UNCONFIRMED"
    PRICING_UNAVAILABLE = "PRICING_UNAVAILABLE"


UNPRICEABLE = frozenset({ErrorCode.INVALID_COORDINATE, ErrorCode.DISTANCE_IMPLAUSIBLE})

USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.BOUNDS_VIOLATION: "Your offer must stay within 30% of the original amount.",
    ErrorCode.ROUND_LIMIT_EXCEEDED: "No more counter-offers allowed. Accept or decline the current offer.",
    ErrorCode.INVALID_ACTOR: "You are not allowed to perform this action on this offer.",
    ErrorCode.DUPLICATE_SUBMISSION: "This offer has already been submitted.",
    ErrorCode.STALE_STATE: "This offer has changed. Please refresh and try again.",
    ErrorCode.CHAIN_CLOSED: "This negotiation is closed.",
    ErrorCode.FINAL_OFFER_UNCONFIRMED: "Please confirm that this is your final offer.",
    ErrorCode.PRICING_UNAVAILABLE: "We cannot process this request at this time.",
}


@dataclass(frozen=True)
class DomainError:
    code: ErrorCode
    message: str
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

    @property
    def user_message(self) -> str:
        if self.code is ErrorCode.BOUNDS_VIOLATION and self.min_amount is not None:
            return (
                f"Your offer must be between ${self.min_amount:.2f} "
                f"and ${self.max_amount:.2f}."
            )
        if self.code in UNPRICEABLE:
            from .coordinates import user_friendly_error

            return f"We cannot price this trip. {user_friendly_error(self.message)}."
        return USER_MESSAGES[self.code]


# ── Hard failures ─────────────────────────────────────────────────────


class InvalidStateTransition(Exception):
    """Raised when a status change violates a state machine."""


class UnknownBidError(Exception):
    """Raised when a bid id does not belong to the negotiation chain."""


class ChainNotFoundError(Exception):
    """Raised when no negotiation chain is stored under the given id."""


class PricingUnavailable(Exception):
    """Raised by a pricing source that cannot produce a quote."""


class BookingNotFoundError(Exception):
    """Raised when no ride booking is stored under the given id."""
