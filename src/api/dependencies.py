"""FastAPI dependency injection helpers."""

from fastapi import HTTPException, Request

from src.domain.errors import DomainError, ErrorCode
from src.services.bookings import BookingService
from src.services.negotiation import BidNegotiationEngine
from src.services.pricing import PricingService

ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_COORDINATE: 422,
    ErrorCode.DISTANCE_IMPLAUSIBLE: 422,
    ErrorCode.BOUNDS_VIOLATION: 422,
    ErrorCode.PRICING_UNAVAILABLE: 422,
    ErrorCode.INVALID_ACTOR: 403,
    ErrorCode.ROUND_LIMIT_EXCEEDED: 409,
    ErrorCode.DUPLICATE_SUBMISSION: 409,
    ErrorCode.STALE_STATE: 409,
    ErrorCode.CHAIN_CLOSED: 409,
    ErrorCode.FINAL_OFFER_UNCONFIRMED: 409,
}


def get_pricing_service(request: Request) -> PricingService:
    return request.app.state.pricing_service


def get_negotiation_engine(request: Request) -> BidNegotiationEngine:
    return request.app.state.negotiation_engine


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def raise_for_error(error: DomainError) -> None:
    """Translate a domain failure into an HTTP error carrying the structured detail."""
    raise HTTPException(
        status_code=ERROR_STATUS.get(error.code, 400),
        detail={
            "code": error.code.value,
            "message": error.message,
            "user_message": error.user_message,
            "min_amount": str(error.min_amount) if error.min_amount is not None else None,
            "max_amount": str(error.max_amount) if error.max_amount is not None else None,
        },
    )
