"""
FastAPI application factory.

* Registers routes for fares, negotiations, bookings and admin.
* Wires the pricing service, negotiation engine and booking service onto
  ``app.state``; the primary pricing client is closed on shutdown.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import admin, bookings, fares, negotiations
from src.config import settings
from src.services.bookings import BookingService
from src.services.negotiation import BidNegotiationEngine
from src.services.pricing import PricingService

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the primary pricing HTTP client on shutdown."""
    yield
    await app.state.pricing_service.aclose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="NEMT Fare & Negotiation API",
        description=(
            "Validates trip coordinates, estimates fares with a local backup "
            "when the primary pricing service is down, and runs the bounded "
            "bid / counter-offer negotiation between riders and drivers."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.pricing_service = PricingService.from_settings()
    app.state.negotiation_engine = BidNegotiationEngine()
    app.state.booking_service = BookingService()

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(fares.router, prefix="/api/v1")
    app.include_router(negotiations.router, prefix="/api/v1")
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
