"""
Negotiation endpoints
=====================

POST /api/v1/negotiations                     -- open a chain with the first bid
GET  /api/v1/negotiations?ride_id=N           -- chains opened for a ride
GET  /api/v1/negotiations/{chain_id}          -- chain state, bounds, offers left
POST /api/v1/negotiations/{chain_id}/counter  -- submit a counter-offer
POST /api/v1/negotiations/{chain_id}/accept   -- accept a counterparty bid
POST /api/v1/negotiations/{chain_id}/reject   -- walk away

Write endpoints carry the ``version`` the client last read so that a
request racing another writer is refused with 409 instead of acting on
an outdated offer.
"""

from __future__ import annotations

from dataclasses import replace

from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.dependencies import get_negotiation_engine, raise_for_error
from src.api.middleware import limiter
from src.api.schemas import (
    AcceptBidRequest,
    ActorFields,
    BidResponse,
    CounterOfferRequest,
    ErrorResponse,
    NegotiationOpenRequest,
    NegotiationResponse,
    RejectRequest,
)
from src.config import settings
from src.domain.entities import Actor, NegotiationChain
from src.domain.errors import ChainNotFoundError, UnknownBidError
from src.domain.negotiation import NegotiationResult
from src.services.negotiation import BidNegotiationEngine

router = APIRouter(prefix="/negotiations", tags=["negotiations"])

_ERRORS = {
    403: {"model": ErrorResponse, "description": "Wrong party for this action."},
    409: {"model": ErrorResponse, "description": "Stale, duplicate, closed or out of rounds."},
    422: {"model": ErrorResponse, "description": "Amount outside the allowed range."},
}


def _to_response(engine: BidNegotiationEngine, chain: NegotiationChain) -> NegotiationResponse:
    low, high = engine.counter_bounds(chain)
    return NegotiationResponse(
        id=chain.id,
        ride_id=chain.ride_id,
        rider_id=chain.rider_id,
        driver_id=chain.driver_id,
        status=chain.status,
        version=chain.version,
        current_round=chain.current_round,
        max_rounds=chain.max_rounds,
        original_amount=chain.original_amount,
        agreed_amount=chain.agreed_amount,
        remaining_offers=engine.remaining_offers(chain),
        is_final_offer=engine.is_final_offer(chain),
        min_counter_amount=low,
        max_counter_amount=high,
        bids=[BidResponse.model_validate(b) for b in chain.bids],
    )


def _snapshot(engine: BidNegotiationEngine, chain_id: str, body: ActorFields) -> NegotiationChain:
    """The chain as the client saw it: stored state stamped with the client's version."""
    try:
        chain = engine.get(chain_id)
    except ChainNotFoundError:
        raise HTTPException(status_code=404, detail="Negotiation not found")
    return replace(chain, version=body.version)


def _respond(engine: BidNegotiationEngine, result: NegotiationResult) -> NegotiationResponse:
    if not result.success:
        raise_for_error(result.error)
    return _to_response(engine, result.chain)


@router.post(
    "",
    status_code=201,
    response_model=NegotiationResponse,
    summary="Open a negotiation with the first bid",
    responses={422: _ERRORS[422]},
)
@limiter.limit(settings.rate_limit)
async def open_negotiation(
    request: Request,
    body: NegotiationOpenRequest,
    engine: BidNegotiationEngine = Depends(get_negotiation_engine),
):
    result = engine.open_negotiation(
        ride_id=body.ride_id,
        rider_id=body.rider_id,
        driver_id=body.driver_id,
        amount=body.amount,
        created_by=body.created_by,
        notes=body.notes,
        suggested_amount=body.suggested_amount,
    )
    return _respond(engine, result)


@router.get(
    "",
    response_model=list[NegotiationResponse],
    summary="List negotiations for a ride",
)
@limiter.limit(settings.rate_limit)
async def list_negotiations(
    request: Request,
    ride_id: int,
    engine: BidNegotiationEngine = Depends(get_negotiation_engine),
):
    return [_to_response(engine, chain) for chain in engine.list_for_ride(ride_id)]


@router.get(
    "/{chain_id}",
    response_model=NegotiationResponse,
    summary="Get negotiation state",
)
@limiter.limit(settings.rate_limit)
async def get_negotiation(
    request: Request,
    chain_id: str,
    engine: BidNegotiationEngine = Depends(get_negotiation_engine),
):
    try:
        chain = engine.get(chain_id)
    except ChainNotFoundError:
        raise HTTPException(status_code=404, detail="Negotiation not found")
    return _to_response(engine, chain)


@router.post(
    "/{chain_id}/counter",
    response_model=NegotiationResponse,
    summary="Submit a counter-offer",
    description=(
        "Amount must stay within 30% of the chain's original bid. "
        "When only one offer remains, ``confirm_final`` must be true."
    ),
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def counter_offer(
    request: Request,
    chain_id: str,
    body: CounterOfferRequest,
    engine: BidNegotiationEngine = Depends(get_negotiation_engine),
):
    snapshot = _snapshot(engine, chain_id, body)
    result = engine.submit_counter_offer(
        snapshot,
        body.amount,
        body.notes,
        Actor(body.user_id, body.role),
        confirm_final=body.confirm_final,
    )
    return _respond(engine, result)


@router.post(
    "/{chain_id}/accept",
    response_model=NegotiationResponse,
    summary="Accept a bid from the other party",
    responses={403: _ERRORS[403], 409: _ERRORS[409]},
)
@limiter.limit(settings.rate_limit)
async def accept_bid(
    request: Request,
    chain_id: str,
    body: AcceptBidRequest,
    engine: BidNegotiationEngine = Depends(get_negotiation_engine),
):
    snapshot = _snapshot(engine, chain_id, body)
    try:
        result = engine.accept_bid(snapshot, body.bid_id, Actor(body.user_id, body.role))
    except UnknownBidError:
        raise HTTPException(status_code=404, detail="Bid not found in this negotiation")
    return _respond(engine, result)


@router.post(
    "/{chain_id}/reject",
    response_model=NegotiationResponse,
    summary="Reject the negotiation",
    responses={403: _ERRORS[403], 409: _ERRORS[409]},
)
@limiter.limit(settings.rate_limit)
async def reject_negotiation(
    request: Request,
    chain_id: str,
    body: RejectRequest,
    engine: BidNegotiationEngine = Depends(get_negotiation_engine),
):
    snapshot = _snapshot(engine, chain_id, body)
    result = engine.reject_bid(snapshot, Actor(body.user_id, body.role))
    return _respond(engine, result)
