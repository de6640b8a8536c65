"""
Bid Negotiation Rules
=====================

Pure functions over immutable ``NegotiationChain`` snapshots.  Locking,
storage and logging live in ``src.services.negotiation``.

Rules
-----
* **Anchor**: every counter-offer must satisfy
  ``(1 - flex) x original <= amount <= (1 + flex) x original`` where
  ``original`` is the first bid of the chain, never the latest counter.
  The comparison uses the exact products; ``counter_bounds`` reports
  them rounded inward to whole cents.
* **Rounds**: ``remaining = max(0, max_rounds - (len(bids) - 1))``.  The
  submission made when ``remaining == 1`` is the *final offer* and needs
  explicit confirmation.  A counter attempted with no rounds left expires
  the chain.
* **Turns**: a party cannot counter its own latest bid, and never accepts
  a bid it created.  Any bid from the counterparty may be accepted while
  the chain is open.
* **Retries**: a counter identical to the actor's own latest bid is a
  duplicate, not a new round.
* **Staleness**: the caller's snapshot must carry the stored version;
  the first writer wins and the loser is told to re-read.

Complexity: O(1) per rule, O(B) to look up a bid id (B = bids in chain).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import Optional, Union

from src.config import settings

from .entities import Actor, Bid, NegotiationChain
from .enums import ActorRole, NegotiationStatus
from .errors import DomainError, ErrorCode
from .pricing import CENT, suggested_bid_range, to_money

Money = Union[Decimal, float, int, str]


@dataclass(frozen=True)
class NegotiationResult:
    success: bool
    chain: Optional[NegotiationChain] = None
    bid: Optional[Bid] = None
    error: Optional[DomainError] = None


def _fail(code: ErrorCode, message: str, chain: Optional[NegotiationChain] = None, **extra) -> NegotiationResult:
    return NegotiationResult(success=False, chain=chain, error=DomainError(code, message, **extra))


def _new_id() -> str:
    return uuid.uuid4().hex


def _same_notes(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip() == (b or "").strip()


class NegotiationRules:
    def __init__(
        self,
        max_rounds: int = settings.max_counter_rounds,
        flexibility: float = settings.counter_flexibility,
    ):
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.max_rounds = max_rounds
        self.flexibility = Decimal(str(flexibility))

    # ── Read-only predicates ──────────────────────────────────────

    def exact_bounds(self, chain: NegotiationChain) -> tuple[Decimal, Decimal]:
        original = chain.original_amount
        return original * (1 - self.flexibility), original * (1 + self.flexibility)

    def counter_bounds(self, chain: NegotiationChain) -> tuple[Decimal, Decimal]:
        """Lowest and highest whole-cent amounts a counter-offer may take."""
        low, high = self.exact_bounds(chain)
        return (
            low.quantize(CENT, rounding=ROUND_CEILING),
            high.quantize(CENT, rounding=ROUND_FLOOR),
        )

    def within_bounds(self, chain: NegotiationChain, amount: Decimal) -> bool:
        low, high = self.exact_bounds(chain)
        return low <= amount <= high

    @staticmethod
    def remaining_offers(chain: NegotiationChain) -> int:
        return max(0, chain.max_rounds - (len(chain.bids) - 1))

    def is_final_offer(self, chain: NegotiationChain) -> bool:
        return not chain.is_terminal and self.remaining_offers(chain) == 1

    # ── Transitions ───────────────────────────────────────────────

    def open(
        self,
        *,
        ride_id: int,
        rider_id: int,
        driver_id: int,
        amount: Money,
        created_by: ActorRole,
        notes: Optional[str] = None,
        suggested_amount: Optional[Money] = None,
    ) -> NegotiationResult:
        """Start a chain with the first bid (round 0), which becomes the anchor."""
        value = Decimal(str(amount))
        if value <= 0:
            return _fail(ErrorCode.BOUNDS_VIOLATION, "Bid amount must be positive")

        if suggested_amount is not None:
            band = suggested_bid_range(to_money(suggested_amount))
            if not band.min <= value <= band.max:
                return _fail(
                    ErrorCode.BOUNDS_VIOLATION,
                    f"Opening bid must be between {band.min} and {band.max}",
                    min_amount=band.min,
                    max_amount=band.max,
                )

        money = to_money(value)
        creator = ActorRole(created_by)
        bid = Bid(
            id=_new_id(),
            ride_id=ride_id,
            amount=money,
            round=0,
            original_amount=money,
            created_by=creator,
            created_by_id=rider_id if creator is ActorRole.RIDER else driver_id,
            notes=notes,
        )
        chain = NegotiationChain(
            id=_new_id(),
            ride_id=ride_id,
            rider_id=rider_id,
            driver_id=driver_id,
            original_amount=money,
            bids=(bid,),
            max_rounds=self.max_rounds,
        )
        return NegotiationResult(success=True, chain=chain, bid=bid)

    def counter(
        self,
        current: NegotiationChain,
        snapshot: NegotiationChain,
        amount: Money,
        notes: Optional[str],
        actor: Actor,
        confirm_final: bool = False,
    ) -> NegotiationResult:
        if not current.is_party(actor):
            return _fail(ErrorCode.INVALID_ACTOR, "Actor is not a party to this negotiation", current)

        value = Decimal(str(amount))
        latest = current.latest_bid
        if (
            latest.created_by is actor.role
            and latest.created_by_id == actor.user_id
            and latest.amount == to_money(value)
            and _same_notes(latest.notes, notes)
        ):
            return _fail(ErrorCode.DUPLICATE_SUBMISSION, "Identical offer already submitted", current)

        if snapshot.version != current.version:
            return _fail(ErrorCode.STALE_STATE, "Negotiation changed since it was read", current)

        if current.status is NegotiationStatus.EXPIRED:
            return _fail(ErrorCode.ROUND_LIMIT_EXCEEDED, "No counter-offers remaining", current)
        if current.is_terminal:
            return _fail(ErrorCode.CHAIN_CLOSED, f"Negotiation is {current.status.value}", current)

        if current.current_round >= current.max_rounds:
            expired = current.transition_to(NegotiationStatus.EXPIRED)
            return _fail(ErrorCode.ROUND_LIMIT_EXCEEDED, "No counter-offers remaining", expired)

        if latest.created_by is actor.role:
            return _fail(ErrorCode.INVALID_ACTOR, "Waiting for the other party to respond", current)

        if not self.within_bounds(current, to_money(value)):
            low, high = self.counter_bounds(current)
            return _fail(
                ErrorCode.BOUNDS_VIOLATION,
                f"Counter-offer must be between {low} and {high}",
                current,
                min_amount=low,
                max_amount=high,
            )

        if self.is_final_offer(current) and not confirm_final:
            return _fail(ErrorCode.FINAL_OFFER_UNCONFIRMED, "Final offer requires confirmation", current)

        next_round = current.current_round + 1
        bid = Bid(
            id=_new_id(),
            ride_id=current.ride_id,
            amount=to_money(value),
            round=next_round,
            original_amount=current.original_amount,
            created_by=actor.role,
            created_by_id=actor.user_id,
            notes=notes,
        )
        chain = current.transition_to(
            NegotiationStatus.COUNTERED,
            bids=current.bids + (bid,),
            current_round=next_round,
        )
        return NegotiationResult(success=True, chain=chain, bid=bid)

    def accept(
        self,
        current: NegotiationChain,
        snapshot: NegotiationChain,
        bid_id: str,
        actor: Actor,
    ) -> NegotiationResult:
        if not current.is_party(actor):
            return _fail(ErrorCode.INVALID_ACTOR, "Actor is not a party to this negotiation", current)

        bid = current.find_bid(bid_id)

        if current.is_terminal:
            return _fail(ErrorCode.CHAIN_CLOSED, f"Negotiation is {current.status.value}", current)
        if bid.created_by is actor.role:
            return _fail(ErrorCode.INVALID_ACTOR, "Cannot accept your own offer", current)
        if snapshot.version != current.version:
            return _fail(ErrorCode.STALE_STATE, "Negotiation changed since it was read", current)

        chain = current.transition_to(NegotiationStatus.ACCEPTED, agreed_amount=bid.amount)
        return NegotiationResult(success=True, chain=chain, bid=bid)

    def reject(
        self,
        current: NegotiationChain,
        snapshot: NegotiationChain,
        actor: Actor,
    ) -> NegotiationResult:
        if not current.is_party(actor):
            return _fail(ErrorCode.INVALID_ACTOR, "Actor is not a party to this negotiation", current)
        if current.is_terminal:
            return _fail(ErrorCode.CHAIN_CLOSED, f"Negotiation is {current.status.value}", current)
        if snapshot.version != current.version:
            return _fail(ErrorCode.STALE_STATE, "Negotiation changed since it was read", current)

        chain = current.transition_to(NegotiationStatus.REJECTED)
        return NegotiationResult(success=True, chain=chain)
