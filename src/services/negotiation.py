"""
Bid Negotiation Engine
======================

Applies ``NegotiationRules`` to stored chains.

Concurrency safety
------------------
* A **per-chain lock** serialises writers on the same chain; chains for
  different rides never contend.
* Inside the lock the caller's snapshot is compared with the stored
  version.  The first writer wins and every later writer holding the same
  snapshot gets ``STALE_STATE`` and must re-read before retrying.

Failed results that still changed the chain (a counter attempted with no
rounds left expires it) are persisted as well.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from src.domain.entities import Actor, NegotiationChain
from src.domain.enums import ActorRole
from src.domain.errors import ErrorCode
from src.domain.negotiation import Money, NegotiationResult, NegotiationRules
from src.infrastructure.locks import KeyedLockRegistry
from src.infrastructure.repositories import (
    InMemoryNegotiationRepository,
    NegotiationRepository,
)

logger = logging.getLogger(__name__)


class BidNegotiationEngine:
    def __init__(
        self,
        repository: Optional[NegotiationRepository] = None,
        rules: Optional[NegotiationRules] = None,
        locks: Optional[KeyedLockRegistry] = None,
    ):
        self.repository = repository or InMemoryNegotiationRepository()
        self.rules = rules or NegotiationRules()
        self.locks = locks or KeyedLockRegistry()

    # ── Queries ───────────────────────────────────────────────────

    def get(self, chain_id: str) -> NegotiationChain:
        return self.repository.get(chain_id)

    def list_for_ride(self, ride_id: int) -> list[NegotiationChain]:
        return self.repository.list_for_ride(ride_id)

    def remaining_offers(self, chain: NegotiationChain) -> int:
        return self.rules.remaining_offers(chain)

    def is_final_offer(self, chain: NegotiationChain) -> bool:
        return self.rules.is_final_offer(chain)

    def counter_bounds(self, chain: NegotiationChain) -> tuple[Decimal, Decimal]:
        return self.rules.counter_bounds(chain)

    # ── Commands ──────────────────────────────────────────────────

    def open_negotiation(
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
        result = self.rules.open(
            ride_id=ride_id,
            rider_id=rider_id,
            driver_id=driver_id,
            amount=amount,
            created_by=created_by,
            notes=notes,
            suggested_amount=suggested_amount,
        )
        if result.success:
            self.repository.add(result.chain)
            logger.info(
                "Negotiation %s opened for ride %s at %s by %s",
                result.chain.id, ride_id, result.bid.amount, result.bid.created_by.value,
            )
        return result

    def submit_counter_offer(
        self,
        chain: NegotiationChain,
        amount: Money,
        notes: Optional[str],
        actor: Actor,
        confirm_final: bool = False,
    ) -> NegotiationResult:
        return self._apply(
            chain,
            "counter",
            lambda current: self.rules.counter(
                current, chain, amount, notes, actor, confirm_final
            ),
        )

    def accept_bid(self, chain: NegotiationChain, bid_id: str, actor: Actor) -> NegotiationResult:
        return self._apply(
            chain, "accept", lambda current: self.rules.accept(current, chain, bid_id, actor)
        )

    def reject_bid(self, chain: NegotiationChain, actor: Actor) -> NegotiationResult:
        return self._apply(
            chain, "reject", lambda current: self.rules.reject(current, chain, actor)
        )

    # ── Internals ─────────────────────────────────────────────────

    def _apply(self, snapshot: NegotiationChain, action: str, step) -> NegotiationResult:
        with self.locks.lock(snapshot.id):
            current = self.repository.get(snapshot.id)
            result = step(current)
            if result.chain is not None and result.chain.version > current.version:
                self.repository.save(result.chain)
                logger.info(
                    "Negotiation %s %s: %s -> %s (round %d/%d)",
                    current.id, action, current.status.value, result.chain.status.value,
                    result.chain.current_round, result.chain.max_rounds,
                )

        if result.chain is not None and result.chain.is_terminal:
            self.locks.discard(snapshot.id)

        if not result.success:
            log = logger.warning if result.error.code is ErrorCode.STALE_STATE else logger.info
            log(
                "Negotiation %s %s refused: %s (%s)",
                snapshot.id, action, result.error.code.value, result.error.message,
            )
        return result
