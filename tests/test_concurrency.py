"""
Concurrency safety tests.

Demonstrates:
1. Concurrent counter-offers on one chain: first writer wins, the rest
   see ``STALE_STATE``.
2. A counter racing a reject resolves to exactly one winner.
3. Per-key locks are independent across chains.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from src.domain.enums import NegotiationStatus
from src.domain.errors import ChainNotFoundError, ErrorCode
from src.infrastructure.locks import KeyedLockRegistry
from src.infrastructure.repositories import InMemoryNegotiationRepository
from tests.conftest import DRIVER, RIDER


def _race(*calls):
    """Run the callables at the same time and return their results in order."""
    barrier = threading.Barrier(len(calls))

    def run(call):
        barrier.wait()
        return call()

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(run, calls))


class TestChainSerialisation:
    def test_concurrent_counters_single_winner(self, engine, open_chain):
        snapshot = open_chain("100")
        calls = [
            (lambda amount=amount: engine.submit_counter_offer(
                snapshot, Decimal(amount), None, RIDER
            ))
            for amount in range(80, 88)
        ]
        results = _race(*calls)

        winners = [r for r in results if r.success]
        losers = [r for r in results if not r.success]
        assert len(winners) == 1
        assert {r.error.code for r in losers} == {ErrorCode.STALE_STATE}

        stored = engine.get(snapshot.id)
        assert stored.current_round == 1
        assert len(stored.bids) == 2
        assert stored.latest_bid.amount == winners[0].bid.amount

    def test_counter_racing_reject(self, engine, open_chain):
        snapshot = engine.submit_counter_offer(
            open_chain("100"), Decimal("90"), None, RIDER
        ).chain

        counter, reject = _race(
            lambda: engine.submit_counter_offer(snapshot, Decimal("95"), None, DRIVER),
            lambda: engine.reject_bid(snapshot, RIDER),
        )

        assert counter.success != reject.success
        loser = reject if counter.success else counter
        assert loser.error.code is ErrorCode.STALE_STATE
        stored = engine.get(snapshot.id)
        expected = NegotiationStatus.COUNTERED if counter.success else NegotiationStatus.REJECTED
        assert stored.status == expected
        assert stored.version == snapshot.version + 1

    def test_independent_chains_do_not_interfere(self, engine, open_chain):
        a, b = open_chain("100"), open_chain("200")
        ra, rb = _race(
            lambda: engine.submit_counter_offer(a, Decimal("90"), None, RIDER),
            lambda: engine.submit_counter_offer(b, Decimal("180"), None, RIDER),
        )
        assert ra.success and rb.success


class TestKeyedLocks:
    def test_same_key_shares_lock(self):
        registry = KeyedLockRegistry(timeout_seconds=0.01)
        held = registry.lock("chain-1")
        assert held.acquire()
        try:
            with pytest.raises(RuntimeError, match="Could not acquire lock"):
                with registry.lock("chain-1"):
                    pass
        finally:
            held.release()

    def test_different_keys_are_independent(self):
        registry = KeyedLockRegistry(timeout_seconds=0.01)
        with registry.lock("chain-1"):
            with registry.lock("chain-2") as other:
                assert other.key == "lock:chain-2"

    def test_discard_forgets_key(self):
        registry = KeyedLockRegistry()
        registry.lock("chain-1")
        assert len(registry) == 1
        registry.discard("chain-1")
        assert len(registry) == 0

    def test_terminal_chain_lock_is_released(self, engine, open_chain):
        chain = open_chain("100")
        engine.reject_bid(chain, RIDER)
        assert len(engine.locks) == 0


class TestRepository:
    def test_missing_chain(self):
        with pytest.raises(ChainNotFoundError):
            InMemoryNegotiationRepository().get("nope")

    def test_duplicate_add(self, engine, open_chain):
        chain = open_chain()
        with pytest.raises(ValueError):
            engine.repository.add(chain)

    def test_list_for_ride(self, engine, open_chain):
        first, second = open_chain("100"), open_chain("120")
        chains = engine.repository.list_for_ride(first.ride_id)
        assert [c.id for c in chains] == [first.id, second.id]
