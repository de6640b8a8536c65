"""
Repository Pattern -- abstracts chain and booking storage so the services stay
storage-agnostic.

Only in-memory stores ship here; a database-backed repository only
needs the same methods.
"""

from __future__ import annotations

import itertools
import threading
from typing import Protocol

from src.domain.entities import NegotiationChain, RideBooking
from src.domain.errors import BookingNotFoundError, ChainNotFoundError


class NegotiationRepository(Protocol):
    def add(self, chain: NegotiationChain) -> NegotiationChain: ...

    def get(self, chain_id: str) -> NegotiationChain: ...

    def save(self, chain: NegotiationChain) -> NegotiationChain: ...

    def list_for_ride(self, ride_id: int) -> list[NegotiationChain]: ...


class InMemoryNegotiationRepository:
    def __init__(self):
        self._chains: dict[str, NegotiationChain] = {}
        self._guard = threading.Lock()

    def add(self, chain: NegotiationChain) -> NegotiationChain:
        with self._guard:
            if chain.id in self._chains:
                raise ValueError(f"Chain {chain.id} already exists")
            self._chains[chain.id] = chain
        return chain

    def get(self, chain_id: str) -> NegotiationChain:
        with self._guard:
            chain = self._chains.get(chain_id)
        if chain is None:
            raise ChainNotFoundError(f"Negotiation {chain_id} not found")
        return chain

    def save(self, chain: NegotiationChain) -> NegotiationChain:
        with self._guard:
            if chain.id not in self._chains:
                raise ChainNotFoundError(f"Negotiation {chain.id} not found")
            self._chains[chain.id] = chain
        return chain

    def list_for_ride(self, ride_id: int) -> list[NegotiationChain]:
        with self._guard:
            chains = [c for c in self._chains.values() if c.ride_id == ride_id]
        return sorted(chains, key=lambda c: c.bids[0].created_at)


class InMemoryBookingRepository:
    def __init__(self):
        self._bookings: dict[int, RideBooking] = {}
        self._ids = itertools.count(1)
        self._guard = threading.Lock()

    def add(self, booking: RideBooking) -> RideBooking:
        with self._guard:
            booking.id = next(self._ids)
            self._bookings[booking.id] = booking
        return booking

    def get(self, booking_id: int) -> RideBooking:
        with self._guard:
            booking = self._bookings.get(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return booking
