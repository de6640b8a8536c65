"""Domain enumerations and state-transition rules."""

import enum


class VehicleType(str, enum.Enum):
    STANDARD = "standard"
    WHEELCHAIR = "wheelchair"
    STRETCHER = "stretcher"


class StairTier(str, enum.Enum):
    NONE = "none"
    ONE_TO_THREE = "1-3"
    FOUR_TO_TEN = "4-10"
    ELEVEN_PLUS = "11+"
    FULL_FLIGHT = "full_flight"


class ActorRole(str, enum.Enum):
    RIDER = "rider"
    DRIVER = "driver"

    @property
    def counterparty(self) -> "ActorRole":
        return ActorRole.DRIVER if self is ActorRole.RIDER else ActorRole.RIDER


class NegotiationStatus(str, enum.Enum):
    PROPOSED = "PROPOSED"
    COUNTERED = "COUNTERED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


# State machine: maps current status -> set of valid next statuses
NEGOTIATION_TRANSITIONS: dict[NegotiationStatus, set[NegotiationStatus]] = {
    NegotiationStatus.PROPOSED: {
        NegotiationStatus.COUNTERED,
        NegotiationStatus.ACCEPTED,
        NegotiationStatus.REJECTED,
        NegotiationStatus.EXPIRED,
    },
    NegotiationStatus.COUNTERED: {
        NegotiationStatus.COUNTERED,
        NegotiationStatus.ACCEPTED,
        NegotiationStatus.REJECTED,
        NegotiationStatus.EXPIRED,
    },
    NegotiationStatus.ACCEPTED: set(),
    NegotiationStatus.REJECTED: set(),
    NegotiationStatus.EXPIRED: set(),
}

TERMINAL_STATUSES = frozenset(
    status for status, nxt in NEGOTIATION_TRANSITIONS.items() if not nxt
)


class ServiceRegion(str, enum.Enum):
    CONTINENTAL_US = "CONTINENTAL_US"
    ALASKA = "ALASKA"
    HAWAII = "HAWAII"
    PUERTO_RICO_USVI = "PUERTO_RICO_USVI"
    GUAM_NMI = "GUAM_NMI"
    AMERICAN_SAMOA = "AMERICAN_SAMOA"
