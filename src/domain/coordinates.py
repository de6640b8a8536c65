"""
US service-area coordinate validation.

Every check reports through ``ValidationResult``; nothing here raises.

Service regions
---------------
Disjoint lat/lng bounding boxes for the continental US, Alaska
(including the Aleutians west of the antimeridian), Hawaii, and the
inhabited territories.  Each region belongs to a *ground network*:
Continental US and Alaska are connected by road, every island group is
its own network.

Complexity: O(R) per call, R = number of regions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .entities import Coordinate
from .enums import ServiceRegion
from .errors import DomainError, ErrorCode

INVALID_FORMAT = "Invalid coordinate format"
LATITUDE_OUT_OF_RANGE = "Latitude out of valid range"
LONGITUDE_OUT_OF_RANGE = "Longitude out of valid range"
OUTSIDE_SERVICE_AREA = "Location outside US service area"
SENTINEL_DETECTED = "Invalid location coordinates detected"

# Upstream geocoders fall back to these when they fail.
SENTINEL_COORDINATES: tuple[tuple[float, float], ...] = (
    (0.0, 0.0),  # Null Island
    (1.0, 1.0),
    (90.0, 0.0),  # North Pole
    (-90.0, 0.0),  # South Pole
)
SENTINEL_TOLERANCE = 0.001


@dataclass(frozen=True)
class RegionBounds:
    region: ServiceRegion
    south: float
    north: float
    west: float
    east: float
    ground_network: str

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


REGIONS: tuple[RegionBounds, ...] = (
    RegionBounds(ServiceRegion.CONTINENTAL_US, 24.0, 49.5, -125.0, -66.9, "mainland"),
    RegionBounds(ServiceRegion.ALASKA, 51.0, 71.5, -180.0, -129.0, "mainland"),
    # Aleutian islands west of the antimeridian
    RegionBounds(ServiceRegion.ALASKA, 51.0, 71.5, 172.0, 180.0, "mainland"),
    RegionBounds(ServiceRegion.HAWAII, 18.9, 28.5, -178.0, -154.0, "hawaii"),
    RegionBounds(ServiceRegion.PUERTO_RICO_USVI, 17.6, 18.6, -67.95, -64.5, "caribbean"),
    RegionBounds(ServiceRegion.GUAM_NMI, 13.2, 20.6, 144.6, 146.1, "marianas"),
    RegionBounds(ServiceRegion.AMERICAN_SAMOA, -14.6, -11.0, -171.1, -168.1, "samoa"),
)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: Optional[str] = None
    sanitized: Optional[Coordinate] = None
    region: Optional[RegionBounds] = None

    @property
    def domain_error(self) -> Optional[DomainError]:
        if self.is_valid:
            return None
        return DomainError(ErrorCode.INVALID_COORDINATE, self.error or INVALID_FORMAT)


def _invalid(message: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error=message)


def _is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_sentinel(lat: float, lng: float) -> bool:
    return any(
        abs(lat - s_lat) < SENTINEL_TOLERANCE and abs(lng - s_lng) < SENTINEL_TOLERANCE
        for s_lat, s_lng in SENTINEL_COORDINATES
    )


def find_region(lat: float, lng: float) -> Optional[RegionBounds]:
    for bounds in REGIONS:
        if bounds.contains(lat, lng):
            return bounds
    return None


class CoordinateValidator:
    """Validates coordinates against the US service area."""

    @staticmethod
    def validate_us_coordinates(coordinate: Coordinate) -> ValidationResult:
        lat = getattr(coordinate, "latitude", None)
        lng = getattr(coordinate, "longitude", None)

        if not _is_finite_number(lat) or not _is_finite_number(lng):
            return _invalid(INVALID_FORMAT)

        if is_sentinel(lat, lng):
            return _invalid(SENTINEL_DETECTED)

        if not -90.0 <= lat <= 90.0:
            return _invalid(LATITUDE_OUT_OF_RANGE)
        if not -180.0 <= lng <= 180.0:
            return _invalid(LONGITUDE_OUT_OF_RANGE)

        region = find_region(lat, lng)
        if region is None:
            return _invalid(OUTSIDE_SERVICE_AREA)

        return ValidationResult(
            is_valid=True,
            sanitized=Coordinate(round(lat, 6), round(lng, 6)),
            region=region,
        )


validate_us_coordinates = CoordinateValidator.validate_us_coordinates


_FRIENDLY_ERRORS = {
    INVALID_FORMAT: "Please select a valid address from the suggestions",
    LATITUDE_OUT_OF_RANGE: "Please select a valid address from the suggestions",
    LONGITUDE_OUT_OF_RANGE: "Please select a valid address from the suggestions",
    OUTSIDE_SERVICE_AREA: "Service is currently available within the United States only",
    SENTINEL_DETECTED: "Please select a different address",
    "Calculated distance outside reasonable limits": "Distance too far for our service area",
}


def user_friendly_error(error: str) -> str:
    """Map a raw validation/distance message (optionally endpoint-prefixed) to rider-facing copy."""
    _, _, bare = error.rpartition(": ")
    return _FRIENDLY_ERRORS.get(bare, "We cannot process this request at this time")
