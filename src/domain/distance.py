"""
Distance calculation using the Haversine formula.

Assumption
----------
We use great-circle (Haversine) distance instead of a real routing engine
so a fare can still be estimated while the mapping service is down.  The
great-circle figure is scaled by ``road_factor`` to approximate ground
miles, since vehicles cannot drive in a straight line.

Plausibility
------------
A result is rejected when it falls outside ``[min_miles, max_miles]`` or
when the endpoints sit on different ground networks (e.g. mainland to
Hawaii), even if each endpoint validates on its own.

Complexity: O(1) per call.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from src.config import settings

from .coordinates import CoordinateValidator
from .entities import Coordinate
from .errors import DomainError, ErrorCode

EARTH_RADIUS_MILES = 3_959.0

DISTANCE_OUT_OF_LIMITS = "Calculated distance outside reasonable limits"


def haversine_miles(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **miles** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(min(1.0, a)))


@dataclass(frozen=True)
class DistanceResult:
    """Outcome of ``calculate_validated_distance``.

    ``distance`` is in estimated road miles (``great_circle_miles`` times
    the road factor) and is the figure the limits and fares use.
    ``great_circle_miles`` is the raw Haversine value.
    """

    success: bool
    distance: Optional[float] = None
    great_circle_miles: Optional[float] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @property
    def domain_error(self) -> Optional[DomainError]:
        if self.success:
            return None
        return DomainError(self.error_code, self.error)


class DistanceCalculator:
    def __init__(
        self,
        road_factor: float = settings.road_factor,
        min_miles: float = settings.min_distance_miles,
        max_miles: float = settings.max_distance_miles,
    ):
        self.road_factor = road_factor
        self.min_miles = min_miles
        self.max_miles = max_miles

    def calculate_validated_distance(
        self, pickup: Coordinate, dropoff: Coordinate
    ) -> DistanceResult:
        pickup_check = CoordinateValidator.validate_us_coordinates(pickup)
        if not pickup_check.is_valid:
            return DistanceResult(
                success=False,
                error=f"Pickup location: {pickup_check.error}",
                error_code=ErrorCode.INVALID_COORDINATE,
            )

        dropoff_check = CoordinateValidator.validate_us_coordinates(dropoff)
        if not dropoff_check.is_valid:
            return DistanceResult(
                success=False,
                error=f"Destination: {dropoff_check.error}",
                error_code=ErrorCode.INVALID_COORDINATE,
            )

        implausible = DistanceResult(
            success=False,
            error=DISTANCE_OUT_OF_LIMITS,
            error_code=ErrorCode.DISTANCE_IMPLAUSIBLE,
        )
        if pickup_check.region.ground_network != dropoff_check.region.ground_network:
            return implausible

        a, b = pickup_check.sanitized, dropoff_check.sanitized
        great_circle = haversine_miles(a.latitude, a.longitude, b.latitude, b.longitude)
        distance = round(great_circle * self.road_factor, 2)

        if not self.min_miles <= distance <= self.max_miles:
            return implausible

        return DistanceResult(
            success=True,
            distance=distance,
            great_circle_miles=round(great_circle, 2),
        )


def calculate_validated_distance(pickup: Coordinate, dropoff: Coordinate) -> DistanceResult:
    """Module-level shortcut using the configured limits."""
    return DistanceCalculator().calculate_validated_distance(pickup, dropoff)
