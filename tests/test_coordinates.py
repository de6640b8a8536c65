"""Unit tests for US service-area coordinate validation."""

import math

import pytest

from src.domain.coordinates import (
    INVALID_FORMAT,
    LATITUDE_OUT_OF_RANGE,
    LONGITUDE_OUT_OF_RANGE,
    OUTSIDE_SERVICE_AREA,
    SENTINEL_DETECTED,
    validate_us_coordinates,
    user_friendly_error,
)
from src.domain.entities import Coordinate
from src.domain.enums import ServiceRegion
from src.domain.errors import ErrorCode


class TestRegions:
    @pytest.mark.parametrize(
        "lat, lng, region",
        [
            (40.7128, -74.0060, ServiceRegion.CONTINENTAL_US),  # New York
            (25.7617, -80.1918, ServiceRegion.CONTINENTAL_US),  # Miami
            (61.2181, -149.9003, ServiceRegion.ALASKA),  # Anchorage
            (52.9, 173.2, ServiceRegion.ALASKA),  # Attu, west of the date line
            (21.3069, -157.8583, ServiceRegion.HAWAII),  # Honolulu
            (18.4655, -66.1057, ServiceRegion.PUERTO_RICO_USVI),  # San Juan
            (13.4443, 144.7937, ServiceRegion.GUAM_NMI),  # Hagatna
            (-14.2756, -170.7020, ServiceRegion.AMERICAN_SAMOA),  # Pago Pago
        ],
    )
    def test_us_locations_are_valid(self, lat, lng, region):
        result = validate_us_coordinates(Coordinate(lat, lng))
        assert result.is_valid
        assert result.error is None
        assert result.region.region == region

    @pytest.mark.parametrize(
        "lat, lng",
        [
            (51.5074, -0.1278),  # London
            (19.4326, -99.1332),  # Mexico City
            (-33.8688, 151.2093),  # Sydney
            (35.6762, 139.6503),  # Tokyo
            (-23.5505, -46.6333),  # Sao Paulo
        ],
    )
    def test_foreign_locations_are_rejected(self, lat, lng):
        result = validate_us_coordinates(Coordinate(lat, lng))
        assert not result.is_valid
        assert result.error == OUTSIDE_SERVICE_AREA
        assert result.domain_error.code is ErrorCode.INVALID_COORDINATE

    def test_sanitized_to_six_decimals(self):
        result = validate_us_coordinates(Coordinate(40.71234567, -74.00601234))
        assert result.sanitized == Coordinate(40.712346, -74.006012)


class TestSentinels:
    @pytest.mark.parametrize("lat, lng", [(0, 0), (1, 1), (90, 0), (-90, 0)])
    def test_sentinel_values_rejected(self, lat, lng):
        result = validate_us_coordinates(Coordinate(lat, lng))
        assert not result.is_valid
        assert result.error == SENTINEL_DETECTED

    def test_near_sentinel_within_tolerance(self):
        result = validate_us_coordinates(Coordinate(0.0004, -0.0004))
        assert result.error == SENTINEL_DETECTED


class TestMalformedInput:
    @pytest.mark.parametrize(
        "lat, lng",
        [(math.nan, -74.0), (40.7, math.inf), ("40.7", -74.0), (None, None), (True, -74.0)],
    )
    def test_non_finite_or_non_numeric(self, lat, lng):
        result = validate_us_coordinates(Coordinate(lat, lng))
        assert not result.is_valid
        assert result.error == INVALID_FORMAT

    def test_latitude_out_of_range(self):
        assert validate_us_coordinates(Coordinate(95.0, -74.0)).error == LATITUDE_OUT_OF_RANGE

    def test_longitude_out_of_range(self):
        assert validate_us_coordinates(Coordinate(40.0, -200.0)).error == LONGITUDE_OUT_OF_RANGE

    def test_never_raises_on_garbage(self):
        result = validate_us_coordinates(object())
        assert not result.is_valid


class TestUserFriendlyError:
    def test_maps_prefixed_message(self):
        msg = user_friendly_error(f"Pickup location: {OUTSIDE_SERVICE_AREA}")
        assert msg == "Service is currently available within the United States only"

    def test_unknown_message_falls_back(self):
        assert user_friendly_error("boom") == "We cannot process this request at this time"
