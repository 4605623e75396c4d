import logging
import math
from datetime import datetime, timezone, timedelta
from typing import Optional, Sequence, Tuple

import pytz
from timezonefinder import TimezoneFinder

from ..errors import InvalidInputError, MissingCollaboratorDataError
from .constants import (
    NAKSHATRA_SPAN_DEG,
    PADA_SPAN_DEG,
    Nakshatra,
    ZodiacSign,
)

logger = logging.getLogger(__name__)

# Initialize timezone finder (expensive operation, so do it once)
_tf = TimezoneFinder()

# Julian day of 2000-01-01T12:00:00Z
_J2000 = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
J2000_JD = 2451545.0


def detect_timezone_from_coordinates(latitude: float, longitude: float) -> str:
    """Detect timezone from latitude and longitude coordinates using timezonefinder"""
    detected_tz = _tf.timezone_at(lat=latitude, lng=longitude)
    if detected_tz is None:
        # Open ocean: fall back to the nautical zone for the longitude
        hours = int(round(longitude / 15.0))
        logger.warning("No timezone found for (%.4f, %.4f); using nautical offset %+d h", latitude, longitude, hours)
        return "Etc/GMT%+d" % -hours if hours else "UTC"
    return detected_tz


def to_utc(dt_iso: str, tz: Optional[str], offset_minutes: Optional[int], latitude: Optional[float] = None, longitude: Optional[float] = None) -> datetime:
    """Convert ISO datetime string to UTC datetime, treating input as local time"""
    naive = datetime.fromisoformat(dt_iso.replace("Z", "+00:00"))
    if naive.tzinfo is not None:
        return naive.astimezone(timezone.utc)

    # If timezone is explicitly provided, use it
    if tz:
        tz_obj = pytz.timezone(tz)
        return tz_obj.localize(naive).astimezone(pytz.UTC)

    # If offset is explicitly provided, use it
    if offset_minutes is not None:
        return naive.replace(tzinfo=timezone(timedelta(minutes=offset_minutes))).astimezone(timezone.utc)

    # If coordinates are provided, detect timezone automatically
    if latitude is not None and longitude is not None:
        tz_obj = pytz.timezone(detect_timezone_from_coordinates(latitude, longitude))
        return tz_obj.localize(naive).astimezone(pytz.UTC)

    # Default: treat as UTC
    return naive.replace(tzinfo=timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def julian_day(dt: datetime) -> float:
    """Julian day (UT) of an instant without going through the ephemeris."""
    return J2000_JD + (as_utc(dt) - _J2000).total_seconds() / 86400.0


def format_utc_offset(offset_minutes: int) -> str:
    """Format UTC offset as string"""
    hours = abs(offset_minutes) // 60
    minutes = abs(offset_minutes) % 60
    sign = "+" if offset_minutes >= 0 else "-"
    return f"UTC{sign}{hours:02d}:{minutes:02d}"


def iso_z(dt: datetime) -> str:
    return as_utc(dt).isoformat().replace("+00:00", "Z")


# ------------------------- Position normalization -------------------------

def norm360(x: float) -> float:
    """Normalize an angle to [0, 360)"""
    if not math.isfinite(x):
        raise InvalidInputError(f"Longitude must be finite, got {x}", {"value": x})
    result = x % 360.0
    # -1e-15 % 360.0 == 360.0 in IEEE arithmetic
    return 0.0 if result >= 360.0 else result


def sidereal_longitude(tropical: float, ayanamsa: float) -> float:
    """Sidereal longitude = ((tropical - ayanamsa) mod 360 + 360) mod 360."""
    if not math.isfinite(ayanamsa):
        raise InvalidInputError(f"Ayanamsa must be finite, got {ayanamsa}", {"value": ayanamsa})
    return norm360(norm360(tropical - ayanamsa) + 360.0)


def check_longitude(longitude: float) -> float:
    """Reject longitudes that were not normalized into [0, 360)."""
    if not (isinstance(longitude, (int, float)) and math.isfinite(longitude) and 0.0 <= longitude < 360.0):
        raise InvalidInputError(
            f"Sidereal longitude must lie in [0, 360), got {longitude}",
            {"value": longitude},
        )
    return float(longitude)


def sign_index(longitude: float) -> int:
    """Get zodiac sign index (0-11) from longitude"""
    return int(check_longitude(longitude) // 30.0)


def sign_of(longitude: float) -> ZodiacSign:
    return ZodiacSign(sign_index(longitude))


def degree_in_sign(longitude: float) -> float:
    return check_longitude(longitude) % 30.0


def get_nakshatra_and_pada(longitude: float) -> Tuple[Nakshatra, int]:
    """Return (nakshatra, pada 1..4) for a sidereal longitude in [0, 360)."""
    lon = check_longitude(longitude)
    index = min(int(lon // NAKSHATRA_SPAN_DEG), 26)
    within = lon - index * NAKSHATRA_SPAN_DEG
    # Float division can land a hair outside the 1..4 range at boundaries
    pada = min(max(int(within // PADA_SPAN_DEG) + 1, 1), 4)
    return Nakshatra(index), pada


def nakshatra_fraction(longitude: float) -> float:
    """Portion of the occupied nakshatra already traversed, 0..1."""
    nakshatra, _ = get_nakshatra_and_pada(longitude)
    return (longitude - nakshatra.start_longitude) / NAKSHATRA_SPAN_DEG


def house_from_sign(planet_sign: int, asc_sign: int) -> int:
    """Calculate house number for whole sign system"""
    return ((int(planet_sign) - int(asc_sign) + 12) % 12) + 1


def house_from_cusps(longitude: float, cusps: Sequence[float]) -> int:
    """
    House (1-12) whose arc [cusp h, cusp h+1) contains the longitude.

    Arcs are measured forward around the circle, so the twelfth house wraps
    back to cusp 1. A longitude exactly on a cusp belongs to the house that
    cusp opens.
    """
    if cusps is None or len(cusps) < 12:
        raise MissingCollaboratorDataError(
            "Twelve house cusps are required for house assignment",
            {"cuspsReceived": 0 if cusps is None else len(cusps)},
        )
    lon = check_longitude(longitude)
    for i in range(12):
        start = cusps[i]
        arc = (cusps[(i + 1) % 12] - start) % 360.0
        if arc == 0.0:
            continue
        if (lon - start) % 360.0 < arc:
            return i + 1
    raise MissingCollaboratorDataError("House cusps do not cover the ecliptic", {"cusps": list(cusps)})


def angular_separation(a: float, b: float) -> float:
    """Shorter arc between two longitudes, in [0, 180]."""
    diff = abs(norm360(a) - norm360(b))
    return 360.0 - diff if diff > 180.0 else diff


def forward_distance(start: float, end: float) -> float:
    """Degrees travelled going forward (zodiacal order) from start to end."""
    return norm360(end - start)
