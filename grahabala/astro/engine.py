import logging
from collections import namedtuple
from datetime import datetime
from typing import Optional

import swisseph as swe

from ..errors import InvalidInputError, MissingCollaboratorDataError
from .constants import CelestialBody, ZodiacSign
from .utils import as_utc, norm360, sidereal_longitude, sign_index

# Module-level logger
logger = logging.getLogger(__name__)

BodyPosition = namedtuple("BodyPosition", ["longitude", "speed", "latitude"])
HouseCusps = namedtuple("HouseCusps", ["cusps", "ascendant", "midheaven"])

SWE_BODIES = {
    CelestialBody.SUN: swe.SUN,
    CelestialBody.MOON: swe.MOON,
    CelestialBody.MERCURY: swe.MERCURY,
    CelestialBody.VENUS: swe.VENUS,
    CelestialBody.MARS: swe.MARS,
    CelestialBody.JUPITER: swe.JUPITER,
    CelestialBody.SATURN: swe.SATURN,
    CelestialBody.URANUS: swe.URANUS,
    CelestialBody.NEPTUNE: swe.NEPTUNE,
    CelestialBody.PLUTO: swe.PLUTO,
}

AYANAMSHA = {
    "LAHIRI": swe.SIDM_LAHIRI,
    "RAMAN": swe.SIDM_RAMAN,
    "KRISHNAMURTI": swe.SIDM_KRISHNAMURTI,
    # Lahiri plus six arc minutes, offset applied in ayanamsa()
    "VEDANJANAM": swe.SIDM_LAHIRI,
}
VEDANJANAM_OFFSET_DEG = 0.1

HOUSE_CODES = {
    "WHOLE_SIGN": b"W",
    "EQUAL": b"E",
    "PLACIDUS": b"P",
    "KOCH": b"K",
    "PORPHYRY": b"O",
}

NODE_TYPES = {"MEAN": swe.MEAN_NODE, "TRUE": swe.TRUE_NODE}

# Placidus and Koch have no solution where some ecliptic degrees never rise
POLAR_UNSAFE_SYSTEMS = {"PLACIDUS", "KOCH"}
POLAR_CIRCLE_LAT = 66.56

# Tropical, geocentric, apparent positions with speeds
SEFLAGS = swe.FLG_SWIEPH | swe.FLG_SPEED


def julian_day_utc(dt_utc: datetime) -> float:
    """Convert UTC datetime to Julian Day"""
    dt_utc = as_utc(dt_utc)
    ut = dt_utc.hour + dt_utc.minute / 60 + dt_utc.second / 3600 + dt_utc.microsecond / 3.6e9
    return swe.julday(dt_utc.year, dt_utc.month, dt_utc.day, ut)


def compute_whole_sign_cusps(asc_sign: int):
    """Compute whole sign house cusps"""
    return [norm360(asc_sign * 30 + i * 30) for i in range(12)]


class SwissEphemeris:
    """
    Ephemeris collaborator backed by pyswisseph.

    Positions are computed in the tropical zodiac and converted with the
    position normalizer, so every consumer sees the same sidereal frame.
    Any failure inside Swiss Ephemeris surfaces as
    MissingCollaboratorDataError; nothing is defaulted.

    Note: swe.set_sid_mode is process-global, so it is re-applied before
    every ayanamsha lookup. Instances are not safe to share across threads.
    """

    def __init__(self, ephe_path: Optional[str] = None, ayanamsha: str = "LAHIRI", node_type: str = "MEAN"):
        if ayanamsha not in AYANAMSHA:
            raise InvalidInputError(f"Unsupported ayanamsha: {ayanamsha}", {"allowed": sorted(AYANAMSHA)})
        if node_type not in NODE_TYPES:
            raise InvalidInputError(f"nodeType must be 'MEAN' or 'TRUE', got: {node_type}", {"allowed": sorted(NODE_TYPES)})
        if ephe_path:
            swe.set_ephe_path(ephe_path)
        self.ephe_path = ephe_path
        self.ayanamsha_key = ayanamsha
        self.node_type = node_type

    def ayanamsa(self, instant: datetime) -> float:
        """Ayanamsha value with custom offsets applied (VEDANJANAM = Lahiri + 6')"""
        swe.set_sid_mode(AYANAMSHA[self.ayanamsha_key])
        value = swe.get_ayanamsa_ut(julian_day_utc(instant))
        if self.ayanamsha_key == "VEDANJANAM":
            value += VEDANJANAM_OFFSET_DEG
        return value

    def _calc(self, jd_ut: float, swe_body: int, label: str):
        try:
            result = swe.calc_ut(jd_ut, swe_body, SEFLAGS)
        except swe.Error as e:
            raise MissingCollaboratorDataError(
                f"Failed to calculate position for {label}: {e}",
                {"body": label, "jd": jd_ut},
            ) from e
        # result[0] = (longitude, latitude, distance, speed_long, speed_lat, speed_dist)
        return result[0]

    def position(self, body: CelestialBody, instant: datetime) -> BodyPosition:
        """
        Sidereal longitude, daily speed and ecliptic latitude of a body.

        Ketu is always 180° opposite Rahu with the same speed and mirrored
        latitude.
        """
        jd_ut = julian_day_utc(instant)
        ayanamsa = self.ayanamsa(instant)

        if body in (CelestialBody.RAHU, CelestialBody.KETU):
            xx = self._calc(jd_ut, NODE_TYPES[self.node_type], "Rahu")
            tropical = float(xx[0])
            latitude = float(xx[1])
            if body is CelestialBody.KETU:
                tropical += 180.0
                latitude = -latitude
        else:
            swe_body = SWE_BODIES.get(body)
            if swe_body is None:
                raise InvalidInputError(f"No Swiss Ephemeris body for {body}", {"body": str(body)})
            xx = self._calc(jd_ut, swe_body, body.value)
            tropical = float(xx[0])
            latitude = float(xx[1])

        longitude = sidereal_longitude(tropical, ayanamsa)
        speed = float(xx[3])
        logger.debug(f"{body.value}: tropical={tropical:.4f}° sidereal={longitude:.4f}° speed={speed:.4f}°/day")
        return BodyPosition(longitude, speed, latitude)

    def house_cusps(self, instant: datetime, latitude: float, longitude: float, system: str) -> HouseCusps:
        """
        Twelve sidereal house cusps plus the ascendant and midheaven.

        WHOLE_SIGN cusps start at the sidereal ascendant's sign, which is not
        the same as Swiss Ephemeris' own 'W' (tropical signs), so the angles
        are taken from the Equal system and the cusps rebuilt here.
        """
        hcode = HOUSE_CODES.get(system)
        if hcode is None:
            raise InvalidInputError(f"Unsupported house system: {system}", {"allowed": sorted(HOUSE_CODES)})
        if system in POLAR_UNSAFE_SYSTEMS and abs(latitude) >= POLAR_CIRCLE_LAT:
            raise MissingCollaboratorDataError(
                f"{system} houses are undefined at latitude {latitude:.2f}",
                {"houseSystem": system, "latitude": latitude},
            )

        jd_ut = julian_day_utc(instant)
        ayanamsa = self.ayanamsa(instant)
        code = b"E" if system == "WHOLE_SIGN" else hcode
        try:
            cusps, ascmc = swe.houses_ex(jd_ut, latitude, longitude, code)
        except swe.Error as e:
            raise MissingCollaboratorDataError(
                f"House calculation failed for {system}: {e}",
                {"houseSystem": system, "latitude": latitude},
            ) from e

        asc = sidereal_longitude(float(ascmc[0]), ayanamsa)
        mc = sidereal_longitude(float(ascmc[1]), ayanamsa)
        if system == "WHOLE_SIGN":
            cusp_list = compute_whole_sign_cusps(sign_index(asc))
        else:
            # Swiss Ephemeris returns cusps as a tuple with 12 elements (0-11)
            cusp_list = [sidereal_longitude(float(c), ayanamsa) for c in cusps[:12]]
        if len(cusp_list) != 12:
            raise MissingCollaboratorDataError(f"Expected 12 cusps, got {len(cusp_list)}", {"houseSystem": system})

        logger.debug(f"Angles calculated: ASC={asc:.2f}° ({ZodiacSign(sign_index(asc)).display_name}), MC={mc:.2f}°")
        return HouseCusps(tuple(cusp_list), asc, mc)
