"""
Turn raw ephemeris output into immutable chart objects.

The ephemeris collaborator is anything exposing::

    position(body, instant) -> (longitude, speed, latitude)
    house_cusps(instant, latitude, longitude, system) -> (cusps, ascendant, midheaven)
    ayanamsa(instant) -> float

``SwissEphemeris`` in engine.py is the production implementation.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, Sequence

from ..errors import MissingCollaboratorDataError
from .constants import CLASSICAL_BODIES, CelestialBody
from .models import NatalChart, PlanetPosition
from .utils import as_utc, check_longitude, house_from_cusps, norm360

logger = logging.getLogger(__name__)


def build_position(body: CelestialBody, longitude: float, speed: float, cusps: Sequence[float], latitude: float = 0.0) -> PlanetPosition:
    """Create a PlanetPosition, assigning its house from the cusps."""
    longitude = check_longitude(longitude)
    return PlanetPosition(
        body=body,
        longitude=longitude,
        speed=float(speed),
        latitude=float(latitude),
        house=house_from_cusps(longitude, cusps),
    )


def build_chart(
    ephemeris,
    birth_utc: datetime,
    latitude: float,
    longitude: float,
    house_system: str = "WHOLE_SIGN",
    bodies: Iterable[CelestialBody] = CLASSICAL_BODIES,
) -> NatalChart:
    """
    Query the ephemeris once per body and freeze the result as a NatalChart.

    Raises MissingCollaboratorDataError if the houses or any body cannot be
    computed; a partial chart is never returned.
    """
    birth_utc = as_utc(birth_utc)
    houses = ephemeris.house_cusps(birth_utc, latitude, longitude, house_system)
    if houses is None or houses.cusps is None or len(houses.cusps) != 12:
        raise MissingCollaboratorDataError(
            f"Ephemeris returned no house cusps for {house_system}",
            {"houseSystem": house_system},
        )
    cusps = tuple(norm360(c) for c in houses.cusps)

    positions = []
    for body in bodies:
        raw = ephemeris.position(body, birth_utc)
        if raw is None:
            raise MissingCollaboratorDataError(f"Ephemeris returned no position for {body.value}", {"body": body.value})
        positions.append(build_position(body, raw.longitude, raw.speed, cusps, raw.latitude))

    chart = NatalChart(
        birth_utc=birth_utc,
        latitude=float(latitude),
        longitude=float(longitude),
        ayanamsa=float(ephemeris.ayanamsa(birth_utc)),
        ascendant=check_longitude(houses.ascendant),
        midheaven=check_longitude(houses.midheaven),
        house_cusps=cusps,
        house_system=house_system,
        positions=tuple(positions),
    )
    logger.debug(
        "Chart built for %s: asc=%.2f° (%s), %d bodies",
        birth_utc.isoformat(),
        chart.ascendant,
        chart.ascendant_sign.display_name,
        len(positions),
    )
    return chart


def transit_positions(ephemeris, instant: datetime, natal: NatalChart, bodies: Iterable[CelestialBody] = CLASSICAL_BODIES) -> Dict[CelestialBody, PlanetPosition]:
    """Current positions, housed against the natal cusps."""
    instant = as_utc(instant)
    out: Dict[CelestialBody, PlanetPosition] = {}
    for body in bodies:
        raw = ephemeris.position(body, instant)
        if raw is None:
            raise MissingCollaboratorDataError(
                f"Ephemeris returned no transit position for {body.value}",
                {"body": body.value, "instant": instant.isoformat()},
            )
        out[body] = build_position(body, raw.longitude, raw.speed, natal.house_cusps, raw.latitude)
    return out
