from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..errors import MissingCollaboratorDataError
from .constants import (
    PADA_SPAN_DEG,
    CelestialBody,
    Nakshatra,
    ZodiacSign,
)
from .utils import degree_in_sign, get_nakshatra_and_pada, sign_of

# Water/fire junctions: end of Cancer, Scorpio and Pisces
GANDANTA_JUNCTIONS = (0.0, 120.0, 240.0)


def is_gandanta(longitude: float) -> bool:
    """True within one pada either side of a water/fire sign junction."""
    for junction in GANDANTA_JUNCTIONS:
        diff = abs(longitude - junction)
        if min(diff, 360.0 - diff) < PADA_SPAN_DEG:
            return True
    return False


@dataclass(frozen=True)
class PlanetPosition:
    """One body's sidereal placement in a chart."""

    body: CelestialBody
    longitude: float
    speed: float
    latitude: float
    house: int

    @property
    def sign(self) -> ZodiacSign:
        return sign_of(self.longitude)

    @property
    def degree_in_sign(self) -> float:
        return degree_in_sign(self.longitude)

    @property
    def nakshatra(self) -> Nakshatra:
        return get_nakshatra_and_pada(self.longitude)[0]

    @property
    def pada(self) -> int:
        return get_nakshatra_and_pada(self.longitude)[1]

    @property
    def is_retrograde(self) -> bool:
        # Luminaries never retrograde; tiny negative speeds are ephemeris noise
        if self.body in (CelestialBody.SUN, CelestialBody.MOON):
            return False
        return self.speed < 0

    @property
    def is_gandanta(self) -> bool:
        return is_gandanta(self.longitude)


@dataclass(frozen=True)
class NatalChart:
    """
    All positions for one birth event plus its house frame.

    ``house_cusps`` holds twelve sidereal cusp longitudes, cusp 1 first.
    ``ayanamsa`` is kept so tropical quantities (declination) can be
    recovered.
    """

    birth_utc: datetime
    latitude: float
    longitude: float
    ayanamsa: float
    ascendant: float
    midheaven: float
    house_cusps: Tuple[float, ...]
    house_system: str
    positions: Tuple[PlanetPosition, ...]

    def get(self, body: CelestialBody) -> Optional[PlanetPosition]:
        for position in self.positions:
            if position.body is body:
                return position
        return None

    def position(self, body: CelestialBody) -> PlanetPosition:
        found = self.get(body)
        if found is None:
            raise MissingCollaboratorDataError(
                f"No position for {body.value} in chart",
                {"body": body.value},
            )
        return found

    @property
    def ascendant_sign(self) -> ZodiacSign:
        return sign_of(self.ascendant)
