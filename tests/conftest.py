from collections import namedtuple
from datetime import datetime, timezone

import pytest

from grahabala.astro.constants import CelestialBody
from grahabala.astro.models import NatalChart
from grahabala.astro.positions import build_position
from grahabala.astro.utils import as_utc, norm360, sign_index
from grahabala.errors import MissingCollaboratorDataError

FakePosition = namedtuple("FakePosition", ["longitude", "speed", "latitude"])
FakeHouses = namedtuple("FakeHouses", ["cusps", "ascendant", "midheaven"])

EPOCH = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

# Typical daily motions (deg/day); nodes move backwards
MEAN_SPEEDS = {
    CelestialBody.SUN: 0.9856,
    CelestialBody.MOON: 13.1764,
    CelestialBody.MARS: 0.524,
    CelestialBody.MERCURY: 1.2,
    CelestialBody.JUPITER: 0.083,
    CelestialBody.VENUS: 1.2,
    CelestialBody.SATURN: 0.033,
    CelestialBody.RAHU: -0.053,
    CelestialBody.KETU: -0.053,
}

# Every classical body in its exaltation sign, ascendant in Cancer
SAMPLE_LONGITUDES = {
    CelestialBody.SUN: 10.0,       # 10 Aries
    CelestialBody.MOON: 45.0,      # 15 Taurus
    CelestialBody.MARS: 280.0,     # 10 Capricorn
    CelestialBody.MERCURY: 165.0,  # 15 Virgo
    CelestialBody.JUPITER: 95.0,   # 5 Cancer
    CelestialBody.VENUS: 350.0,    # 20 Pisces
    CelestialBody.SATURN: 200.0,   # 20 Libra
    CelestialBody.RAHU: 50.0,      # 20 Taurus
    CelestialBody.KETU: 230.0,     # 20 Scorpio
}
SAMPLE_ASCENDANT = 100.0
SAMPLE_MIDHEAVEN = 10.0


def whole_sign_cusps(ascendant: float):
    return tuple(float((sign_index(ascendant) + i) % 12 * 30) for i in range(12))


def make_chart(longitudes=None, ascendant=SAMPLE_ASCENDANT, midheaven=SAMPLE_MIDHEAVEN, speeds=None,
               birth=EPOCH, latitude=18.52, longitude=73.86, ayanamsa=23.85, cusps=None):
    """Build a NatalChart directly from sidereal longitudes (whole-sign houses by default)."""
    longitudes = SAMPLE_LONGITUDES if longitudes is None else longitudes
    speeds = {**MEAN_SPEEDS, **(speeds or {})}
    cusps = whole_sign_cusps(ascendant) if cusps is None else tuple(cusps)
    positions = tuple(
        build_position(body, lon, speeds.get(body, 0.5), cusps)
        for body, lon in longitudes.items()
    )
    return NatalChart(
        birth_utc=as_utc(birth),
        latitude=latitude,
        longitude=longitude,
        ayanamsa=ayanamsa,
        ascendant=ascendant,
        midheaven=midheaven,
        house_cusps=cusps,
        house_system="WHOLE_SIGN",
        positions=positions,
    )


class FakeEphemeris:
    """
    Ephemeris collaborator with uniform motion:
    longitude(t) = base + speed * days since EPOCH.
    """

    def __init__(self, longitudes=None, speeds=None, ascendant=SAMPLE_ASCENDANT, midheaven=SAMPLE_MIDHEAVEN,
                 ayanamsa=23.85, missing=()):
        self.longitudes = dict(SAMPLE_LONGITUDES if longitudes is None else longitudes)
        self.speeds = {**MEAN_SPEEDS, **(speeds or {})}
        self.ascendant = ascendant
        self.midheaven = midheaven
        self._ayanamsa = ayanamsa
        self.missing = set(missing)
        self.calls = 0

    def _days(self, instant):
        return (as_utc(instant) - EPOCH).total_seconds() / 86400.0

    def position(self, body, instant):
        self.calls += 1
        if body in self.missing:
            return None
        base = self.longitudes.get(body, 0.0)
        speed = self.speeds.get(body, 0.5)
        return FakePosition(norm360(base + speed * self._days(instant)), speed, 0.0)

    def house_cusps(self, instant, latitude, longitude, system):
        if system in ("PLACIDUS", "KOCH") and abs(latitude) >= 66.56:
            raise MissingCollaboratorDataError(f"{system} houses are undefined at latitude {latitude:.2f}")
        return FakeHouses(whole_sign_cusps(self.ascendant), self.ascendant, self.midheaven)

    def ayanamsa(self, instant):
        return self._ayanamsa


@pytest.fixture
def chart():
    return make_chart()


@pytest.fixture
def fake_ephemeris():
    return FakeEphemeris()
