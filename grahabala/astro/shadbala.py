"""
Shadbala: the six-fold strength of a planet.

Every sub-bala is computed in virupas (shashtiamsas) and the six components
are reported in rupas (1 rupa = 60 virupas):

- Sthana Bala (positional): Uccha, Saptavargaja, Ojayugmarasyamsa, Kendradi, Drekkana
- Dig Bala (directional)
- Kala Bala (temporal): Nathonnata, Paksha, Tribhaga, Abda/Masa/Vara/Hora, Ayana, Yuddha
- Chesta Bala (motional)
- Naisargika Bala (natural)
- Drik Bala (aspectual)

Rahu and Ketu have no Dig, Chesta or Kala Bala in the Parashari scheme and
no Saptavargaja, Ojayugma or Drekkana points. Those components are zero by
definition, never an error.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Mapping, Optional

from ..errors import InvalidInputError
from .constants import (
    DIG_BALA_STRONGEST_HOUSE,
    HORA_SEQUENCE,
    MEAN_DAILY_MOTION,
    OBLIQUITY_DEG,
    REQUIRED_RUPAS,
    SEVEN_PLANETS,
    STRENGTH_RATINGS,
    STRONGEST_RATING,
    VIRUPAS_PER_RUPA,
    WEEKDAY_LORDS,
    CelestialBody,
    Gender,
    Relationship,
    ZodiacSign,
)
from .dignity import (
    WarInfo,
    compound_relationship,
    detect_planetary_wars,
    exaltation_point,
    is_moolatrikona,
    natural_relationship,
    temporal_relationship,
)
from .models import NatalChart, PlanetPosition
from .utils import angular_separation, forward_distance, julian_day, norm360
from .varga import SAPTAVARGA, varga_sign

logger = logging.getLogger(__name__)

_SU, _MO, _MA, _ME, _JU, _VE, _SA = SEVEN_PLANETS

# Saptavargaja points by dignity in each varga
MOOLATRIKONA_POINTS = 45.0
OWN_SIGN_POINTS = 30.0
RELATIONSHIP_POINTS: Dict[Relationship, float] = {
    Relationship.GREAT_FRIEND: 20.0,
    Relationship.FRIEND: 15.0,
    Relationship.NEUTRAL: 10.0,
    Relationship.ENEMY: 4.0,
    Relationship.GREAT_ENEMY: 2.0,
}

# Kendradi: angles, succedent, cadent
KENDRADI_POINTS = {1: 60.0, 4: 60.0, 7: 60.0, 10: 60.0, 2: 30.0, 5: 30.0, 8: 30.0, 11: 30.0}
CADENT_POINTS = 15.0

# Decanate (0-based) that favours each gender
DREKKANA_BY_GENDER = {Gender.MALE: 0, Gender.NEUTER: 1, Gender.FEMALE: 2}

DIURNAL = frozenset({_SU, _JU, _VE})

# Planets taking Paksha Bala from the bright fortnight
PAKSHA_BENEFICS = frozenset({_JU, _VE, _ME, _MO})

DAY_THIRD_LORDS = (_ME, _SU, _SA)
NIGHT_THIRD_LORDS = (_MO, _VE, _MA)

ABDA_POINTS = 15.0
MASA_POINTS = 30.0
VARA_POINTS = 45.0
HORA_POINTS = 60.0

# Graha yuddha: gained by the victor, lost by the defeated planet
YUDDHA_POINTS = 30.0

# Julian day of the Kali Yuga epoch (midnight opening Friday, 18 Feb 3102 BCE)
KALI_EPOCH_JD = 588465.5

NORTHERN_AYANA = frozenset({_SU, _MA, _JU, _VE})
SOUTHERN_AYANA = frozenset({_MO, _SA})

RETROGRADE_CHESTA = 60.0
DIRECT_CHESTA_MAX = 50.0
DIRECT_CHESTA_MIN = 15.0
DIRECT_CHESTA_SLOPE = 15.0

# Extra drishti (virupas) for special aspects: (start, end, bonus)
SPECIAL_DRISHTI = {
    _MA: ((90.0, 120.0, 15.0), (210.0, 240.0, 15.0)),
    _JU: ((120.0, 150.0, 30.0), (240.0, 270.0, 30.0)),
    _SA: ((60.0, 90.0, 45.0), (270.0, 300.0, 45.0)),
}


@dataclass(frozen=True)
class SthanaBala:
    uccha: float
    saptavargaja: float
    ojayugmarasyamsa: float
    kendradi: float
    drekkana: float

    @property
    def total(self) -> float:
        return self.uccha + self.saptavargaja + self.ojayugmarasyamsa + self.kendradi + self.drekkana


@dataclass(frozen=True)
class KalaBala:
    nathonnata: float
    paksha: float
    tribhaga: float
    abda: float
    masa: float
    vara: float
    hora: float
    ayana: float
    yuddha: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.nathonnata + self.paksha + self.tribhaga
            + self.abda + self.masa + self.vara + self.hora
            + self.ayana + self.yuddha
        )


@dataclass(frozen=True)
class ShadbalaResult:
    """Strength of one planet; the six bala fields are in rupas."""

    body: CelestialBody
    sthana: SthanaBala
    kala: KalaBala
    sthana_bala: float
    dig_bala: float
    kala_bala: float
    chesta_bala: float
    naisargika_bala: float
    drik_bala: float
    total_rupas: float
    required_rupas: float
    percentage_of_required: float
    strength_rating: str
    is_strong: bool


@dataclass(frozen=True)
class ShadbalaAnalysis:
    results: Dict[CelestialBody, ShadbalaResult]
    strongest: CelestialBody
    weakest: CelestialBody
    overall_percentage: float


@dataclass(frozen=True)
class TimeContext:
    """Where the birth falls in the Vedic day, plus the ruling lords."""

    is_day: bool
    fraction: float  # elapsed part of the day (or night), 0..1
    sun_offset: float  # (ascendant - Sun) mod 360; 0 at sunrise, 90 at noon
    weekday_lord: CelestialBody
    hora_lord: CelestialBody
    masa_lord: CelestialBody
    abda_lord: CelestialBody
    elongation: float  # Moon - Sun, 0..360
    wars: Mapping[CelestialBody, WarInfo] = field(default_factory=dict)


def strength_rating(percentage: float) -> str:
    for upper, label in STRENGTH_RATINGS:
        if percentage < upper:
            return label
    return STRONGEST_RATING


def _weekday_lord_of_jdn(jdn: int) -> CelestialBody:
    # JDN + 1 mod 7 is 0 on Sundays
    return WEEKDAY_LORDS[(jdn + 1) % 7]


def time_context(chart: NatalChart) -> TimeContext:
    sun = chart.position(_SU)
    moon = chart.position(_MO)

    offset = norm360(chart.ascendant - sun.longitude)
    is_day = offset < 180.0
    fraction = offset / 180.0 if is_day else (offset - 180.0) / 180.0

    # Weekday runs sunrise to sunrise at local mean time
    local = chart.birth_utc + timedelta(hours=chart.longitude / 15.0)
    local_date = local.date()
    if not is_day and local.hour < 12:
        local_date -= timedelta(days=1)
    weekday_lord = WEEKDAY_LORDS[(local_date.weekday() + 1) % 7]

    horas_elapsed = int(fraction * 12) + (0 if is_day else 12)
    start = HORA_SEQUENCE.index(weekday_lord)
    hora_lord = HORA_SEQUENCE[(start + min(horas_elapsed, 23)) % 7]

    epoch_jdn = int(math.floor(KALI_EPOCH_JD + 0.5))
    ahargana = int(math.floor(julian_day(chart.birth_utc) - KALI_EPOCH_JD))
    abda_lord = _weekday_lord_of_jdn(epoch_jdn + ahargana - ahargana % 360)
    masa_lord = _weekday_lord_of_jdn(epoch_jdn + ahargana - ahargana % 30)

    return TimeContext(
        is_day=is_day,
        fraction=min(fraction, 1.0),
        sun_offset=offset,
        weekday_lord=weekday_lord,
        hora_lord=hora_lord,
        masa_lord=masa_lord,
        abda_lord=abda_lord,
        elongation=norm360(moon.longitude - sun.longitude),
        wars=detect_planetary_wars(chart.positions),
    )


# ------------------------- Sthana Bala -------------------------

def uccha_bala(body: CelestialBody, longitude: float) -> float:
    """60 at the exaltation point, 0 at debilitation, linear in between."""
    point = exaltation_point(body)
    if point is None:
        return 0.0
    return angular_separation(longitude, point + 180.0) / 3.0


def saptavargaja_bala(position: PlanetPosition, chart: NatalChart) -> float:
    body = position.body
    if body not in SEVEN_PLANETS:
        return 0.0
    total = 0.0
    for division in SAPTAVARGA:
        sign = varga_sign(position.longitude, division)
        lord = sign.ruler
        if division == 1 and is_moolatrikona(body, position.longitude):
            total += MOOLATRIKONA_POINTS
        elif lord is body:
            total += OWN_SIGN_POINTS
        else:
            temporal = temporal_relationship(position.sign, chart.position(lord).sign)
            total += RELATIONSHIP_POINTS[compound_relationship(natural_relationship(body, lord), temporal)]
    return total


def ojayugmarasyamsa_bala(body: CelestialBody, longitude: float) -> float:
    if body not in SEVEN_PLANETS:
        return 0.0
    wants_odd = body not in (_MO, _VE)
    points = 0.0
    for sign in (ZodiacSign(int(longitude // 30.0)), varga_sign(longitude, 9)):
        if sign.is_odd == wants_odd:
            points += 15.0
    return points


def kendradi_bala(house: int) -> float:
    return KENDRADI_POINTS.get(house, CADENT_POINTS)


def drekkana_bala(body: CelestialBody, longitude: float) -> float:
    if body not in SEVEN_PLANETS:
        return 0.0
    decanate = min(int((longitude % 30.0) // 10.0), 2)
    return 15.0 if DREKKANA_BY_GENDER[body.gender] == decanate else 0.0


def sthana_bala(position: PlanetPosition, chart: NatalChart) -> SthanaBala:
    return SthanaBala(
        uccha=uccha_bala(position.body, position.longitude),
        saptavargaja=saptavargaja_bala(position, chart),
        ojayugmarasyamsa=ojayugmarasyamsa_bala(position.body, position.longitude),
        kendradi=kendradi_bala(position.house),
        drekkana=drekkana_bala(position.body, position.longitude),
    )


# ------------------------- Dig Bala -------------------------

def _angle_of_house(chart: NatalChart, house: int) -> float:
    if house == 1:
        return chart.ascendant
    if house == 4:
        return norm360(chart.midheaven + 180.0)
    if house == 7:
        return norm360(chart.ascendant + 180.0)
    return chart.midheaven


def dig_bala(position: PlanetPosition, chart: NatalChart) -> float:
    """60 on the body's strongest angle, 0 on the opposite one."""
    house = DIG_BALA_STRONGEST_HOUSE.get(position.body)
    if house is None:
        return 0.0
    powerless = norm360(_angle_of_house(chart, house) + 180.0)
    return angular_separation(position.longitude, powerless) / 3.0


# ------------------------- Kala Bala -------------------------

def _paksha_value(body: CelestialBody, ctx: TimeContext) -> float:
    # Elongation folded to 0..180: 0 at new moon, 180 at full moon
    folded = ctx.elongation if ctx.elongation <= 180.0 else 360.0 - ctx.elongation
    value = folded / 3.0
    return value if body in PAKSHA_BENEFICS else 60.0 - value


def _ayana_value(position: PlanetPosition, chart: NatalChart) -> float:
    tropical = norm360(position.longitude + chart.ayanamsa)
    declination = math.degrees(math.asin(math.sin(math.radians(OBLIQUITY_DEG)) * math.sin(math.radians(tropical))))
    if position.body in NORTHERN_AYANA:
        kranti = 24.0 + declination
    elif position.body in SOUTHERN_AYANA:
        kranti = 24.0 - declination
    else:
        kranti = 24.0 + abs(declination)
    return kranti * 60.0 / 48.0


def kala_bala(position: PlanetPosition, chart: NatalChart, ctx: TimeContext) -> KalaBala:
    body = position.body
    if body not in SEVEN_PLANETS:
        return KalaBala(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    if body is _ME:
        nathonnata = 60.0
    else:
        diurnal = 60.0 * (1.0 - angular_separation(ctx.sun_offset, 90.0) / 180.0)
        nathonnata = diurnal if body in DIURNAL else 60.0 - diurnal

    paksha = _paksha_value(body, ctx)
    if body is _MO:
        paksha *= 2.0

    thirds = DAY_THIRD_LORDS if ctx.is_day else NIGHT_THIRD_LORDS
    if body is _JU or thirds[min(int(ctx.fraction * 3), 2)] is body:
        tribhaga = 60.0
    else:
        tribhaga = 0.0

    ayana = _ayana_value(position, chart)
    if body is _SU:
        ayana *= 2.0

    war = ctx.wars.get(body)
    if war is None:
        yuddha = 0.0
    else:
        yuddha = YUDDHA_POINTS if war.is_victor else -YUDDHA_POINTS

    return KalaBala(
        nathonnata=nathonnata,
        paksha=paksha,
        tribhaga=tribhaga,
        abda=ABDA_POINTS if ctx.abda_lord is body else 0.0,
        masa=MASA_POINTS if ctx.masa_lord is body else 0.0,
        vara=VARA_POINTS if ctx.weekday_lord is body else 0.0,
        hora=HORA_POINTS if ctx.hora_lord is body else 0.0,
        ayana=ayana,
        yuddha=yuddha,
    )


# ------------------------- Chesta Bala -------------------------

def chesta_bala(position: PlanetPosition, chart: NatalChart, ctx: TimeContext) -> float:
    body = position.body
    if body is _SU:
        return _ayana_value(position, chart)
    if body is _MO:
        return _paksha_value(body, ctx)
    mean = MEAN_DAILY_MOTION.get(body)
    if mean is None:
        return 0.0
    if position.speed < 0:
        return RETROGRADE_CHESTA
    ratio = position.speed / mean
    return max(DIRECT_CHESTA_MIN, min(DIRECT_CHESTA_MAX, DIRECT_CHESTA_MAX - DIRECT_CHESTA_SLOPE * ratio))


# ------------------------- Drik Bala -------------------------

def drishti_value(angle: float) -> float:
    """Aspect strength (virupas) for the forward angle from aspector to target."""
    a = norm360(angle)
    if a < 30.0:
        return 0.0
    if a < 60.0:
        return (a - 30.0) / 2.0
    if a < 90.0:
        return a - 45.0
    if a < 120.0:
        return 30.0 + (120.0 - a) / 2.0
    if a < 150.0:
        return 150.0 - a
    if a < 180.0:
        return (a - 150.0) * 2.0
    if a < 300.0:
        return (300.0 - a) / 2.0
    return 0.0


def special_drishti(body: CelestialBody, angle: float) -> float:
    for start, end, bonus in SPECIAL_DRISHTI.get(body, ()):
        if start <= angle < end:
            return bonus
    return 0.0


def _is_benefic_aspector(body: CelestialBody, ctx: TimeContext) -> bool:
    if body is _MO:
        return ctx.elongation < 180.0
    return body in (_JU, _VE, _ME)


def drik_bala(position: PlanetPosition, chart: NatalChart, ctx: TimeContext) -> float:
    benefic = 0.0
    malefic = 0.0
    for aspector in SEVEN_PLANETS:
        if aspector is position.body:
            continue
        source = chart.position(aspector)
        angle = forward_distance(source.longitude, position.longitude)
        value = drishti_value(angle) + special_drishti(aspector, angle)
        if _is_benefic_aspector(aspector, ctx):
            benefic += value
        else:
            malefic += value
    return (benefic - malefic) / 4.0


# ------------------------- Totals -------------------------

def calculate_shadbala(chart: NatalChart, body: CelestialBody, ctx: Optional[TimeContext] = None) -> ShadbalaResult:
    """Full Shadbala for one body of the chart."""
    required = REQUIRED_RUPAS.get(body)
    if required is None:
        raise InvalidInputError(f"Shadbala is not defined for {body.value}", {"body": body.value})
    if ctx is None:
        ctx = time_context(chart)
    position = chart.position(body)

    sthana = sthana_bala(position, chart)
    kala = kala_bala(position, chart, ctx)
    is_node = body.is_node

    sthana_rupas = sthana.total / VIRUPAS_PER_RUPA
    dig_rupas = 0.0 if is_node else dig_bala(position, chart) / VIRUPAS_PER_RUPA
    kala_rupas = kala.total / VIRUPAS_PER_RUPA
    chesta_rupas = 0.0 if is_node else chesta_bala(position, chart, ctx) / VIRUPAS_PER_RUPA
    naisargika_rupas = body.naisargika / VIRUPAS_PER_RUPA
    drik_rupas = drik_bala(position, chart, ctx) / VIRUPAS_PER_RUPA

    total = sthana_rupas + dig_rupas + kala_rupas + chesta_rupas + naisargika_rupas + drik_rupas
    percentage = total / required * 100.0
    logger.debug(f"Shadbala {body.value}: {total:.2f} rupas ({percentage:.1f}% of {required})")

    return ShadbalaResult(
        body=body,
        sthana=sthana,
        kala=kala,
        sthana_bala=sthana_rupas,
        dig_bala=dig_rupas,
        kala_bala=kala_rupas,
        chesta_bala=chesta_rupas,
        naisargika_bala=naisargika_rupas,
        drik_bala=drik_rupas,
        total_rupas=total,
        required_rupas=required,
        percentage_of_required=percentage,
        strength_rating=strength_rating(percentage),
        is_strong=percentage >= 100.0,
    )


def calculate_all_shadbala(chart: NatalChart, include_nodes: bool = True) -> ShadbalaAnalysis:
    """Shadbala for the seven planets (and the nodes if present and requested)."""
    ctx = time_context(chart)
    bodies = list(SEVEN_PLANETS)
    if include_nodes:
        bodies += [b for b in (CelestialBody.RAHU, CelestialBody.KETU) if chart.get(b) is not None]
    results = {body: calculate_shadbala(chart, body, ctx) for body in bodies}

    planets = [results[b] for b in SEVEN_PLANETS]
    strongest = max(planets, key=lambda r: r.percentage_of_required)
    weakest = min(planets, key=lambda r: r.percentage_of_required)
    overall = sum(r.percentage_of_required for r in planets) / len(planets)
    return ShadbalaAnalysis(
        results=results,
        strongest=strongest.body,
        weakest=weakest.body,
        overall_percentage=overall,
    )
