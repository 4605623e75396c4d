"""
Dignity and condition of planets: exaltation/debilitation/own sign,
combustion by the Sun, retrogression and graha yuddha (planetary war).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from .constants import (
    BRIGHTNESS_RANK,
    COMBUSTION_ORBS,
    EXALTATION,
    MOOLATRIKONA,
    NATURAL_RELATIONS,
    TEMPORAL_FRIEND_HOUSES,
    WAR_ORB_DEG,
    WAR_PLANETS,
    CelestialBody,
    Relationship,
    ZodiacSign,
)
from .models import NatalChart, PlanetPosition
from .utils import angular_separation, degree_in_sign, sign_of

logger = logging.getLogger(__name__)


class Dignity(Enum):
    EXALTED = "Exalted"
    DEBILITATED = "Debilitated"
    MOOLATRIKONA = "Moolatrikona"
    OWN_SIGN = "Own Sign"
    FRIENDLY = "Friendly"
    NEUTRAL = "Neutral"
    ENEMY = "Enemy"


class CombustionStatus(Enum):
    NOT_COMBUST = "NotCombust"
    PARTIALLY_COMBUST = "PartiallyCombust"
    DEEPLY_COMBUST = "DeeplyCombust"


@dataclass(frozen=True)
class WarInfo:
    opponent: CelestialBody
    separation: float
    is_victor: bool


@dataclass(frozen=True)
class PlanetaryCondition:
    body: CelestialBody
    dignity: Dignity
    is_retrograde: bool
    combustion_status: CombustionStatus
    distance_from_sun: Optional[float]
    is_in_planetary_war: bool = False
    war_opponent: Optional[CelestialBody] = None
    is_war_victor: Optional[bool] = None

    @property
    def is_combust(self) -> bool:
        return self.combustion_status is not CombustionStatus.NOT_COMBUST


# ------------------------- Dignity -------------------------

def exaltation_sign(body: CelestialBody) -> Optional[ZodiacSign]:
    entry = EXALTATION.get(body)
    return entry[0] if entry else None


def debilitation_sign(body: CelestialBody) -> Optional[ZodiacSign]:
    entry = EXALTATION.get(body)
    return entry[0].offset(6) if entry else None


def exaltation_point(body: CelestialBody) -> Optional[float]:
    entry = EXALTATION.get(body)
    return entry[0].start_longitude + entry[1] if entry else None


def is_exalted(body: CelestialBody, sign: ZodiacSign) -> bool:
    return exaltation_sign(body) is sign


def is_debilitated(body: CelestialBody, sign: ZodiacSign) -> bool:
    return debilitation_sign(body) is sign


def is_moolatrikona(body: CelestialBody, longitude: float) -> bool:
    entry = MOOLATRIKONA.get(body)
    if entry is None:
        return False
    sign, start, end = entry
    return sign_of(longitude) is sign and start <= degree_in_sign(longitude) < end


def natural_relationship(body: CelestialBody, other: CelestialBody) -> Relationship:
    """Naisargika relationship; bodies outside the seven planets are neutral."""
    relations = NATURAL_RELATIONS.get(body)
    if relations is None or body is other:
        return Relationship.NEUTRAL
    friends, enemies = relations
    if other in friends:
        return Relationship.FRIEND
    if other in enemies:
        return Relationship.ENEMY
    return Relationship.NEUTRAL


def temporal_relationship(body_sign: ZodiacSign, other_sign: ZodiacSign) -> Relationship:
    """Tatkalika relationship from the other planet's house counted from this one."""
    if other_sign.house_from(body_sign) in TEMPORAL_FRIEND_HOUSES:
        return Relationship.FRIEND
    return Relationship.ENEMY


_COMPOUND = {
    (Relationship.FRIEND, Relationship.FRIEND): Relationship.GREAT_FRIEND,
    (Relationship.FRIEND, Relationship.ENEMY): Relationship.NEUTRAL,
    (Relationship.NEUTRAL, Relationship.FRIEND): Relationship.FRIEND,
    (Relationship.NEUTRAL, Relationship.ENEMY): Relationship.ENEMY,
    (Relationship.ENEMY, Relationship.FRIEND): Relationship.NEUTRAL,
    (Relationship.ENEMY, Relationship.ENEMY): Relationship.GREAT_ENEMY,
}


def compound_relationship(natural: Relationship, temporal: Relationship) -> Relationship:
    """Panchadha maitri from natural and temporal relationships."""
    return _COMPOUND[(natural, temporal)]


def dignity_of(body: CelestialBody, longitude: float) -> Dignity:
    """
    Rashi dignity. Exaltation and debilitation are checked first and are
    mutually exclusive because they sit in opposite signs.
    """
    sign = sign_of(longitude)
    if is_exalted(body, sign):
        return Dignity.EXALTED
    if is_debilitated(body, sign):
        return Dignity.DEBILITATED
    if is_moolatrikona(body, longitude):
        return Dignity.MOOLATRIKONA
    lord = sign.ruler
    if lord is body:
        return Dignity.OWN_SIGN
    relation = natural_relationship(body, lord)
    if relation is Relationship.FRIEND:
        return Dignity.FRIENDLY
    if relation is Relationship.ENEMY:
        return Dignity.ENEMY
    return Dignity.NEUTRAL


# ------------------------- Combustion -------------------------

def combustion_orbs(body: CelestialBody, is_retrograde: bool) -> Optional[Tuple[float, float]]:
    """(deep orb, partial orb) for a body, or None when it never combusts."""
    orbs = COMBUSTION_ORBS.get(body)
    if orbs is None:
        return None
    deep, deep_retro, partial = orbs
    return (deep_retro if is_retrograde else deep), partial


def combustion_status(position: PlanetPosition, sun_longitude: float) -> Tuple[CombustionStatus, Optional[float]]:
    """
    Classify combustion from the shorter-arc distance to the Sun.

    Within the body's classical orb it is deeply combust, within the wider
    partial orb partially combust. Returns (status, separation). The Sun, the
    nodes and the outer planets have no orb and are never combust; their
    separation is still reported except for the Sun itself.
    """
    if position.body is CelestialBody.SUN:
        return CombustionStatus.NOT_COMBUST, None
    separation = angular_separation(position.longitude, sun_longitude)
    orbs = combustion_orbs(position.body, position.is_retrograde)
    if orbs is None:
        return CombustionStatus.NOT_COMBUST, separation
    deep, partial = orbs
    if separation <= deep:
        return CombustionStatus.DEEPLY_COMBUST, separation
    if separation <= partial:
        return CombustionStatus.PARTIALLY_COMBUST, separation
    return CombustionStatus.NOT_COMBUST, separation


# ------------------------- Planetary war -------------------------

def _war_victor(a: PlanetPosition, b: PlanetPosition) -> CelestialBody:
    # Higher longitude wins; exact ties go to the brighter planet
    if a.longitude != b.longitude:
        return a.body if a.longitude > b.longitude else b.body
    return a.body if BRIGHTNESS_RANK[a.body] >= BRIGHTNESS_RANK[b.body] else b.body


def detect_planetary_wars(positions: Iterable[PlanetPosition]) -> Dict[CelestialBody, WarInfo]:
    """
    Pair up war-capable planets sharing a sign within WAR_ORB_DEG.

    A planet caught in more than one pair reports its closest opponent.
    """
    fighters = [p for p in positions if p.body in WAR_PLANETS]
    wars: Dict[CelestialBody, WarInfo] = {}
    for i, a in enumerate(fighters):
        for b in fighters[i + 1:]:
            if a.sign is not b.sign:
                continue
            separation = abs(a.longitude - b.longitude)
            if separation >= WAR_ORB_DEG:
                continue
            victor = _war_victor(a, b)
            logger.debug(f"Planetary war: {a.body.value} vs {b.body.value} ({separation:.3f}°), victor {victor.value}")
            for me, other in ((a, b), (b, a)):
                current = wars.get(me.body)
                if current is None or separation < current.separation:
                    wars[me.body] = WarInfo(other.body, separation, victor is me.body)
    return wars


# ------------------------- Chart conditions -------------------------

def planetary_conditions(chart: NatalChart) -> Dict[CelestialBody, PlanetaryCondition]:
    """Condition of every body in the chart. Requires the Sun's position."""
    sun = chart.position(CelestialBody.SUN)
    wars = detect_planetary_wars(chart.positions)
    out: Dict[CelestialBody, PlanetaryCondition] = {}
    for position in chart.positions:
        status, separation = combustion_status(position, sun.longitude)
        war = wars.get(position.body)
        out[position.body] = PlanetaryCondition(
            body=position.body,
            dignity=dignity_of(position.body, position.longitude),
            is_retrograde=position.is_retrograde,
            combustion_status=status,
            distance_from_sun=separation,
            is_in_planetary_war=war is not None,
            war_opponent=war.opponent if war else None,
            is_war_victor=war.is_victor if war else None,
        )
    return out
