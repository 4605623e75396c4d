"""
Transit (gochara) scoring against a natal chart.

The current instant is always passed in by the caller; nothing here reads the
wall clock.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import MissingCollaboratorDataError
from .ashtakavarga import AshtakavargaTable, TransitBindus
from .constants import CLASSICAL_BODIES, SEVEN_PLANETS, CelestialBody, Nature, ZodiacSign
from .models import NatalChart, PlanetPosition
from .utils import as_utc, sign_of

logger = logging.getLogger(__name__)

_SU, _MO, _MA, _ME, _JU, _VE, _SA = SEVEN_PLANETS
_RA, _KE = CelestialBody.RAHU, CelestialBody.KETU

# Houses from the natal Moon where a transit gives good results
GOCHARA_FAVORABLE: Dict[CelestialBody, frozenset] = {
    _SU: frozenset({3, 6, 10, 11}),
    _MO: frozenset({1, 3, 6, 7, 10, 11}),
    _MA: frozenset({3, 6, 11}),
    _ME: frozenset({2, 4, 6, 8, 10, 11}),
    _JU: frozenset({2, 5, 7, 9, 11}),
    _VE: frozenset({1, 2, 3, 4, 5, 8, 9, 11, 12}),
    _SA: frozenset({3, 6, 11}),
    _RA: frozenset({3, 6, 10, 11}),
    _KE: frozenset({3, 6, 10, 11}),
}

# Favorable house -> house whose occupant obstructs it (vedha)
VEDHA: Dict[CelestialBody, Dict[int, int]] = {
    _SU: {3: 9, 6: 12, 10: 4, 11: 5},
    _MO: {1: 5, 3: 9, 6: 12, 7: 2, 10: 4, 11: 8},
    _MA: {3: 12, 6: 9, 11: 5},
    _ME: {2: 5, 4: 3, 6: 9, 8: 1, 10: 8, 11: 12},
    _JU: {2: 12, 5: 4, 7: 3, 9: 10, 11: 8},
    _VE: {1: 8, 2: 7, 3: 1, 4: 10, 5: 9, 8: 5, 9: 11, 11: 6, 12: 3},
    _SA: {3: 12, 6: 9, 11: 5},
}

# Pairs that never obstruct each other
VEDHA_EXEMPT = (frozenset({_SU, _SA}), frozenset({_MO, _ME}))

HOUSE_MATTERS = (
    "health and self",
    "wealth and family",
    "courage and siblings",
    "home and comfort",
    "children and intellect",
    "enemies and disease",
    "partnership",
    "obstacles and longevity",
    "fortune and dharma",
    "career and status",
    "gains and income",
    "expenses and losses",
)

BINDU_WEIGHT = 0.5
ASPECT_WEIGHT = 0.3
GOCHARA_WEIGHT = 0.2
# Larger values flatten the aspect response
ASPECT_SOFTNESS = 4.0

MAX_BAV = 8
MAX_SAV = 56

FAVORABLE_SCORE = 50.0
TRANSIT_RATINGS = ((66.0, "Strong"), (40.0, "Moderate"))
QUALITY_LABELS = ((75.0, "Excellent"), (60.0, "Good"), (45.0, "Mixed"), (30.0, "Challenging"))

# Coarse search step in days; the Moon changes sign every ~2.5 days
SEARCH_STEP_DAYS: Dict[CelestialBody, float] = {_MO: 0.25}
DEFAULT_STEP_DAYS = 1.0
# Saturn can hold a sign (with retrogression) for about three years
DEFAULT_HORIZON_DAYS = 1100
REFINE_ITERATIONS = 24


@dataclass(frozen=True)
class TransitAspect:
    transiting: CelestialBody
    natal: CelestialBody
    house: int  # aspect counted inclusively from the transiting sign
    is_favorable: bool


@dataclass(frozen=True)
class PlanetTransit:
    body: CelestialBody
    sign: ZodiacSign
    longitude: float
    is_retrograde: bool
    house_from_ascendant: int
    house_from_moon: int
    gochara_favorable: bool
    vedha_by: Optional[CelestialBody]
    bindus: TransitBindus
    aspects: Tuple[TransitAspect, ...]
    score: float
    is_favorable: bool
    strength_rating: str
    description: str

    @property
    def net_aspects(self) -> int:
        return sum(1 if a.is_favorable else -1 for a in self.aspects)


@dataclass(frozen=True)
class SignChange:
    body: CelestialBody
    from_sign: ZodiacSign
    to_sign: ZodiacSign
    instant: datetime


@dataclass(frozen=True)
class TransitAnalysis:
    instant: datetime
    transits: Dict[CelestialBody, PlanetTransit]
    score: float
    is_favorable: bool
    quality: str
    notes: Tuple[str, ...]
    sign_changes: Tuple[SignChange, ...] = ()


def _ordinal(n: int) -> str:
    suffix = "th" if 10 <= n % 100 <= 20 else {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def transit_aspects(body: CelestialBody, sign: ZodiacSign, natal: NatalChart) -> Tuple[TransitAspect, ...]:
    """Sign-based Vedic aspects from a transiting body onto natal planets."""
    favorable = body.nature is Nature.BENEFIC
    out: List[TransitAspect] = []
    for natal_position in natal.positions:
        if natal_position.body not in CLASSICAL_BODIES:
            continue
        house = natal_position.sign.house_from(sign)
        if house in body.aspect_houses:
            out.append(TransitAspect(body, natal_position.body, house, favorable))
    return tuple(out)


def aspect_ratio(net: int) -> float:
    """0..1, 0.5 at zero net, strictly increasing in net favorable aspects."""
    return 0.5 + 0.5 * net / (abs(net) + ASPECT_SOFTNESS)


def bindu_ratio(bindus: TransitBindus) -> float:
    if bindus.bav is not None:
        return bindus.bav / MAX_BAV
    return bindus.sav / MAX_SAV


def transit_score(bindus: TransitBindus, net_aspects: int, gochara_favorable: bool) -> float:
    """Weighted 0-100 score; monotonic in bindus and in net favorable aspects."""
    raw = (
        BINDU_WEIGHT * bindu_ratio(bindus)
        + ASPECT_WEIGHT * aspect_ratio(net_aspects)
        + GOCHARA_WEIGHT * (1.0 if gochara_favorable else 0.0)
    )
    return max(0.0, min(100.0, raw * 100.0))


def _rating(score: float) -> str:
    for lower, label in TRANSIT_RATINGS:
        if score >= lower:
            return label
    return "Weak"


def _quality(score: float) -> str:
    for lower, label in QUALITY_LABELS:
        if score >= lower:
            return label
    return "Difficult"


def _vedha(body: CelestialBody, house_from_moon: int, current: Mapping[CelestialBody, PlanetPosition], moon_sign: ZodiacSign) -> Optional[CelestialBody]:
    blocked_from = VEDHA.get(body, {}).get(house_from_moon)
    if blocked_from is None:
        return None
    for other, position in current.items():
        if other is body or other not in SEVEN_PLANETS:
            continue
        if frozenset({body, other}) in VEDHA_EXEMPT:
            continue
        if position.sign.house_from(moon_sign) == blocked_from:
            return other
    return None


def _saturn_notes(house_from_moon: int) -> List[str]:
    if house_from_moon == 12:
        return ["Sade Sati: rising phase (Saturn 12th from Moon)"]
    if house_from_moon == 1:
        return ["Sade Sati: peak phase (Saturn over natal Moon)"]
    if house_from_moon == 2:
        return ["Sade Sati: setting phase (Saturn 2nd from Moon)"]
    if house_from_moon == 8:
        return ["Ashtama Shani (Saturn 8th from Moon)"]
    if house_from_moon in (4, 7, 10):
        return [f"Kantaka Shani (Saturn {_ordinal(house_from_moon)} from Moon)"]
    return []


def analyze_transits(
    natal: NatalChart,
    current: Mapping[CelestialBody, PlanetPosition],
    instant: datetime,
    ashtakavarga: AshtakavargaTable,
    sign_changes: Iterable[SignChange] = (),
) -> TransitAnalysis:
    """
    Score every classical body in ``current`` against the natal chart.

    ``current`` holds the positions at ``instant``. The natal Moon is
    required for gochara; its absence is a MissingCollaboratorDataError.
    """
    if not current:
        raise MissingCollaboratorDataError("No current positions supplied for transit analysis", {"instant": as_utc(instant).isoformat()})
    moon_sign = natal.position(_MO).sign
    asc_sign = natal.ascendant_sign

    transits: Dict[CelestialBody, PlanetTransit] = {}
    notes: List[str] = []
    for body in CLASSICAL_BODIES:
        position = current.get(body)
        if position is None:
            continue
        sign = position.sign
        from_moon = sign.house_from(moon_sign)
        from_asc = sign.house_from(asc_sign)

        gochara = from_moon in GOCHARA_FAVORABLE[body]
        vedha_by = _vedha(body, from_moon, current, moon_sign) if gochara else None
        if vedha_by is not None:
            logger.debug(f"Vedha: {body.value} in {from_moon} from Moon obstructed by {vedha_by.value}")
            gochara = False

        bindus = ashtakavarga.transit_bindus(body, sign)
        aspects = transit_aspects(body, sign, natal)
        net = sum(1 if a.is_favorable else -1 for a in aspects)
        score = transit_score(bindus, net, gochara)
        favorable = score >= FAVORABLE_SCORE

        bav_text = f"BAV {bindus.bav}, " if bindus.bav is not None else ""
        description = (
            f"{body.value} in {sign.display_name} ({_ordinal(from_moon)} from Moon, "
            f"house {from_asc}): {'favorable' if favorable else 'unfavorable'} for "
            f"{HOUSE_MATTERS[from_asc - 1]}; {bav_text}SAV {bindus.sav}"
        )
        if vedha_by is not None:
            description += f"; obstructed by {vedha_by.value}"

        transits[body] = PlanetTransit(
            body=body,
            sign=sign,
            longitude=position.longitude,
            is_retrograde=position.is_retrograde,
            house_from_ascendant=from_asc,
            house_from_moon=from_moon,
            gochara_favorable=gochara,
            vedha_by=vedha_by,
            bindus=bindus,
            aspects=aspects,
            score=score,
            is_favorable=favorable,
            strength_rating=_rating(score),
            description=description,
        )
        if body is _SA:
            notes.extend(_saturn_notes(from_moon))
        elif body is _JU and from_moon in (1, 5, 9):
            notes.append(f"Jupiter transiting {_ordinal(from_moon)} from Moon")

    if not transits:
        raise MissingCollaboratorDataError("No classical bodies among current positions", {"bodies": [b.value for b in current]})

    overall = sum(t.score for t in transits.values()) / len(transits)
    return TransitAnalysis(
        instant=as_utc(instant),
        transits=transits,
        score=overall,
        is_favorable=overall >= FAVORABLE_SCORE,
        quality=_quality(overall),
        notes=tuple(notes),
        sign_changes=tuple(sign_changes),
    )


# ------------------------- Sign change search -------------------------

def _sign_at(ephemeris, body: CelestialBody, instant: datetime) -> ZodiacSign:
    raw = ephemeris.position(body, instant)
    if raw is None:
        raise MissingCollaboratorDataError(f"Ephemeris returned no position for {body.value}", {"body": body.value, "instant": instant.isoformat()})
    return sign_of(raw.longitude)


def next_sign_change(ephemeris, body: CelestialBody, start: datetime, max_days: float = DEFAULT_HORIZON_DAYS) -> Optional[SignChange]:
    """
    First sign ingress of ``body`` after ``start``.

    Steps forward coarsely, then bisects the bracketing interval. Returns
    None when nothing changes within ``max_days``.
    """
    start = as_utc(start)
    step = timedelta(days=SEARCH_STEP_DAYS.get(body, DEFAULT_STEP_DAYS))
    horizon = start + timedelta(days=max_days)
    sign = _sign_at(ephemeris, body, start)

    before = start
    while before < horizon:
        after = min(before + step, horizon)
        new_sign = _sign_at(ephemeris, body, after)
        if new_sign is not sign:
            lo, hi = before, after
            for _ in range(REFINE_ITERATIONS):
                mid = lo + (hi - lo) / 2
                if _sign_at(ephemeris, body, mid) is sign:
                    lo = mid
                else:
                    hi = mid
            entered = _sign_at(ephemeris, body, hi)
            return SignChange(body, sign, entered, hi)
        before = after
    logger.debug(f"No sign change for {body.value} within {max_days} days of {start.isoformat()}")
    return None


def find_sign_changes(ephemeris, start: datetime, bodies: Iterable[CelestialBody] = CLASSICAL_BODIES, max_days: float = DEFAULT_HORIZON_DAYS) -> List[SignChange]:
    """Next ingress of each body, soonest first."""
    changes = [c for c in (next_sign_change(ephemeris, b, start, max_days) for b in bodies) if c is not None]
    return sorted(changes, key=lambda c: c.instant)
