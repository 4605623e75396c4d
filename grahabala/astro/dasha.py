from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from ..errors import InvalidInputError
from .constants import DASHA_SEQUENCE, CelestialBody
from .utils import as_utc, get_nakshatra_and_pada, nakshatra_fraction

# Vimshottari mahadasha lengths in years
DASHA_YEARS: Dict[CelestialBody, int] = {
    CelestialBody.KETU: 7,
    CelestialBody.VENUS: 20,
    CelestialBody.SUN: 6,
    CelestialBody.MOON: 10,
    CelestialBody.MARS: 7,
    CelestialBody.RAHU: 18,
    CelestialBody.JUPITER: 16,
    CelestialBody.SATURN: 19,
    CelestialBody.MERCURY: 17,
}
CYCLE_YEARS = 120
DAYS_PER_YEAR = 365.25
MAX_DEPTH = 3


@dataclass
class DashaPeriod:
    lord: CelestialBody
    level: int
    start: datetime
    end: datetime
    years_share: int
    active: Optional[bool] = None
    children: List["DashaPeriod"] = field(default_factory=list)

    @property
    def duration_days(self) -> float:
        return (self.end - self.start).total_seconds() / 86400.0


@dataclass(frozen=True)
class DashaBalance:
    lord: CelestialBody
    elapsed_fraction: float
    balance_years: float
    mahadasha_start: datetime  # canonical start, before birth


def _seq_from(lord: CelestialBody) -> Tuple[CelestialBody, ...]:
    start = DASHA_SEQUENCE.index(lord)
    return DASHA_SEQUENCE[start:] + DASHA_SEQUENCE[:start]


def _overlaps(a_start: datetime, a_end: datetime, window_start: datetime, window_end: datetime) -> bool:
    return not (a_end <= window_start or a_start >= window_end)


def dasha_balance(birth_utc: datetime, moon_longitude: float) -> DashaBalance:
    """
    The birth mahadasha and how much of it is left.

    The Moon's nakshatra ruler is the lord; the untraversed part of the
    nakshatra is the unelapsed part of the mahadasha.
    """
    nakshatra, _ = get_nakshatra_and_pada(moon_longitude)
    lord = nakshatra.ruler
    elapsed = nakshatra_fraction(moon_longitude)
    total = float(DASHA_YEARS[lord])
    start = as_utc(birth_utc) - timedelta(days=elapsed * total * DAYS_PER_YEAR)
    return DashaBalance(lord, elapsed, (1.0 - elapsed) * total, start)


def _subdivide(
    lord: CelestialBody,
    full_start: datetime,
    full_end: datetime,
    level: int,
    depth: int,
    window: Tuple[datetime, datetime],
    at: Optional[datetime],
) -> List[DashaPeriod]:
    """
    Sub-periods of a parent lord built over the parent's full canonical span,
    then clipped to the visible window. Clipping never rescales a period.
    """
    span_days = (full_end - full_start).total_seconds() / 86400.0
    out: List[DashaPeriod] = []
    cursor = full_start
    for sub_lord in _seq_from(lord):
        sub_end = cursor + timedelta(days=span_days * DASHA_YEARS[sub_lord] / CYCLE_YEARS)
        if _overlaps(cursor, sub_end, *window):
            out.append(_period(sub_lord, cursor, sub_end, level, depth, window, at))
        cursor = sub_end
    return out


def _period(
    lord: CelestialBody,
    full_start: datetime,
    full_end: datetime,
    level: int,
    depth: int,
    window: Tuple[datetime, datetime],
    at: Optional[datetime],
) -> DashaPeriod:
    start = max(full_start, window[0])
    end = min(full_end, window[1])
    period = DashaPeriod(
        lord=lord,
        level=level,
        start=start,
        end=end,
        years_share=DASHA_YEARS[lord],
        active=(start <= at < end) if at is not None else None,
    )
    if level < depth:
        period.children = _subdivide(lord, full_start, full_end, level + 1, depth, window, at)
    return period


def vimshottari_dasha(
    birth_utc: datetime,
    moon_longitude: float,
    depth: int = MAX_DEPTH,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    at: Optional[datetime] = None,
) -> List[DashaPeriod]:
    """
    Vimshottari timeline from the Moon's sidereal longitude.

    - depth: 1 (mahadasha) to 3 (pratyantardasha)
    - from_date/to_date: visible window, default [birth, birth + 120 years]
    - at: marks the periods containing this instant as active

    The first mahadasha started before birth; its sub-periods are laid out
    over its full span and those ending before birth are dropped.
    """
    if not 1 <= depth <= MAX_DEPTH:
        raise InvalidInputError(f"Dasha depth must be between 1 and {MAX_DEPTH}, got {depth}", {"depth": depth})
    birth_utc = as_utc(birth_utc)
    window_start = max(birth_utc, as_utc(from_date)) if from_date is not None else birth_utc
    window_end = as_utc(to_date) if to_date is not None else birth_utc + timedelta(days=CYCLE_YEARS * DAYS_PER_YEAR)
    if window_end <= window_start:
        raise InvalidInputError("Dasha window end must come after its start", {"fromDate": window_start.isoformat(), "toDate": window_end.isoformat()})
    window = (window_start, window_end)
    at_utc = as_utc(at) if at is not None else None

    balance = dasha_balance(birth_utc, moon_longitude)
    timeline: List[DashaPeriod] = []
    cursor = balance.mahadasha_start
    cycle = _seq_from(balance.lord)
    k = 0
    while cursor < window_end:
        lord = cycle[k % len(cycle)]
        end = cursor + timedelta(days=DASHA_YEARS[lord] * DAYS_PER_YEAR)
        if _overlaps(cursor, end, *window):
            timeline.append(_period(lord, cursor, end, 1, depth, window, at_utc))
        cursor = end
        k += 1
    return timeline


def current_periods(timeline: List[DashaPeriod]) -> List[DashaPeriod]:
    """The chain of active periods, mahadasha first."""
    chain: List[DashaPeriod] = []
    level = timeline
    while level:
        active = next((p for p in level if p.active), None)
        if active is None:
            break
        chain.append(active)
        level = active.children
    return chain
