"""
Ashtakavarga: benefic points (bindus) contributed to each sign by the seven
planets and the ascendant.

For a target planet, every contributor (the seven planets plus Lagna) gives
one bindu to the houses listed in its row, counted inclusively from the
contributor's own sign. Summing the eight rows gives the planet's
Bhinnashtakavarga (BAV); summing the seven BAVs gives the Sarvashtakavarga
(SAV). Tables follow Brihat Parashara Hora Shastra.
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..errors import InvalidInputError
from .constants import SEVEN_PLANETS, CelestialBody, ZodiacSign
from .models import NatalChart

LAGNA = "Lagna"

_SU, _MO, _MA, _ME, _JU, _VE, _SA = SEVEN_PLANETS

# target -> contributor -> houses receiving a bindu
BINDU_HOUSES: Dict[CelestialBody, Dict[CelestialBody, Tuple[int, ...]]] = {
    _SU: {
        _SU: (1, 2, 4, 7, 8, 9, 10, 11),
        _MO: (3, 6, 10, 11),
        _MA: (1, 2, 4, 7, 8, 9, 10, 11),
        _ME: (3, 5, 6, 9, 10, 11, 12),
        _JU: (5, 6, 9, 11),
        _VE: (6, 7, 12),
        _SA: (1, 2, 4, 7, 8, 9, 10, 11),
    },
    _MO: {
        _SU: (3, 6, 7, 8, 10, 11),
        _MO: (1, 3, 6, 7, 10, 11),
        _MA: (2, 3, 5, 6, 9, 10, 11),
        _ME: (1, 3, 4, 5, 7, 8, 10, 11),
        _JU: (1, 4, 7, 8, 10, 11, 12),
        _VE: (3, 4, 5, 7, 9, 10, 11),
        _SA: (3, 5, 6, 11),
    },
    _MA: {
        _SU: (3, 5, 6, 10, 11),
        _MO: (3, 6, 11),
        _MA: (1, 2, 4, 7, 8, 10, 11),
        _ME: (3, 5, 6, 11),
        _JU: (6, 10, 11, 12),
        _VE: (6, 8, 11, 12),
        _SA: (1, 4, 7, 8, 9, 10, 11),
    },
    _ME: {
        _SU: (5, 6, 9, 11, 12),
        _MO: (2, 4, 6, 8, 10, 11),
        _MA: (1, 2, 4, 7, 8, 9, 10, 11),
        _ME: (1, 3, 5, 6, 9, 10, 11, 12),
        _JU: (6, 8, 11, 12),
        _VE: (1, 2, 3, 4, 5, 8, 9, 11),
        _SA: (1, 2, 4, 7, 8, 9, 10, 11),
    },
    _JU: {
        _SU: (1, 2, 3, 4, 7, 8, 9, 10, 11),
        _MO: (2, 5, 7, 9, 11),
        _MA: (1, 2, 4, 7, 8, 10, 11),
        _ME: (1, 2, 4, 5, 6, 9, 10, 11),
        _JU: (1, 2, 3, 4, 7, 8, 10, 11),
        _VE: (2, 5, 6, 9, 10, 11),
        _SA: (3, 5, 6, 12),
    },
    _VE: {
        _SU: (8, 11, 12),
        _MO: (1, 2, 3, 4, 5, 8, 9, 11, 12),
        _MA: (3, 5, 6, 9, 11, 12),
        _ME: (3, 5, 6, 9, 11),
        _JU: (5, 8, 9, 10, 11),
        _VE: (1, 2, 3, 4, 5, 8, 9, 10, 11),
        _SA: (3, 4, 5, 8, 9, 10, 11),
    },
    _SA: {
        _SU: (1, 2, 4, 7, 8, 10, 11),
        _MO: (3, 6, 11),
        _MA: (3, 5, 6, 10, 11, 12),
        _ME: (6, 8, 9, 10, 11, 12),
        _JU: (5, 6, 11, 12),
        _VE: (6, 11, 12),
        _SA: (3, 5, 6, 11),
    },
}

# Lagna's row for each target planet
LAGNA_BINDU_HOUSES: Dict[CelestialBody, Tuple[int, ...]] = {
    _SU: (3, 4, 6, 10, 11, 12),
    _MO: (3, 6, 10, 11),
    _MA: (1, 3, 6, 10, 11),
    _ME: (1, 2, 4, 6, 8, 10, 11),
    _JU: (1, 2, 4, 5, 6, 7, 9, 10, 11),
    _VE: (1, 2, 3, 4, 5, 8, 9, 11),
    _SA: (1, 3, 4, 6, 10, 11),
}

# Classical BAV totals; they hold for every chart
BAV_TOTALS: Dict[CelestialBody, int] = {
    _SU: 48,
    _MO: 49,
    _MA: 39,
    _ME: 54,
    _JU: 56,
    _VE: 52,
    _SA: 39,
}
SAV_TOTAL = 337

# A sign with at least this many SAV bindus is good for transits
SAV_FAVORABLE_THRESHOLD = 28


def bav_threshold(body: CelestialBody) -> int:
    """Above-average BAV score for a planet: ceil(classical total / 12)."""
    return math.ceil(BAV_TOTALS[body] / 12)


def _row(reference: ZodiacSign, houses: Tuple[int, ...]) -> Tuple[int, ...]:
    vector = [0] * 12
    for house in houses:
        vector[reference.offset(house - 1)] = 1
    return tuple(vector)


@dataclass(frozen=True)
class TransitBindus:
    body: Optional[CelestialBody]
    sign: ZodiacSign
    bav: Optional[int]
    sav: int
    is_favorable: bool


@dataclass(frozen=True)
class AshtakavargaTable:
    """
    ``prastara[target][contributor]`` is a 12-sign 0/1 vector; the
    contributor is a CelestialBody or the LAGNA marker.
    """

    prastara: Dict[CelestialBody, Dict[object, Tuple[int, ...]]]
    bhinna: Dict[CelestialBody, Tuple[int, ...]]
    sarva: Tuple[int, ...]

    def bindus(self, body: CelestialBody, sign: ZodiacSign) -> int:
        if body not in self.bhinna:
            raise InvalidInputError(f"No Bhinnashtakavarga for {body.value}", {"body": body.value})
        return self.bhinna[body][sign]

    def sav(self, sign: ZodiacSign) -> int:
        return self.sarva[sign]

    def total(self, body: CelestialBody) -> int:
        return sum(self.bhinna[body])

    @property
    def sav_total(self) -> int:
        return sum(self.sarva)

    def transit_bindus(self, body: Optional[CelestialBody], sign: ZodiacSign) -> TransitBindus:
        """Bindus for a body transiting a sign. Nodes and outer planets only get SAV."""
        sav = self.sarva[sign]
        bav = self.bhinna[body][sign] if body in self.bhinna else None
        favorable = sav >= SAV_FAVORABLE_THRESHOLD or (bav is not None and bav >= bav_threshold(body))
        return TransitBindus(body, sign, bav, sav, favorable)


def calculate_ashtakavarga(chart: NatalChart) -> AshtakavargaTable:
    """Build the full prastara, BAV and SAV for a chart."""
    signs = {body: chart.position(body).sign for body in SEVEN_PLANETS}
    lagna_sign = chart.ascendant_sign

    prastara: Dict[CelestialBody, Dict[object, Tuple[int, ...]]] = {}
    bhinna: Dict[CelestialBody, Tuple[int, ...]] = {}
    for target in SEVEN_PLANETS:
        rows: Dict[object, Tuple[int, ...]] = {
            contributor: _row(signs[contributor], houses)
            for contributor, houses in BINDU_HOUSES[target].items()
        }
        rows[LAGNA] = _row(lagna_sign, LAGNA_BINDU_HOUSES[target])
        prastara[target] = rows
        bhinna[target] = tuple(sum(row[i] for row in rows.values()) for i in range(12))

    sarva = tuple(sum(bhinna[target][i] for target in SEVEN_PLANETS) for i in range(12))
    return AshtakavargaTable(prastara=prastara, bhinna=bhinna, sarva=sarva)
