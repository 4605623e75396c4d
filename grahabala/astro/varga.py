"""
Divisional (varga) charts.

Every division is table-driven: each rashi is cut into ``divisions`` equal
parts and part k (0-based) of rashi r falls in sign
``start_signs[r] + k * steps[r]``. Trimsamsa (D30) has unequal parts and uses
explicit degree bands instead.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..errors import InvalidInputError
from .constants import CelestialBody, ZodiacSign
from .models import NatalChart
from .utils import degree_in_sign, house_from_sign, sign_index


@dataclass(frozen=True)
class VargaDefinition:
    code: str
    name: str
    divisions: int
    start_signs: Tuple[int, ...] = tuple(range(12))
    steps: Tuple[int, ...] = (1,) * 12
    # (upper bound in degrees, sign) per odd/even rashi; D30 only
    odd_bands: Optional[Tuple[Tuple[float, ZodiacSign], ...]] = None
    even_bands: Optional[Tuple[Tuple[float, ZodiacSign], ...]] = None


@dataclass(frozen=True)
class VargaPlacement:
    division: int
    sign: ZodiacSign
    degree_in_sign: float
    part: int  # 1-based part of the rashi


@dataclass(frozen=True)
class DivisionalChart:
    division: int
    name: str
    ascendant: VargaPlacement
    placements: Dict[CelestialBody, VargaPlacement]

    def house_of(self, body: CelestialBody) -> int:
        return house_from_sign(self.placements[body].sign, self.ascendant.sign)


VARGAS: Dict[int, VargaDefinition] = {
    1: VargaDefinition("D1", "Rashi", 1),
    # Parashari hora: odd signs Leo then Cancer, even signs Cancer then Leo
    2: VargaDefinition("D2", "Hora", 2, start_signs=(4, 3) * 6, steps=(-1, 1) * 6),
    3: VargaDefinition("D3", "Drekkana", 3, steps=(4,) * 12),
    4: VargaDefinition("D4", "Chaturthamsa", 4, steps=(3,) * 12),
    7: VargaDefinition("D7", "Saptamsa", 7, start_signs=(0, 7, 2, 9, 4, 11, 6, 1, 8, 3, 10, 5)),
    9: VargaDefinition("D9", "Navamsa", 9, start_signs=(0, 9, 6, 3) * 3),
    10: VargaDefinition("D10", "Dasamsa", 10, start_signs=(0, 9, 2, 11, 4, 1, 6, 3, 8, 5, 10, 7)),
    12: VargaDefinition("D12", "Dwadasamsa", 12),
    16: VargaDefinition("D16", "Shodasamsa", 16, start_signs=(0, 4, 8) * 4),
    20: VargaDefinition("D20", "Vimsamsa", 20, start_signs=(0, 8, 4) * 4),
    24: VargaDefinition("D24", "Chaturvimsamsa", 24, start_signs=(4, 3) * 6),
    27: VargaDefinition("D27", "Saptavimsamsa", 27, start_signs=(0, 3, 6, 9) * 3),
    30: VargaDefinition(
        "D30",
        "Trimsamsa",
        30,
        odd_bands=(
            (5.0, ZodiacSign.ARIES),
            (10.0, ZodiacSign.AQUARIUS),
            (18.0, ZodiacSign.SAGITTARIUS),
            (25.0, ZodiacSign.GEMINI),
            (30.0, ZodiacSign.LIBRA),
        ),
        even_bands=(
            (5.0, ZodiacSign.TAURUS),
            (12.0, ZodiacSign.VIRGO),
            (20.0, ZodiacSign.PISCES),
            (25.0, ZodiacSign.CAPRICORN),
            (30.0, ZodiacSign.SCORPIO),
        ),
    ),
    40: VargaDefinition("D40", "Khavedamsa", 40, start_signs=(0, 6) * 6),
    45: VargaDefinition("D45", "Akshavedamsa", 45, start_signs=(0, 4, 8) * 4),
    60: VargaDefinition("D60", "Shashtiamsa", 60),
}

# Divisions scored by Saptavargaja Bala
SAPTAVARGA: Tuple[int, ...] = (1, 2, 3, 7, 9, 12, 30)


def get_varga(division: int) -> VargaDefinition:
    try:
        return VARGAS[int(division)]
    except (KeyError, TypeError, ValueError):
        raise InvalidInputError(
            f"Unsupported divisional chart: D{division}",
            {"division": division, "supported": sorted(VARGAS)},
        ) from None


def _banded_position(definition: VargaDefinition, rashi: ZodiacSign, degree: float) -> VargaPlacement:
    bands = definition.odd_bands if rashi.is_odd else definition.even_bands
    lower = 0.0
    for part, (upper, sign) in enumerate(bands, start=1):
        if degree < upper:
            break
        lower = upper
    within = (degree - lower) / (upper - lower) * 30.0
    return VargaPlacement(definition.divisions, sign, within, part)


def varga_position(longitude: float, division: int) -> VargaPlacement:
    """Divisional sign and degree for a sidereal longitude."""
    definition = get_varga(division)
    rashi = ZodiacSign(sign_index(longitude))
    degree = degree_in_sign(longitude)
    if definition.odd_bands is not None:
        return _banded_position(definition, rashi, degree)

    n = definition.divisions
    part = min(int(degree * n // 30.0), n - 1)
    within = degree * n - part * 30.0
    sign = ZodiacSign((definition.start_signs[rashi] + part * definition.steps[rashi]) % 12)
    return VargaPlacement(n, sign, within, part + 1)


def varga_sign(longitude: float, division: int) -> ZodiacSign:
    return varga_position(longitude, division).sign


def is_vargottama(longitude: float) -> bool:
    """Same sign in the rashi and the navamsa."""
    return varga_sign(longitude, 9) == sign_index(longitude)


def divisional_chart(chart: NatalChart, division: int) -> DivisionalChart:
    definition = get_varga(division)
    return DivisionalChart(
        division=definition.divisions,
        name=definition.name,
        ascendant=varga_position(chart.ascendant, division),
        placements={p.body: varga_position(p.longitude, division) for p in chart.positions},
    )
