from collections import namedtuple
from enum import Enum, IntEnum
from typing import Dict, Tuple

from ..errors import InvalidInputError


class Nature(Enum):
    BENEFIC = "Benefic"
    MALEFIC = "Malefic"


class Gender(Enum):
    MALE = "Male"
    FEMALE = "Female"
    NEUTER = "Neuter"


class Element(Enum):
    FIRE = "Fire"
    EARTH = "Earth"
    AIR = "Air"
    WATER = "Water"


class Modality(Enum):
    MOVABLE = "Movable"
    FIXED = "Fixed"
    DUAL = "Dual"


class CelestialBody(Enum):
    """Bodies handled by the strength layer. Values double as display names."""

    SUN = "Sun"
    MOON = "Moon"
    MARS = "Mars"
    MERCURY = "Mercury"
    JUPITER = "Jupiter"
    VENUS = "Venus"
    SATURN = "Saturn"
    RAHU = "Rahu"
    KETU = "Ketu"
    URANUS = "Uranus"
    NEPTUNE = "Neptune"
    PLUTO = "Pluto"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def nature(self) -> Nature:
        return BODY_ATTRIBUTES[self].nature

    @property
    def naisargika(self) -> float:
        return BODY_ATTRIBUTES[self].naisargika

    @property
    def aspect_houses(self) -> Tuple[int, ...]:
        return BODY_ATTRIBUTES[self].aspect_houses

    @property
    def gender(self) -> Gender:
        return BODY_ATTRIBUTES[self].gender

    @property
    def is_node(self) -> bool:
        return self in NODES

    @classmethod
    def parse(cls, name: str) -> "CelestialBody":
        """Look a body up by display name or enum name (case-insensitive)."""
        key = str(name).strip().upper()
        for body in cls:
            if body.name == key or body.value.upper() == key:
                return body
        raise InvalidInputError(f"Unknown celestial body: {name}", {"value": name})


BodyAttributes = namedtuple("BodyAttributes", ["nature", "naisargika", "aspect_houses", "gender"])

# Naisargika (natural) strength in virupas is 60 * k / 7, Sun brightest.
BODY_ATTRIBUTES: Dict[CelestialBody, BodyAttributes] = {
    CelestialBody.SUN: BodyAttributes(Nature.MALEFIC, 60.0, (7,), Gender.MALE),
    CelestialBody.MOON: BodyAttributes(Nature.BENEFIC, 51.43, (7,), Gender.FEMALE),
    CelestialBody.MARS: BodyAttributes(Nature.MALEFIC, 17.14, (4, 7, 8), Gender.MALE),
    CelestialBody.MERCURY: BodyAttributes(Nature.BENEFIC, 25.71, (7,), Gender.NEUTER),
    CelestialBody.JUPITER: BodyAttributes(Nature.BENEFIC, 34.29, (5, 7, 9), Gender.MALE),
    CelestialBody.VENUS: BodyAttributes(Nature.BENEFIC, 42.86, (7,), Gender.FEMALE),
    CelestialBody.SATURN: BodyAttributes(Nature.MALEFIC, 8.57, (3, 7, 10), Gender.NEUTER),
    CelestialBody.RAHU: BodyAttributes(Nature.MALEFIC, 8.57, (5, 7, 9), Gender.NEUTER),
    CelestialBody.KETU: BodyAttributes(Nature.MALEFIC, 8.57, (5, 7, 9), Gender.NEUTER),
    CelestialBody.URANUS: BodyAttributes(Nature.MALEFIC, 0.0, (7,), Gender.NEUTER),
    CelestialBody.NEPTUNE: BodyAttributes(Nature.MALEFIC, 0.0, (7,), Gender.NEUTER),
    CelestialBody.PLUTO: BodyAttributes(Nature.MALEFIC, 0.0, (7,), Gender.NEUTER),
}

# Weekday order; also the row order of the Ashtakavarga tables
SEVEN_PLANETS: Tuple[CelestialBody, ...] = (
    CelestialBody.SUN,
    CelestialBody.MOON,
    CelestialBody.MARS,
    CelestialBody.MERCURY,
    CelestialBody.JUPITER,
    CelestialBody.VENUS,
    CelestialBody.SATURN,
)
NODES: Tuple[CelestialBody, ...] = (CelestialBody.RAHU, CelestialBody.KETU)
CLASSICAL_BODIES: Tuple[CelestialBody, ...] = SEVEN_PLANETS + NODES
OUTER_PLANETS: Tuple[CelestialBody, ...] = (CelestialBody.URANUS, CelestialBody.NEPTUNE, CelestialBody.PLUTO)

# Planets that can fight a graha yuddha
WAR_PLANETS = frozenset({
    CelestialBody.MARS,
    CelestialBody.MERCURY,
    CelestialBody.JUPITER,
    CelestialBody.VENUS,
    CelestialBody.SATURN,
})

# Visual brightness rank, used only to break exact longitude ties in war
BRIGHTNESS_RANK: Dict[CelestialBody, int] = {
    CelestialBody.VENUS: 5,
    CelestialBody.JUPITER: 4,
    CelestialBody.MARS: 3,
    CelestialBody.MERCURY: 2,
    CelestialBody.SATURN: 1,
}


class ZodiacSign(IntEnum):
    ARIES = 0
    TAURUS = 1
    GEMINI = 2
    CANCER = 3
    LEO = 4
    VIRGO = 5
    LIBRA = 6
    SCORPIO = 7
    SAGITTARIUS = 8
    CAPRICORN = 9
    AQUARIUS = 10
    PISCES = 11

    @property
    def display_name(self) -> str:
        return self.name.title()

    @property
    def index(self) -> int:
        return int(self)

    @property
    def ruler(self) -> CelestialBody:
        return SIGN_ATTRIBUTES[self].ruler

    @property
    def element(self) -> Element:
        return SIGN_ATTRIBUTES[self].element

    @property
    def modality(self) -> Modality:
        return SIGN_ATTRIBUTES[self].modality

    @property
    def is_odd(self) -> bool:
        # Aries is the 1st sign, so even indices are odd signs
        return int(self) % 2 == 0

    @property
    def start_longitude(self) -> float:
        return int(self) * 30.0

    def offset(self, places: int) -> "ZodiacSign":
        return ZodiacSign((int(self) + places) % 12)

    def house_from(self, reference: "ZodiacSign") -> int:
        """Inclusive count from ``reference`` to this sign, 1..12."""
        return (int(self) - int(reference)) % 12 + 1


SignAttributes = namedtuple("SignAttributes", ["ruler", "element", "modality"])

SIGN_ATTRIBUTES: Dict[ZodiacSign, SignAttributes] = {
    ZodiacSign.ARIES: SignAttributes(CelestialBody.MARS, Element.FIRE, Modality.MOVABLE),
    ZodiacSign.TAURUS: SignAttributes(CelestialBody.VENUS, Element.EARTH, Modality.FIXED),
    ZodiacSign.GEMINI: SignAttributes(CelestialBody.MERCURY, Element.AIR, Modality.DUAL),
    ZodiacSign.CANCER: SignAttributes(CelestialBody.MOON, Element.WATER, Modality.MOVABLE),
    ZodiacSign.LEO: SignAttributes(CelestialBody.SUN, Element.FIRE, Modality.FIXED),
    ZodiacSign.VIRGO: SignAttributes(CelestialBody.MERCURY, Element.EARTH, Modality.DUAL),
    ZodiacSign.LIBRA: SignAttributes(CelestialBody.VENUS, Element.AIR, Modality.MOVABLE),
    ZodiacSign.SCORPIO: SignAttributes(CelestialBody.MARS, Element.WATER, Modality.FIXED),
    ZodiacSign.SAGITTARIUS: SignAttributes(CelestialBody.JUPITER, Element.FIRE, Modality.DUAL),
    ZodiacSign.CAPRICORN: SignAttributes(CelestialBody.SATURN, Element.EARTH, Modality.MOVABLE),
    ZodiacSign.AQUARIUS: SignAttributes(CelestialBody.SATURN, Element.AIR, Modality.FIXED),
    ZodiacSign.PISCES: SignAttributes(CelestialBody.JUPITER, Element.WATER, Modality.DUAL),
}


class Nakshatra(IntEnum):
    ASHWINI = 0
    BHARANI = 1
    KRITTIKA = 2
    ROHINI = 3
    MRIGASHIRA = 4
    ARDRA = 5
    PUNARVASU = 6
    PUSHYA = 7
    ASHLESHA = 8
    MAGHA = 9
    PURVA_PHALGUNI = 10
    UTTARA_PHALGUNI = 11
    HASTA = 12
    CHITRA = 13
    SWATI = 14
    VISHAKHA = 15
    ANURADHA = 16
    JYESHTHA = 17
    MULA = 18
    PURVA_ASHADHA = 19
    UTTARA_ASHADHA = 20
    SHRAVANA = 21
    DHANISHTA = 22
    SHATABHISHA = 23
    PURVA_BHADRAPADA = 24
    UTTARA_BHADRAPADA = 25
    REVATI = 26

    @property
    def display_name(self) -> str:
        return NAKSHATRA_ATTRIBUTES[self].name

    @property
    def ruler(self) -> CelestialBody:
        return NAKSHATRA_ATTRIBUTES[self].ruler

    @property
    def deity(self) -> str:
        return NAKSHATRA_ATTRIBUTES[self].deity

    @property
    def start_longitude(self) -> float:
        return int(self) * NAKSHATRA_SPAN_DEG


NakshatraAttributes = namedtuple("NakshatraAttributes", ["name", "ruler", "deity"])

# Vimshottari lords repeat every nine nakshatras starting from Ketu
DASHA_SEQUENCE: Tuple[CelestialBody, ...] = (
    CelestialBody.KETU,
    CelestialBody.VENUS,
    CelestialBody.SUN,
    CelestialBody.MOON,
    CelestialBody.MARS,
    CelestialBody.RAHU,
    CelestialBody.JUPITER,
    CelestialBody.SATURN,
    CelestialBody.MERCURY,
)

_NAKSHATRA_LABELS = [
    ("Ashwini", "Ashwini Kumaras"),
    ("Bharani", "Yama"),
    ("Krittika", "Agni"),
    ("Rohini", "Brahma"),
    ("Mrigashira", "Soma"),
    ("Ardra", "Rudra"),
    ("Punarvasu", "Aditi"),
    ("Pushya", "Brihaspati"),
    ("Ashlesha", "Sarpa"),
    ("Magha", "Pitris"),
    ("Purva Phalguni", "Bhaga"),
    ("Uttara Phalguni", "Aryaman"),
    ("Hasta", "Savitar"),
    ("Chitra", "Tvashtar"),
    ("Swati", "Vayu"),
    ("Vishakha", "Indra-Agni"),
    ("Anuradha", "Mitra"),
    ("Jyeshtha", "Indra"),
    ("Mula", "Nirriti"),
    ("Purva Ashadha", "Apas"),
    ("Uttara Ashadha", "Vishwadevas"),
    ("Shravana", "Vishnu"),
    ("Dhanishta", "Vasus"),
    ("Shatabhisha", "Varuna"),
    ("Purva Bhadrapada", "Aja Ekapada"),
    ("Uttara Bhadrapada", "Ahir Budhnya"),
    ("Revati", "Pushan"),
]

NAKSHATRA_ATTRIBUTES: Dict[Nakshatra, NakshatraAttributes] = {
    Nakshatra(i): NakshatraAttributes(name, DASHA_SEQUENCE[i % 9], deity)
    for i, (name, deity) in enumerate(_NAKSHATRA_LABELS)
}

# Geometric spans in degrees
NAKSHATRA_SPAN_DEG = 360.0 / 27.0
PADA_SPAN_DEG = NAKSHATRA_SPAN_DEG / 4.0  # 3°20'

# ------------------------- Dignity tables -------------------------

# Exaltation sign and degree within it; debilitation is the opposite point
EXALTATION: Dict[CelestialBody, Tuple[ZodiacSign, float]] = {
    CelestialBody.SUN: (ZodiacSign.ARIES, 10.0),
    CelestialBody.MOON: (ZodiacSign.TAURUS, 3.0),
    CelestialBody.MARS: (ZodiacSign.CAPRICORN, 28.0),
    CelestialBody.MERCURY: (ZodiacSign.VIRGO, 15.0),
    CelestialBody.JUPITER: (ZodiacSign.CANCER, 5.0),
    CelestialBody.VENUS: (ZodiacSign.PISCES, 27.0),
    CelestialBody.SATURN: (ZodiacSign.LIBRA, 20.0),
    CelestialBody.RAHU: (ZodiacSign.TAURUS, 20.0),
    CelestialBody.KETU: (ZodiacSign.SCORPIO, 20.0),
}

# Moolatrikona sign with its degree range [start, end)
MOOLATRIKONA: Dict[CelestialBody, Tuple[ZodiacSign, float, float]] = {
    CelestialBody.SUN: (ZodiacSign.LEO, 0.0, 20.0),
    CelestialBody.MOON: (ZodiacSign.TAURUS, 3.0, 30.0),
    CelestialBody.MARS: (ZodiacSign.ARIES, 0.0, 12.0),
    CelestialBody.MERCURY: (ZodiacSign.VIRGO, 15.0, 20.0),
    CelestialBody.JUPITER: (ZodiacSign.SAGITTARIUS, 0.0, 10.0),
    CelestialBody.VENUS: (ZodiacSign.LIBRA, 0.0, 15.0),
    CelestialBody.SATURN: (ZodiacSign.AQUARIUS, 0.0, 20.0),
}


class Relationship(Enum):
    GREAT_FRIEND = "Great Friend"
    FRIEND = "Friend"
    NEUTRAL = "Neutral"
    ENEMY = "Enemy"
    GREAT_ENEMY = "Great Enemy"


_S, _Mo, _Ma, _Me, _J, _V, _Sa = SEVEN_PLANETS

# Naisargika maitri: (friends, enemies); everyone else is neutral
NATURAL_RELATIONS: Dict[CelestialBody, Tuple[frozenset, frozenset]] = {
    _S: (frozenset({_Mo, _Ma, _J}), frozenset({_V, _Sa})),
    _Mo: (frozenset({_S, _Me}), frozenset()),
    _Ma: (frozenset({_S, _Mo, _J}), frozenset({_Me})),
    _Me: (frozenset({_S, _V}), frozenset({_Mo})),
    _J: (frozenset({_S, _Mo, _Ma}), frozenset({_Me, _V})),
    _V: (frozenset({_Me, _Sa}), frozenset({_S, _Mo})),
    _Sa: (frozenset({_Me, _V}), frozenset({_S, _Mo, _Ma})),
}

# Houses (counted from a planet) whose occupants are its temporary friends
TEMPORAL_FRIEND_HOUSES = frozenset({2, 3, 4, 10, 11, 12})

# ------------------------- Combustion -------------------------

# Combustion orbs in degrees: (deep, deep when retrograde, partial)
COMBUSTION_ORBS: Dict[CelestialBody, Tuple[float, float, float]] = {
    CelestialBody.MOON: (12.0, 12.0, 17.0),
    CelestialBody.MARS: (17.0, 17.0, 25.0),
    CelestialBody.MERCURY: (14.0, 12.0, 20.0),
    CelestialBody.JUPITER: (11.0, 11.0, 17.0),
    CelestialBody.VENUS: (10.0, 8.0, 16.0),
    CelestialBody.SATURN: (15.0, 15.0, 22.0),
}

# Maximum separation for graha yuddha
WAR_ORB_DEG = 1.0

# ------------------------- Shadbala constants -------------------------

VIRUPAS_PER_RUPA = 60.0

# Minimum total strength (rupas) for a planet to be considered strong
REQUIRED_RUPAS: Dict[CelestialBody, float] = {
    CelestialBody.SUN: 6.5,
    CelestialBody.MOON: 6.0,
    CelestialBody.MARS: 5.0,
    CelestialBody.MERCURY: 7.0,
    CelestialBody.JUPITER: 6.5,
    CelestialBody.VENUS: 5.5,
    CelestialBody.SATURN: 5.0,
    CelestialBody.RAHU: 4.0,
    CelestialBody.KETU: 4.0,
}

# House whose cusp gives full Dig Bala
DIG_BALA_STRONGEST_HOUSE: Dict[CelestialBody, int] = {
    CelestialBody.SUN: 10,
    CelestialBody.MARS: 10,
    CelestialBody.MOON: 4,
    CelestialBody.VENUS: 4,
    CelestialBody.MERCURY: 1,
    CelestialBody.JUPITER: 1,
    CelestialBody.SATURN: 7,
}

# Mean geocentric daily motion in degrees, for Chesta Bala
MEAN_DAILY_MOTION: Dict[CelestialBody, float] = {
    CelestialBody.MARS: 0.524,
    CelestialBody.MERCURY: 0.986,
    CelestialBody.JUPITER: 0.083,
    CelestialBody.VENUS: 0.986,
    CelestialBody.SATURN: 0.033,
}

# Chaldean order of the planetary hours
HORA_SEQUENCE: Tuple[CelestialBody, ...] = (
    CelestialBody.SUN,
    CelestialBody.VENUS,
    CelestialBody.MERCURY,
    CelestialBody.MOON,
    CelestialBody.SATURN,
    CelestialBody.JUPITER,
    CelestialBody.MARS,
)

# Weekday lords, Sunday first
WEEKDAY_LORDS: Tuple[CelestialBody, ...] = SEVEN_PLANETS

# Obliquity used for Ayana Bala declinations
OBLIQUITY_DEG = 23.45

# Percentage-of-required cut-offs, ascending
STRENGTH_RATINGS: Tuple[Tuple[float, str], ...] = (
    (50.0, "Very Weak"),
    (75.0, "Weak"),
    (100.0, "Moderate"),
    (150.0, "Strong"),
)
STRONGEST_RATING = "Very Strong"
