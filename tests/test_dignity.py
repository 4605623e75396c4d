import pytest

from grahabala.astro.constants import SEVEN_PLANETS, CelestialBody, Relationship, ZodiacSign
from grahabala.astro.dignity import (
    CombustionStatus,
    Dignity,
    combustion_status,
    compound_relationship,
    detect_planetary_wars,
    dignity_of,
    is_debilitated,
    is_exalted,
    natural_relationship,
    planetary_conditions,
    temporal_relationship,
)
from grahabala.astro.positions import build_position

from conftest import SAMPLE_LONGITUDES, make_chart

CUSPS = tuple(i * 30.0 for i in range(12))


def pos(body, longitude, speed=1.0):
    return build_position(body, longitude, speed, CUSPS)


def test_sun_at_ten_aries_is_exalted():
    assert dignity_of(CelestialBody.SUN, 10.0) is Dignity.EXALTED
    assert dignity_of(CelestialBody.SUN, 190.0) is Dignity.DEBILITATED


@pytest.mark.parametrize("body", SEVEN_PLANETS)
def test_exaltation_and_debilitation_are_exclusive(body):
    for sign in ZodiacSign:
        assert not (is_exalted(body, sign) and is_debilitated(body, sign))


def test_exaltation_checked_before_own_sign():
    # Mercury owns and is exalted in Virgo
    assert dignity_of(CelestialBody.MERCURY, 165.0) is Dignity.EXALTED


def test_moolatrikona_and_own_sign():
    assert dignity_of(CelestialBody.SUN, 125.0) is Dignity.MOOLATRIKONA
    assert dignity_of(CelestialBody.SUN, 145.0) is Dignity.OWN_SIGN
    assert dignity_of(CelestialBody.SATURN, 280.0) is Dignity.OWN_SIGN


def test_friendly_enemy_and_neutral_signs():
    # Sun in Sagittarius (Jupiter, friend), Taurus (Venus, enemy), Gemini (Mercury, neutral)
    assert dignity_of(CelestialBody.SUN, 245.0) is Dignity.FRIENDLY
    assert dignity_of(CelestialBody.SUN, 40.0) is Dignity.ENEMY
    assert dignity_of(CelestialBody.SUN, 70.0) is Dignity.NEUTRAL


def test_nodes_and_outer_planets_are_naturally_neutral():
    assert natural_relationship(CelestialBody.RAHU, CelestialBody.SUN) is Relationship.NEUTRAL
    assert natural_relationship(CelestialBody.URANUS, CelestialBody.MOON) is Relationship.NEUTRAL


def test_temporal_and_compound_relationships():
    assert temporal_relationship(ZodiacSign.ARIES, ZodiacSign.TAURUS) is Relationship.FRIEND
    assert temporal_relationship(ZodiacSign.ARIES, ZodiacSign.LIBRA) is Relationship.ENEMY
    assert compound_relationship(Relationship.FRIEND, Relationship.FRIEND) is Relationship.GREAT_FRIEND
    assert compound_relationship(Relationship.ENEMY, Relationship.ENEMY) is Relationship.GREAT_ENEMY
    assert compound_relationship(Relationship.NEUTRAL, Relationship.FRIEND) is Relationship.FRIEND


@pytest.mark.parametrize(
    "separation,expected",
    [
        (3.0, CombustionStatus.DEEPLY_COMBUST),
        (10.0, CombustionStatus.DEEPLY_COMBUST),
        (12.0, CombustionStatus.DEEPLY_COMBUST),
        (14.0, CombustionStatus.PARTIALLY_COMBUST),
        (17.0, CombustionStatus.PARTIALLY_COMBUST),
        (17.5, CombustionStatus.NOT_COMBUST),
    ],
)
def test_moon_combustion_thresholds(separation, expected):
    status, distance = combustion_status(pos(CelestialBody.MOON, 100.0 + separation), 100.0)
    assert status is expected
    assert distance == pytest.approx(separation)


def test_retrograde_mercury_uses_tighter_orb():
    direct = combustion_status(pos(CelestialBody.MERCURY, 113.0, speed=1.2), 100.0)[0]
    retro = combustion_status(pos(CelestialBody.MERCURY, 113.0, speed=-0.5), 100.0)[0]
    assert direct is CombustionStatus.DEEPLY_COMBUST
    assert retro is CombustionStatus.PARTIALLY_COMBUST

    # The partial orb does not shrink with retrogression
    far = combustion_status(pos(CelestialBody.MERCURY, 121.0, speed=-0.5), 100.0)[0]
    assert far is CombustionStatus.NOT_COMBUST


def test_combustion_measured_across_aries_point():
    status, distance = combustion_status(pos(CelestialBody.VENUS, 358.0), 2.0)
    assert distance == pytest.approx(4.0)
    assert status is CombustionStatus.DEEPLY_COMBUST

    status, distance = combustion_status(pos(CelestialBody.VENUS, 350.0), 4.0)
    assert distance == pytest.approx(14.0)
    assert status is CombustionStatus.PARTIALLY_COMBUST


def test_sun_and_nodes_are_never_combust():
    assert combustion_status(pos(CelestialBody.SUN, 100.0), 100.0) == (CombustionStatus.NOT_COMBUST, None)
    status, distance = combustion_status(pos(CelestialBody.RAHU, 100.5, speed=-0.05), 100.0)
    assert status is CombustionStatus.NOT_COMBUST
    assert distance == pytest.approx(0.5)


def test_planetary_war_within_half_a_degree():
    mars = pos(CelestialBody.MARS, 75.2)
    venus = pos(CelestialBody.VENUS, 75.7)
    wars = detect_planetary_wars([mars, venus])

    assert wars[CelestialBody.MARS].opponent is CelestialBody.VENUS
    assert wars[CelestialBody.VENUS].opponent is CelestialBody.MARS
    assert wars[CelestialBody.VENUS].is_victor
    assert not wars[CelestialBody.MARS].is_victor
    assert wars[CelestialBody.MARS].separation == pytest.approx(0.5)


def test_no_war_across_sign_boundary_or_beyond_orb():
    assert detect_planetary_wars([pos(CelestialBody.MARS, 29.8), pos(CelestialBody.SATURN, 30.2)]) == {}
    assert detect_planetary_wars([pos(CelestialBody.MARS, 10.0), pos(CelestialBody.SATURN, 11.0)]) == {}


def test_luminaries_and_nodes_do_not_fight():
    wars = detect_planetary_wars([pos(CelestialBody.SUN, 10.0), pos(CelestialBody.MOON, 10.3), pos(CelestialBody.RAHU, 10.1)])
    assert wars == {}


def test_exact_tie_goes_to_brighter_planet():
    wars = detect_planetary_wars([pos(CelestialBody.SATURN, 40.0), pos(CelestialBody.JUPITER, 40.0)])
    assert wars[CelestialBody.JUPITER].is_victor
    assert not wars[CelestialBody.SATURN].is_victor


def test_planetary_conditions_for_chart():
    longitudes = dict(SAMPLE_LONGITUDES)
    longitudes[CelestialBody.MERCURY] = 14.0  # 4° from the Sun
    longitudes[CelestialBody.VENUS] = 14.6
    conditions = planetary_conditions(make_chart(longitudes))

    sun = conditions[CelestialBody.SUN]
    assert sun.dignity is Dignity.EXALTED
    assert sun.distance_from_sun is None

    mercury = conditions[CelestialBody.MERCURY]
    assert mercury.combustion_status is CombustionStatus.DEEPLY_COMBUST
    assert mercury.is_combust
    assert mercury.is_in_planetary_war
    assert mercury.war_opponent is CelestialBody.VENUS
    assert mercury.is_war_victor is False
    assert conditions[CelestialBody.VENUS].is_war_victor is True

    assert not conditions[CelestialBody.JUPITER].is_in_planetary_war
    assert conditions[CelestialBody.JUPITER].war_opponent is None
