import pytest

from grahabala.astro.constants import SEVEN_PLANETS, CelestialBody
from grahabala.astro.shadbala import (
    calculate_all_shadbala,
    calculate_shadbala,
    chesta_bala,
    dig_bala,
    drishti_value,
    kendradi_bala,
    special_drishti,
    strength_rating,
    time_context,
    uccha_bala,
)
from grahabala.errors import InvalidInputError, MissingCollaboratorDataError

from conftest import SAMPLE_LONGITUDES, make_chart


def test_uccha_bala_extremes():
    assert uccha_bala(CelestialBody.SUN, 10.0) == pytest.approx(60.0)
    assert uccha_bala(CelestialBody.SUN, 190.0) == pytest.approx(0.0)
    assert uccha_bala(CelestialBody.SUN, 100.0) == pytest.approx(30.0)


def test_kendradi_bala():
    assert kendradi_bala(1) == 60.0
    assert kendradi_bala(5) == 30.0
    assert kendradi_bala(12) == 15.0


def test_dig_bala_full_on_strongest_angle(chart):
    # Sun sits exactly on the midheaven of the sample chart
    assert dig_bala(chart.position(CelestialBody.SUN), chart) == pytest.approx(60.0)


@pytest.mark.parametrize(
    "angle,expected",
    [(0.0, 0.0), (30.0, 0.0), (60.0, 15.0), (90.0, 45.0), (120.0, 30.0), (150.0, 0.0), (180.0, 60.0), (240.0, 30.0), (300.0, 0.0)],
)
def test_drishti_curve(angle, expected):
    assert drishti_value(angle) == pytest.approx(expected)


def test_special_aspects_reach_full_strength():
    assert drishti_value(90.0) + special_drishti(CelestialBody.MARS, 90.0) == pytest.approx(60.0)
    assert drishti_value(120.0) + special_drishti(CelestialBody.JUPITER, 120.0) == pytest.approx(60.0)
    assert drishti_value(60.0) + special_drishti(CelestialBody.SATURN, 60.0) == pytest.approx(60.0)
    assert special_drishti(CelestialBody.VENUS, 90.0) == 0.0


@pytest.mark.parametrize(
    "percentage,rating",
    [(10.0, "Very Weak"), (50.0, "Weak"), (75.0, "Moderate"), (120.0, "Strong"), (150.0, "Very Strong")],
)
def test_strength_rating_cutoffs(percentage, rating):
    assert strength_rating(percentage) == rating


def test_time_context_for_sample_chart(chart):
    ctx = time_context(chart)
    # Ascendant 90° ahead of the Sun: local noon
    assert ctx.is_day
    assert ctx.fraction == pytest.approx(0.5)
    # 2000-01-01 was a Saturday; the 7th hora of Saturday belongs to the Moon
    assert ctx.weekday_lord is CelestialBody.SATURN
    assert ctx.hora_lord is CelestialBody.MOON
    assert ctx.elongation == pytest.approx(35.0)


def test_retrograde_planet_gets_full_chesta():
    chart = make_chart(speeds={CelestialBody.MARS: -0.2})
    ctx = time_context(chart)
    assert chesta_bala(chart.position(CelestialBody.MARS), chart, ctx) == pytest.approx(60.0)


@pytest.mark.parametrize(
    "speed,expected",
    [(0.0, 50.0), (0.524, 35.0), (1.048, 20.0), (2.0, 15.0)],
)
def test_direct_chesta_falls_with_speed(speed, expected):
    # Mars mean motion is 0.524°/day: 50 - 15 * speed/mean, held within 15..50
    chart = make_chart(speeds={CelestialBody.MARS: speed})
    ctx = time_context(chart)
    assert chesta_bala(chart.position(CelestialBody.MARS), chart, ctx) == pytest.approx(expected)


def test_planetary_war_adds_yuddha_bala():
    longitudes = dict(SAMPLE_LONGITUDES)
    longitudes[CelestialBody.MERCURY] = 14.0
    longitudes[CelestialBody.VENUS] = 14.6  # higher longitude wins
    chart = make_chart(longitudes)
    ctx = time_context(chart)

    venus = calculate_shadbala(chart, CelestialBody.VENUS, ctx)
    mercury = calculate_shadbala(chart, CelestialBody.MERCURY, ctx)
    assert venus.kala.yuddha == pytest.approx(30.0)
    assert mercury.kala.yuddha == pytest.approx(-30.0)
    assert calculate_shadbala(chart, CelestialBody.JUPITER, ctx).kala.yuddha == 0.0

    for r in (venus, mercury):
        assert r.kala_bala == pytest.approx(r.kala.total / 60.0)
        six = r.sthana_bala + r.dig_bala + r.kala_bala + r.chesta_bala + r.naisargika_bala + r.drik_bala
        assert r.total_rupas == pytest.approx(six)


def test_total_is_sum_of_six_balas(chart):
    for body in SEVEN_PLANETS:
        r = calculate_shadbala(chart, body)
        six = r.sthana_bala + r.dig_bala + r.kala_bala + r.chesta_bala + r.naisargika_bala + r.drik_bala
        assert r.total_rupas == pytest.approx(six)
        assert r.sthana_bala == pytest.approx(r.sthana.total / 60.0)
        assert r.kala_bala == pytest.approx(r.kala.total / 60.0)
        assert r.kala.yuddha == 0.0
        assert r.percentage_of_required == pytest.approx(r.total_rupas / r.required_rupas * 100.0)
        assert r.is_strong == (r.percentage_of_required >= 100.0)


def test_sun_components(chart):
    sun = calculate_shadbala(chart, CelestialBody.SUN)
    assert sun.naisargika_bala == pytest.approx(1.0)
    assert sun.dig_bala == pytest.approx(1.0)
    assert sun.sthana.uccha == pytest.approx(60.0)
    # Mercury always has full Nathonnata; the Sun gets it at noon
    assert sun.kala.nathonnata == pytest.approx(60.0)
    assert calculate_shadbala(chart, CelestialBody.MERCURY).kala.nathonnata == pytest.approx(60.0)


@pytest.mark.parametrize("node", [CelestialBody.RAHU, CelestialBody.KETU])
def test_nodes_have_zero_excluded_balas(chart, node):
    r = calculate_shadbala(chart, node)
    assert r.dig_bala == 0.0
    assert r.chesta_bala == 0.0
    assert r.kala_bala == 0.0
    assert r.sthana.saptavargaja == 0.0
    assert r.sthana.ojayugmarasyamsa == 0.0
    assert r.sthana.drekkana == 0.0
    assert r.naisargika_bala == pytest.approx(8.57 / 60.0)
    assert r.required_rupas == 4.0


def test_outer_planets_are_rejected(chart):
    with pytest.raises(InvalidInputError):
        calculate_shadbala(chart, CelestialBody.URANUS)


def test_analysis_over_all_planets(chart):
    analysis = calculate_all_shadbala(chart)
    assert set(analysis.results) == set(SEVEN_PLANETS) | {CelestialBody.RAHU, CelestialBody.KETU}
    planet_pcts = {b: analysis.results[b].percentage_of_required for b in SEVEN_PLANETS}
    assert analysis.strongest is max(planet_pcts, key=planet_pcts.get)
    assert analysis.weakest is min(planet_pcts, key=planet_pcts.get)
    assert analysis.overall_percentage == pytest.approx(sum(planet_pcts.values()) / 7)

    without_nodes = calculate_all_shadbala(chart, include_nodes=False)
    assert set(without_nodes.results) == set(SEVEN_PLANETS)


def test_missing_sun_is_collaborator_failure():
    longitudes = dict(SAMPLE_LONGITUDES)
    del longitudes[CelestialBody.SUN]
    with pytest.raises(MissingCollaboratorDataError):
        calculate_shadbala(make_chart(longitudes), CelestialBody.MOON)
