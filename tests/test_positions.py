import math
from datetime import datetime, timezone

import pytest

from grahabala.astro.constants import CelestialBody, Element, Modality, Nakshatra, ZodiacSign
from grahabala.astro.models import is_gandanta
from grahabala.astro.positions import build_chart, transit_positions
from grahabala.astro.utils import (
    angular_separation,
    check_longitude,
    degree_in_sign,
    get_nakshatra_and_pada,
    house_from_cusps,
    norm360,
    sidereal_longitude,
    sign_of,
    to_utc,
)
from grahabala.errors import InvalidInputError, MissingCollaboratorDataError

from conftest import EPOCH, FakeEphemeris

NAKSHATRA_SPAN = 360.0 / 27.0


def test_sidereal_longitude_wraps_into_range():
    assert sidereal_longitude(10.0, 24.0) == pytest.approx(346.0)
    assert sidereal_longitude(370.0, 24.0) == pytest.approx(346.0)
    assert sidereal_longitude(-350.0, 24.0) == pytest.approx(346.0)
    assert sidereal_longitude(24.0, 24.0) == 0.0


@pytest.mark.parametrize("tropical", [0.0, 17.25, 123.4, 359.9])
@pytest.mark.parametrize("turns", [-2, -1, 1, 3])
def test_sidereal_longitude_is_invariant_under_full_turns(tropical, turns):
    shifted = sidereal_longitude(tropical + 360.0 * turns, 23.85)
    assert shifted == pytest.approx(sidereal_longitude(tropical, 23.85), abs=1e-9)
    assert 0.0 <= shifted < 360.0


def test_norm360_never_returns_360():
    assert norm360(360.0) == 0.0
    assert norm360(-1e-15) == 0.0
    assert norm360(-90.0) == 270.0


@pytest.mark.parametrize("bad", [360.0, -0.1, math.nan, math.inf])
def test_check_longitude_rejects_unnormalized_values(bad):
    with pytest.raises(InvalidInputError):
        check_longitude(bad)


def test_non_finite_tropical_longitude_is_invalid_input():
    with pytest.raises(InvalidInputError):
        sidereal_longitude(math.nan, 24.0)


def test_sign_and_degree_in_sign():
    assert sign_of(0.0) is ZodiacSign.ARIES
    assert sign_of(29.999) is ZodiacSign.ARIES
    assert sign_of(30.0) is ZodiacSign.TAURUS
    assert sign_of(359.99) is ZodiacSign.PISCES
    assert degree_in_sign(45.5) == pytest.approx(15.5)


def test_sign_attributes():
    assert ZodiacSign.LEO.ruler is CelestialBody.SUN
    assert ZodiacSign.LEO.element is Element.FIRE
    assert ZodiacSign.LEO.modality is Modality.FIXED
    assert ZodiacSign.PISCES.element is Element.WATER
    assert ZodiacSign.PISCES.modality is Modality.DUAL


def test_nakshatra_and_pada_boundaries():
    # 0° -> Ashwini, pada 1
    assert get_nakshatra_and_pada(0.0) == (Nakshatra(0), 1)

    # Just before 13°20' -> still Ashwini, pada 4
    assert get_nakshatra_and_pada(NAKSHATRA_SPAN - 1e-6) == (Nakshatra(0), 4)

    # Just after -> Bharani, pada 1
    assert get_nakshatra_and_pada(NAKSHATRA_SPAN + 1e-6) == (Nakshatra(1), 1)

    nakshatra, pada = get_nakshatra_and_pada(359.999)
    assert nakshatra.display_name == "Revati"
    assert pada == 4


def test_nakshatra_rulers_follow_vimshottari_order():
    assert Nakshatra(0).ruler is CelestialBody.KETU
    assert Nakshatra(1).ruler is CelestialBody.VENUS
    assert Nakshatra(9).ruler is CelestialBody.KETU  # Magha
    assert Nakshatra(26).ruler is CelestialBody.MERCURY  # Revati


def test_house_from_cusps_includes_lower_bound():
    cusps = [i * 30.0 for i in range(12)]
    assert house_from_cusps(30.0, cusps) == 2
    assert house_from_cusps(29.9999, cusps) == 1
    assert house_from_cusps(0.0, cusps) == 1
    assert house_from_cusps(359.0, cusps) == 12


def test_house_from_cusps_wraps_through_aries():
    cusps = [norm360(350.0 + i * 30.0) for i in range(12)]
    assert house_from_cusps(350.0, cusps) == 1
    assert house_from_cusps(5.0, cusps) == 1
    assert house_from_cusps(20.0, cusps) == 2
    assert house_from_cusps(349.9, cusps) == 12


def test_house_from_cusps_requires_twelve_cusps():
    with pytest.raises(MissingCollaboratorDataError):
        house_from_cusps(10.0, [0.0] * 11)
    with pytest.raises(MissingCollaboratorDataError):
        house_from_cusps(10.0, None)


@pytest.mark.parametrize("a,b", [(10.0, 350.0), (0.0, 180.0), (100.0, 250.0), (5.5, 5.5), (359.0, 181.0)])
def test_angular_separation_is_symmetric_and_bounded(a, b):
    d = angular_separation(a, b)
    assert d == pytest.approx(angular_separation(b, a))
    assert 0.0 <= d <= 180.0


def test_angular_separation_takes_shorter_arc():
    assert angular_separation(10.0, 350.0) == pytest.approx(20.0)
    assert angular_separation(0.0, 180.0) == pytest.approx(180.0)


def test_gandanta_junctions():
    assert is_gandanta(119.0)
    assert is_gandanta(241.0)
    assert is_gandanta(359.0)
    assert not is_gandanta(100.0)


def test_celestial_body_parse():
    assert CelestialBody.parse("mars") is CelestialBody.MARS
    assert CelestialBody.parse("KETU") is CelestialBody.KETU
    with pytest.raises(InvalidInputError):
        CelestialBody.parse("Vulcan")


def test_to_utc_with_timezone_and_offset():
    expected = datetime(1991, 3, 25, 4, 16, tzinfo=timezone.utc)
    assert to_utc("1991-03-25T09:46:00", "Asia/Kolkata", None) == expected
    assert to_utc("1991-03-25T09:46:00", None, 330) == expected
    assert to_utc("1991-03-25T04:16:00Z", None, None) == expected


def test_build_chart_from_ephemeris(fake_ephemeris):
    chart = build_chart(fake_ephemeris, EPOCH, 18.52, 73.86)

    assert len(chart.positions) == 9
    assert chart.ascendant_sign is ZodiacSign.CANCER
    sun = chart.position(CelestialBody.SUN)
    assert sun.sign is ZodiacSign.ARIES
    # Whole-sign houses from Cancer: Aries is the 10th
    assert sun.house == 10
    assert chart.position(CelestialBody.JUPITER).house == 1
    assert not chart.position(CelestialBody.MOON).is_retrograde
    assert chart.position(CelestialBody.RAHU).is_retrograde


def test_build_chart_refuses_partial_positions():
    ephemeris = FakeEphemeris(missing={CelestialBody.MOON})
    with pytest.raises(MissingCollaboratorDataError):
        build_chart(ephemeris, EPOCH, 18.52, 73.86)


def test_build_chart_propagates_polar_house_failure(fake_ephemeris):
    with pytest.raises(MissingCollaboratorDataError):
        build_chart(fake_ephemeris, EPOCH, 70.0, 25.0, house_system="PLACIDUS")


def test_missing_body_lookup_raises(chart):
    with pytest.raises(MissingCollaboratorDataError):
        chart.position(CelestialBody.PLUTO)


def test_transit_positions_use_natal_cusps(fake_ephemeris, chart):
    later = datetime(2000, 1, 31, 12, 0, tzinfo=timezone.utc)
    current = transit_positions(fake_ephemeris, later, chart)

    sun = current[CelestialBody.SUN]
    assert sun.longitude == pytest.approx(10.0 + 30 * 0.9856)
    assert sun.sign is ZodiacSign.TAURUS
    assert sun.house == 11
