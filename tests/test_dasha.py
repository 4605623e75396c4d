from datetime import datetime, timedelta, timezone

import pytest

from grahabala.astro.constants import CelestialBody
from grahabala.astro.dasha import (
    DASHA_YEARS,
    DAYS_PER_YEAR,
    current_periods,
    dasha_balance,
    vimshottari_dasha,
)
from grahabala.errors import InvalidInputError

BIRTH = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
NAKSHATRA_SPAN = 360.0 / 27.0


def test_first_mahadasha_balance_carries_into_antardasha():
    """
    With the Moon 20% into Ashwini, 20% of the Ketu mahadasha has already run
    at birth. The running antardasha at birth is therefore Venus, not Ketu.
    """
    timeline = vimshottari_dasha(BIRTH, 0.2 * NAKSHATRA_SPAN, depth=2)

    first = timeline[0]
    assert first.lord is CelestialBody.KETU
    assert first.start == BIRTH
    assert first.duration_days == pytest.approx(0.8 * 7 * DAYS_PER_YEAR)

    antars = first.children
    assert antars[0].lord is CelestialBody.VENUS
    assert antars[0].start == BIRTH

    # Antardashas exactly cover the remaining mahadasha
    total = sum(a.duration_days for a in antars)
    assert total == pytest.approx(first.duration_days, rel=1e-8, abs=1e-6)


def test_dasha_balance():
    balance = dasha_balance(BIRTH, 0.25 * NAKSHATRA_SPAN)
    assert balance.lord is CelestialBody.KETU
    assert balance.elapsed_fraction == pytest.approx(0.25)
    assert balance.balance_years == pytest.approx(5.25)
    assert balance.mahadasha_start < BIRTH


def test_moon_in_rohini_starts_with_moon_dasha():
    # Rohini is the 4th nakshatra, ruled by the Moon
    timeline = vimshottari_dasha(BIRTH, 3 * NAKSHATRA_SPAN + 1.0, depth=1)
    assert [p.lord for p in timeline[:3]] == [CelestialBody.MOON, CelestialBody.MARS, CelestialBody.RAHU]


def test_default_window_spans_120_years():
    timeline = vimshottari_dasha(BIRTH, 100.0, depth=1)
    assert timeline[0].start == BIRTH
    assert timeline[-1].end == BIRTH + timedelta(days=120 * DAYS_PER_YEAR)
    assert sum(p.duration_days for p in timeline) == pytest.approx(120 * DAYS_PER_YEAR)
    for earlier, later in zip(timeline, timeline[1:]):
        assert earlier.end == later.start


def test_full_mahadasha_subperiods_use_canonical_proportions():
    timeline = vimshottari_dasha(BIRTH, 0.5 * NAKSHATRA_SPAN, depth=3)
    venus = timeline[1]
    assert venus.lord is CelestialBody.VENUS
    assert venus.duration_days == pytest.approx(DASHA_YEARS[CelestialBody.VENUS] * DAYS_PER_YEAR)

    antars = venus.children
    assert [a.lord for a in antars][:2] == [CelestialBody.VENUS, CelestialBody.SUN]
    assert antars[0].duration_days == pytest.approx(venus.duration_days * 20 / 120)

    pratyantars = antars[0].children
    assert len(pratyantars) == 9
    assert sum(p.duration_days for p in pratyantars) == pytest.approx(antars[0].duration_days)
    assert all(p.level == 3 for p in pratyantars)


def test_depth_one_has_no_children():
    timeline = vimshottari_dasha(BIRTH, 10.0, depth=1)
    assert all(not p.children for p in timeline)


@pytest.mark.parametrize("depth", [0, 4])
def test_depth_out_of_range(depth):
    with pytest.raises(InvalidInputError):
        vimshottari_dasha(BIRTH, 10.0, depth=depth)


def test_window_clips_periods():
    start = BIRTH + timedelta(days=3650)
    end = start + timedelta(days=365)
    timeline = vimshottari_dasha(BIRTH, 10.0, depth=2, from_date=start, to_date=end)
    assert timeline[0].start == start
    assert timeline[-1].end == end
    for p in timeline:
        for child in p.children:
            assert start <= child.start < child.end <= end


def test_active_chain_at_instant():
    at = BIRTH + timedelta(days=1)
    timeline = vimshottari_dasha(BIRTH, 0.2 * NAKSHATRA_SPAN, depth=3, at=at)
    chain = current_periods(timeline)
    assert [p.level for p in chain] == [1, 2, 3]
    assert chain[0].lord is CelestialBody.KETU
    assert chain[1].lord is CelestialBody.VENUS
    assert sum(1 for p in timeline if p.active) == 1


def test_no_active_flags_without_instant():
    timeline = vimshottari_dasha(BIRTH, 10.0, depth=2)
    assert all(p.active is None for p in timeline)
    assert current_periods(timeline) == []
