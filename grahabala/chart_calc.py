"""
Request payload -> NatalChart, and result objects -> JSON-ready dicts.

Used by routes.py for every chart-based endpoint.
"""

from typing import Dict, List

from flask import current_app

from .astro.ashtakavarga import LAGNA, AshtakavargaTable
from .astro.constants import CLASSICAL_BODIES, OUTER_PLANETS, ZodiacSign
from .astro.dasha import DashaPeriod
from .astro.dignity import PlanetaryCondition
from .astro.engine import SwissEphemeris
from .astro.models import NatalChart, PlanetPosition
from .astro.positions import build_chart
from .astro.shadbala import ShadbalaAnalysis, ShadbalaResult
from .astro.transits import PlanetTransit, SignChange, TransitAnalysis
from .astro.varga import DivisionalChart, VargaPlacement, is_vargottama
from .astro.utils import detect_timezone_from_coordinates, format_utc_offset, iso_z, to_utc

EPHEMERIS_KEY = "grahabala.ephemeris"


def ephemeris_for(payload):
    """
    The app's ephemeris, or a fresh SwissEphemeris when the request asks for
    a different ayanamsha or node type than the configured one.
    """
    base = current_app.extensions[EPHEMERIS_KEY]
    ayanamsha = payload.ayanamsha or current_app.config["AYANAMSHA"]
    node_type = payload.nodeType or current_app.config["NODE_TYPE"]
    if ayanamsha == getattr(base, "ayanamsha_key", ayanamsha) and node_type == getattr(base, "node_type", node_type):
        return base
    return SwissEphemeris(current_app.config["EPHE_PATH"], ayanamsha, node_type)


def _tz_applied(payload) -> str:
    if payload.tz:
        return payload.tz
    if payload.utcOffsetMinutes is not None:
        return format_utc_offset(payload.utcOffsetMinutes)
    return detect_timezone_from_coordinates(payload.latitude, payload.longitude)


def chart_for_payload(payload, include_outer: bool = False):
    """Resolve the birth time and build the natal chart. Returns (chart, metadata, ephemeris)."""
    dt_utc = to_utc(payload.datetime, payload.tz, payload.utcOffsetMinutes, payload.latitude, payload.longitude)
    house_system = payload.houseSystem or current_app.config["HOUSE_SYSTEM"]
    bodies = CLASSICAL_BODIES + OUTER_PLANETS if include_outer else CLASSICAL_BODIES
    ephemeris = ephemeris_for(payload)

    chart = build_chart(ephemeris, dt_utc, payload.latitude, payload.longitude, house_system, bodies)

    metadata = {
        "system": "sidereal",
        "ayanamsha": payload.ayanamsha or current_app.config["AYANAMSHA"],
        "ayanamshaValue": round(chart.ayanamsa, 6),
        "houseSystem": house_system,
        "nodeType": payload.nodeType or current_app.config["NODE_TYPE"],
        "datetimeInput": payload.datetime,
        "tzApplied": _tz_applied(payload),
        "datetimeUTC": iso_z(dt_utc),
    }
    return chart, metadata, ephemeris


# ------------------------- Presenters -------------------------

def sign_json(sign: ZodiacSign) -> Dict[str, object]:
    return {"name": sign.display_name, "index": int(sign)}


def position_json(p: PlanetPosition) -> Dict[str, object]:
    return {
        "planet": p.body.value,
        "longitude": round(p.longitude, 4),
        "latitude": round(p.latitude, 4),
        "speed": round(p.speed, 4),
        "retrograde": p.is_retrograde,
        "sign": sign_json(p.sign),
        "degreeInSign": round(p.degree_in_sign, 4),
        "house": p.house,
        "nakshatra": {"name": p.nakshatra.display_name, "index": int(p.nakshatra) + 1, "lord": p.nakshatra.ruler.value},
        "pada": p.pada,
        "gandanta": p.is_gandanta,
        "vargottama": is_vargottama(p.longitude),
    }


def condition_json(c: PlanetaryCondition) -> Dict[str, object]:
    return {
        "dignity": c.dignity.value,
        "retrograde": c.is_retrograde,
        "combustionStatus": c.combustion_status.value,
        "distanceFromSun": round(c.distance_from_sun, 4) if c.distance_from_sun is not None else None,
        "isInPlanetaryWar": c.is_in_planetary_war,
        "warOpponent": c.war_opponent.value if c.war_opponent else None,
        "isWarVictor": c.is_war_victor,
    }


def chart_json(chart: NatalChart, conditions: Dict, metadata: Dict) -> Dict[str, object]:
    planets = []
    for p in chart.positions:
        rec = position_json(p)
        cond = conditions.get(p.body)
        if cond is not None:
            rec["condition"] = condition_json(cond)
        planets.append(rec)
    return {
        "metadata": metadata,
        "ascendant": {
            "longitude": round(chart.ascendant, 4),
            "sign": sign_json(chart.ascendant_sign),
            "house": 1,
        },
        "midheaven": round(chart.midheaven, 4),
        "houseCusps": [round(c, 4) for c in chart.house_cusps],
        "planets": planets,
    }


def _shadbala_result_json(r: ShadbalaResult) -> Dict[str, object]:
    return {
        "planet": r.body.value,
        "sthanaBala": round(r.sthana_bala, 4),
        "digBala": round(r.dig_bala, 4),
        "kalaBala": round(r.kala_bala, 4),
        "chestaBala": round(r.chesta_bala, 4),
        "naisargikaBala": round(r.naisargika_bala, 4),
        "drikBala": round(r.drik_bala, 4),
        "totalRupas": round(r.total_rupas, 4),
        "requiredRupas": r.required_rupas,
        "percentageOfRequired": round(r.percentage_of_required, 2),
        "strengthRating": r.strength_rating,
        "isStrong": r.is_strong,
        "sthanaComponents": {
            "uccha": round(r.sthana.uccha, 4),
            "saptavargaja": round(r.sthana.saptavargaja, 4),
            "ojayugmarasyamsa": round(r.sthana.ojayugmarasyamsa, 4),
            "kendradi": round(r.sthana.kendradi, 4),
            "drekkana": round(r.sthana.drekkana, 4),
        },
        "kalaComponents": {
            "nathonnata": round(r.kala.nathonnata, 4),
            "paksha": round(r.kala.paksha, 4),
            "tribhaga": round(r.kala.tribhaga, 4),
            "abda": round(r.kala.abda, 4),
            "masa": round(r.kala.masa, 4),
            "vara": round(r.kala.vara, 4),
            "hora": round(r.kala.hora, 4),
            "ayana": round(r.kala.ayana, 4),
            "yuddha": round(r.kala.yuddha, 4),
        },
    }


def shadbala_json(analysis: ShadbalaAnalysis) -> Dict[str, object]:
    return {
        "planets": [_shadbala_result_json(r) for r in analysis.results.values()],
        "strongest": analysis.strongest.value,
        "weakest": analysis.weakest.value,
        "overallPercentage": round(analysis.overall_percentage, 2),
    }


def ashtakavarga_json(table: AshtakavargaTable, include_prastara: bool = False) -> Dict[str, object]:
    out: Dict[str, object] = {
        "signs": [s.display_name for s in ZodiacSign],
        "bhinnashtakavarga": {
            body.value: {"bindus": list(row), "total": sum(row)}
            for body, row in table.bhinna.items()
        },
        "sarvashtakavarga": {"bindus": list(table.sarva), "total": table.sav_total},
    }
    if include_prastara:
        out["prastara"] = {
            target.value: {
                (c if c == LAGNA else c.value): list(row) for c, row in rows.items()
            }
            for target, rows in table.prastara.items()
        }
    return out


def _placement_json(p: VargaPlacement) -> Dict[str, object]:
    return {"sign": sign_json(p.sign), "degreeInSign": round(p.degree_in_sign, 4), "part": p.part}


def varga_json(chart: DivisionalChart) -> Dict[str, object]:
    return {
        "division": chart.division,
        "code": f"D{chart.division}",
        "name": chart.name,
        "ascendant": _placement_json(chart.ascendant),
        "planets": [
            dict(_placement_json(p), planet=body.value, house=chart.house_of(body))
            for body, p in chart.placements.items()
        ],
    }


def _transit_json(t: PlanetTransit) -> Dict[str, object]:
    return {
        "planet": t.body.value,
        "sign": sign_json(t.sign),
        "longitude": round(t.longitude, 4),
        "retrograde": t.is_retrograde,
        "houseFromAscendant": t.house_from_ascendant,
        "houseFromMoon": t.house_from_moon,
        "gocharaFavorable": t.gochara_favorable,
        "vedhaBy": t.vedha_by.value if t.vedha_by else None,
        "bav": t.bindus.bav,
        "sav": t.bindus.sav,
        "aspects": [
            {"natalPlanet": a.natal.value, "house": a.house, "favorable": a.is_favorable}
            for a in t.aspects
        ],
        "score": round(t.score, 2),
        "favorable": t.is_favorable,
        "strengthRating": t.strength_rating,
        "description": t.description,
    }


def sign_change_json(c: SignChange) -> Dict[str, object]:
    return {
        "planet": c.body.value,
        "fromSign": c.from_sign.display_name,
        "toSign": c.to_sign.display_name,
        "date": iso_z(c.instant),
    }


def transit_json(analysis: TransitAnalysis) -> Dict[str, object]:
    return {
        "transitDatetimeUTC": iso_z(analysis.instant),
        "score": round(analysis.score, 2),
        "favorable": analysis.is_favorable,
        "quality": analysis.quality,
        "notes": list(analysis.notes),
        "planets": [_transit_json(t) for t in analysis.transits.values()],
        "upcomingSignChanges": [sign_change_json(c) for c in analysis.sign_changes],
    }


def dasha_json(periods: List[DashaPeriod]) -> List[Dict[str, object]]:
    out = []
    for p in periods:
        node: Dict[str, object] = {
            "lord": p.lord.value,
            "level": p.level,
            "start": iso_z(p.start),
            "end": iso_z(p.end),
            "durationDays": p.duration_days,
            "yearsShare": p.years_share,
        }
        if p.active is not None:
            node["active"] = p.active
        if p.children:
            node["antardasha" if p.level == 1 else "pratyantardasha"] = dasha_json(p.children)
        out.append(node)
    return out
