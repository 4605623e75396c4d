from datetime import datetime, timezone
from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from .astro.ashtakavarga import calculate_ashtakavarga
from .astro.dasha import current_periods, dasha_balance, vimshottari_dasha
from .astro.constants import CelestialBody
from .astro.dignity import planetary_conditions
from .astro.positions import transit_positions
from .astro.shadbala import calculate_all_shadbala
from .astro.transits import analyze_transits, find_sign_changes
from .astro.utils import as_utc, iso_z
from .astro.varga import divisional_chart
from .chart_calc import (
    ashtakavarga_json,
    chart_for_payload,
    chart_json,
    dasha_json,
    shadbala_json,
    transit_json,
    varga_json,
)
from .errors import AstroError, InvalidInputError, MissingCollaboratorDataError
from .schemas import (
    AshtakavargaRequest,
    ChartRequest,
    DashaRequest,
    ShadbalaRequest,
    TransitRequest,
    VargaRequest,
)

bp = Blueprint("api", __name__)

ERROR_STATUS = {
    InvalidInputError: 400,
    MissingCollaboratorDataError: 422,
}


def _error(code: str, message: str, details, status: int):
    return jsonify({"error": {"code": code, "message": message, "details": details}}), status


def _parse_instant(value: str) -> datetime:
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def json_endpoint(schema, label: str):
    """
    Validate the request body against ``schema`` and render failures with the
    standard error envelope. The view receives the validated payload.
    """
    def decorator(view):
        @wraps(view)
        def wrapper():
            current_app.logger.info(f"{label} request received - Method: {request.method}, URL: {request.url}")
            try:
                payload = schema.model_validate_json(request.get_data() or b"{}")
            except ValidationError as e:
                current_app.logger.warning(f"{label} request validation error: {e.error_count()} error(s)")
                return _error(
                    "VALIDATION_ERROR",
                    "Request validation failed",
                    {"errors": e.errors(include_url=False, include_context=False, include_input=False)},
                    400,
                )

            try:
                result = view(payload)
            except AstroError as e:
                status = next((s for cls, s in ERROR_STATUS.items() if isinstance(e, cls)), 500)
                current_app.logger.warning(f"{label} failed with {e.code}: {e.message}")
                return jsonify({"error": e.to_dict()}), status
            except Exception as e:
                current_app.logger.exception(f"{label} calculation error: {e}")
                return _error("CALCULATION_ERROR", f"Failed to calculate {label.lower()}", {"error": str(e)}, 500)

            current_app.logger.info(f"{label} calculation successful - Response status: 200")
            return jsonify(result), 200
        return wrapper
    return decorator


@bp.route("/chart", methods=["POST"])
@json_endpoint(ChartRequest, "Chart")
def chart(payload: ChartRequest):
    natal, metadata, _ = chart_for_payload(payload, include_outer=payload.includeOuterPlanets)
    return chart_json(natal, planetary_conditions(natal), metadata)


@bp.route("/shadbala", methods=["POST"])
@json_endpoint(ShadbalaRequest, "Shadbala")
def shadbala(payload: ShadbalaRequest):
    natal, metadata, _ = chart_for_payload(payload)
    out = shadbala_json(calculate_all_shadbala(natal, include_nodes=payload.includeNodes))
    out["metadata"] = metadata
    return out


@bp.route("/ashtakavarga", methods=["POST"])
@json_endpoint(AshtakavargaRequest, "Ashtakavarga")
def ashtakavarga(payload: AshtakavargaRequest):
    natal, metadata, _ = chart_for_payload(payload)
    out = ashtakavarga_json(calculate_ashtakavarga(natal), include_prastara=payload.includePrastara)
    out["metadata"] = metadata
    return out


@bp.route("/varga", methods=["POST"])
@json_endpoint(VargaRequest, "Varga")
def varga(payload: VargaRequest):
    natal, metadata, _ = chart_for_payload(payload)
    return {
        "metadata": metadata,
        "charts": [varga_json(divisional_chart(natal, d)) for d in payload.divisions],
    }


@bp.route("/transits", methods=["POST"])
@json_endpoint(TransitRequest, "Transit")
def transits(payload: TransitRequest):
    natal, metadata, ephemeris = chart_for_payload(payload)
    # Only the HTTP layer falls back to the wall clock
    instant = _parse_instant(payload.transitDatetime) if payload.transitDatetime else datetime.now(timezone.utc)

    current = transit_positions(ephemeris, instant, natal)
    horizon = payload.signChangeDays
    if horizon is None:
        horizon = current_app.config["SIGN_CHANGE_HORIZON_DAYS"]
    changes = find_sign_changes(ephemeris, instant, max_days=horizon) if horizon > 0 else []

    analysis = analyze_transits(natal, current, instant, calculate_ashtakavarga(natal), changes)
    out = transit_json(analysis)
    out["metadata"] = metadata
    return out


@bp.route("/dasha", methods=["POST"])
@json_endpoint(DashaRequest, "Dasha")
def dasha(payload: DashaRequest):
    natal, metadata, _ = chart_for_payload(payload)
    moon = natal.position(CelestialBody.MOON)
    at = _parse_instant(payload.atDate) if payload.atDate else None

    timeline = vimshottari_dasha(
        natal.birth_utc,
        moon.longitude,
        depth=payload.depth,
        from_date=_parse_instant(payload.fromDate) if payload.fromDate else None,
        to_date=_parse_instant(payload.toDate) if payload.toDate else None,
        at=at,
    )
    balance = dasha_balance(natal.birth_utc, moon.longitude)
    metadata.update({
        "system": "vimshottari",
        "depth": payload.depth,
        "birthLord": balance.lord.value,
        "balanceYears": round(balance.balance_years, 4),
        "fromDate": iso_z(timeline[0].start) if timeline else None,
        "toDate": iso_z(timeline[-1].end) if timeline else None,
    })
    out = {"timeline": dasha_json(timeline), "metadata": metadata}
    if at is not None:
        out["current"] = [{"lord": p.lord.value, "level": p.level} for p in current_periods(timeline)]
    return out
