from datetime import datetime as _datetime
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from .astro.engine import AYANAMSHA, HOUSE_CODES, NODE_TYPES
from .astro.varga import VARGAS


def _check_iso(v: Optional[str], field: str) -> Optional[str]:
    if v is None:
        return v
    try:
        _datetime.fromisoformat(v.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"{field} must be in ISO-8601 format")
    return v


class BirthRequest(BaseModel):
    """Birth data shared by every chart-based endpoint."""

    datetime: str
    tz: Optional[str] = None
    utcOffsetMinutes: Optional[int] = Field(default=None, ge=-14 * 60, le=14 * 60)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    houseSystem: Optional[str] = None
    ayanamsha: Optional[str] = None
    nodeType: Optional[str] = None

    @field_validator("houseSystem")
    @classmethod
    def _hs(cls, v):
        if v is not None and v not in HOUSE_CODES:
            raise ValueError(f"houseSystem must be one of {sorted(HOUSE_CODES)}")
        return v

    @field_validator("ayanamsha")
    @classmethod
    def _ay(cls, v):
        if v is not None and v not in AYANAMSHA:
            raise ValueError(f"ayanamsha must be one of {sorted(AYANAMSHA)}")
        return v

    @field_validator("nodeType")
    @classmethod
    def _nt(cls, v):
        if v is not None and v not in NODE_TYPES:
            raise ValueError(f"nodeType must be one of {sorted(NODE_TYPES)}")
        return v

    @field_validator("datetime")
    @classmethod
    def _dt(cls, v):
        return _check_iso(v, "datetime")

    @field_validator("tz")
    @classmethod
    def _tz(cls, v):
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Invalid timezone: {v}")
        return v


class ChartRequest(BirthRequest):
    includeOuterPlanets: bool = False


class ShadbalaRequest(BirthRequest):
    includeNodes: bool = True


class AshtakavargaRequest(BirthRequest):
    includePrastara: bool = False


class VargaRequest(BirthRequest):
    divisions: List[int] = Field(default_factory=lambda: [9])

    @field_validator("divisions")
    @classmethod
    def _divisions(cls, v):
        if not v:
            raise ValueError("divisions must not be empty")
        unknown = [d for d in v if d not in VARGAS]
        if unknown:
            raise ValueError(f"Unsupported divisions {unknown}; supported: {sorted(VARGAS)}")
        return v


class TransitRequest(BirthRequest):
    transitDatetime: Optional[str] = None  # ISO-8601; naive values are UTC
    signChangeDays: Optional[int] = Field(default=None, ge=0, le=3650)

    @field_validator("transitDatetime")
    @classmethod
    def _tdt(cls, v):
        return _check_iso(v, "transitDatetime")


class DashaRequest(BirthRequest):
    depth: int = 3  # 1..3
    fromDate: Optional[str] = None  # ISO-8601 UTC (e.g., 1991-03-25T04:16:00Z)
    toDate: Optional[str] = None
    atDate: Optional[str] = None

    @field_validator("depth")
    @classmethod
    def _depth(cls, v):
        if v < 1 or v > 3:
            raise ValueError("depth must be between 1 and 3")
        return v

    @field_validator("fromDate", "toDate", "atDate")
    @classmethod
    def _dates(cls, v, info):
        return _check_iso(v, info.field_name)
