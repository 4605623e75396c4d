import os
from pathlib import Path

from .astro.engine import AYANAMSHA, HOUSE_CODES, NODE_TYPES


class Config:
    """Application configuration"""
    EPHE_PATH = os.environ.get("EPHE_PATH")
    AYANAMSHA = os.environ.get("AYANAMSHA", "LAHIRI")
    HOUSE_SYSTEM = os.environ.get("HOUSE_SYSTEM", "WHOLE_SIGN")
    NODE_TYPE = os.environ.get("NODE_TYPE", "MEAN")
    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    PORT = int(os.environ.get("PORT", 8080))
    ALLOWED_ORIGINS = os.environ.get("ALLOWED_ORIGINS", "*").split(",")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    SIGN_CHANGE_HORIZON_DAYS = int(os.environ.get("SIGN_CHANGE_HORIZON_DAYS", 1100))

    @classmethod
    def as_dict(cls):
        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}

    @classmethod
    def validate(cls, values=None):
        """
        Validate configuration values.

        EPHE_PATH may be unset (Swiss Ephemeris then uses its built-in Moshier
        model), but when set it must be an existing directory.
        """
        values = values or cls.as_dict()
        ephe = values.get("EPHE_PATH")
        if ephe and not Path(ephe).is_dir():
            raise ValueError(f"EPHE_PATH {ephe} is not a valid directory")

        if values.get("AYANAMSHA") not in AYANAMSHA:
            raise ValueError(f"Invalid AYANAMSHA value: {values.get('AYANAMSHA')}. Must be one of {sorted(AYANAMSHA)}")
        if values.get("HOUSE_SYSTEM") not in HOUSE_CODES:
            raise ValueError(f"Invalid HOUSE_SYSTEM value: {values.get('HOUSE_SYSTEM')}. Must be one of {sorted(HOUSE_CODES)}")
        if values.get("NODE_TYPE") not in NODE_TYPES:
            raise ValueError(f"Invalid NODE_TYPE value: {values.get('NODE_TYPE')}. Must be one of {sorted(NODE_TYPES)}")

        horizon = values.get("SIGN_CHANGE_HORIZON_DAYS")
        if not isinstance(horizon, int) or horizon <= 0:
            raise ValueError(f"SIGN_CHANGE_HORIZON_DAYS must be a positive integer, got {horizon}")

        return True
