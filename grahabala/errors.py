from typing import Any, Dict, Optional


class AstroError(Exception):
    """
    Base exception for all strength/condition calculation errors.

    Carries a stable machine-readable ``code`` and an optional ``details``
    mapping so the HTTP layer can render the standard error envelope.
    """

    code = "ASTRO_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidInputError(AstroError, ValueError):
    """
    Raised for out-of-range longitudes, non-finite numbers, unknown
    enumeration values and unsupported divisions or house systems.
    """

    code = "INVALID_INPUT"


class MissingCollaboratorDataError(AstroError, RuntimeError):
    """
    Raised when the ephemeris collaborator cannot supply house cusps or
    positions (e.g. quadrant houses inside the polar circle).

    Never replaced by a default: strengths computed from incomplete positions
    are meaningless.
    """

    code = "MISSING_EPHEMERIS_DATA"
