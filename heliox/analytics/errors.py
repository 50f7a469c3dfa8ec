"""
Latency API Errors
==================

Error codes and the JSON envelopes returned by heliox.web.

Codes
-----
    INVALID_PAYLOAD   (400)  collector document is structurally wrong
    INVALID_PARAMETER (400)  request parameter failed validation
    PAYLOAD_TOO_LARGE (413)  more targets/points than Config.API allows
    INTERNAL_ERROR    (500)  anything unexpected

Envelopes
---------
    api_success(snapshot.to_dict(), target_count=3)
        -> {"success": True, "data": {...}, "target_count": 3}

    api_error(ErrorCode.PAYLOAD_TOO_LARGE, "64 targets max")
        -> {"success": False,
            "error": {"code": "PAYLOAD_TOO_LARGE", "message": "64 targets max",
                      "httpStatus": 413}}

The analytics engine itself never raises for bad sample values; only the
payload parser and the web layer raise AnalyticsError.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """(code, HTTP status, fallback message) for each API failure."""

    INVALID_PAYLOAD = ("INVALID_PAYLOAD", 400, "Latency payload is malformed")
    INVALID_PARAMETER = ("INVALID_PARAMETER", 400, "Request parameter is invalid")
    PAYLOAD_TOO_LARGE = ("PAYLOAD_TOO_LARGE", 413, "Request exceeds analytics limits")
    INTERNAL_ERROR = ("INTERNAL_ERROR", 500, "Latency analysis failed")

    def __init__(self, code: str, http_status: int, default_message: str):
        self.code = code
        self.http_status = http_status
        self.default_message = default_message


@dataclass
class AnalyticsError(Exception):
    """Raised by the payload parser and API helpers; carries an ErrorCode."""

    error_code: ErrorCode
    message: str = ""
    details: Optional[Dict[str, Any]] = None

    @property
    def http_status(self) -> int:
        return self.error_code.http_status

    def __str__(self) -> str:
        return f"{self.error_code.code}: {self.message or self.error_code.default_message}"

    def to_dict(self) -> Dict[str, Any]:
        return api_error(self.error_code, self.message, self.details)


def api_success(data: Any, **meta) -> Dict[str, Any]:
    """Success envelope; extra keyword fields sit next to ``data``."""
    response: Dict[str, Any] = {"success": True, "data": data}
    response.update(meta)
    return response


def api_error(
    error_code: ErrorCode,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Failure envelope. ``details`` is omitted when empty."""
    error: Dict[str, Any] = {
        "code": error_code.code,
        "message": message or error_code.default_message,
        "httpStatus": error_code.http_status,
    }
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def api_error_from_exception(
    exc: Exception,
    fallback: ErrorCode = ErrorCode.INTERNAL_ERROR,
) -> Dict[str, Any]:
    """Envelope for a caught exception; AnalyticsError keeps its own code."""
    if isinstance(exc, AnalyticsError):
        return exc.to_dict()
    return api_error(fallback, str(exc) or None)


def invalid_param(param_name: str, reason: str) -> Dict[str, Any]:
    return api_error(
        ErrorCode.INVALID_PARAMETER,
        f"'{param_name}' {reason}",
        details={"parameter": param_name},
    )
