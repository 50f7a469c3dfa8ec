from __future__ import annotations

from heliox.analytics.errors import (
    AnalyticsError,
    ErrorCode,
    api_error,
    api_error_from_exception,
    api_success,
    invalid_param,
)


def test_api_success_meta() -> None:
    assert api_success({"x": 1}, target_count=2) == {
        "success": True,
        "data": {"x": 1},
        "target_count": 2,
    }


def test_api_error_default_message() -> None:
    response = api_error(ErrorCode.PAYLOAD_TOO_LARGE)
    assert response == {
        "success": False,
        "error": {
            "code": "PAYLOAD_TOO_LARGE",
            "message": "Request exceeds analytics limits",
            "httpStatus": 413,
        },
    }


def test_analytics_error_envelope() -> None:
    exc = AnalyticsError(ErrorCode.INVALID_PAYLOAD, "'targets' must be a list", {"parameter": "targets"})
    assert exc.http_status == 400
    assert str(exc) == "INVALID_PAYLOAD: 'targets' must be a list"
    assert api_error_from_exception(exc)["error"]["details"] == {"parameter": "targets"}


def test_unexpected_exception_is_internal() -> None:
    response = api_error_from_exception(KeyError("points"))
    assert response["error"]["code"] == "INTERNAL_ERROR"
    assert response["error"]["httpStatus"] == 500


def test_invalid_param() -> None:
    assert invalid_param("body", "must be a JSON object")["error"]["details"] == {"parameter": "body"}
