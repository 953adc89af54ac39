import httpx

from dossiers_client_sdk.errors import ApiError


def test_backend_error_body_with_details() -> None:
    response = httpx.Response(
        400,
        json={"error": "Données invalides", "details": ["numeroDS requis"]},
        headers={"X-Trace-ID": "trace-1"},
    )

    error = ApiError.from_http_response(response)

    assert error.code == "HTTP_ERROR"
    assert error.message == "Données invalides"
    assert error.details == ["numeroDS requis"]
    assert error.trace_id == "trace-1"
    assert error.status_code == 400


def test_body_trace_id_wins_over_header() -> None:
    response = httpx.Response(
        409,
        json={"code": "CONFLICT", "message": "Dossier verrouillé", "trace_id": "body-trace"},
        headers={"X-Request-ID": "header-trace"},
    )

    error = ApiError.from_http_response(response)

    assert error.code == "CONFLICT"
    assert error.message == "Dossier verrouillé"
    assert error.trace_id == "body-trace"
    assert str(error) == "CONFLICT: Dossier verrouillé"


def test_non_json_body_keeps_text() -> None:
    error = ApiError.from_http_response(httpx.Response(502, text="Bad Gateway", headers={"x-trace-id": "gw-7"}))

    assert error.message == "Bad Gateway"
    assert error.details is None
    assert error.trace_id == "gw-7"


def test_empty_body_uses_fallback_message() -> None:
    error = ApiError.from_http_response(httpx.Response(500))

    assert error.message == "HTTP request failed"
    assert error.trace_id is None
