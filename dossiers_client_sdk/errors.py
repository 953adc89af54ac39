from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

FALLBACK_MESSAGE = "HTTP request failed"
TRACE_HEADERS = ("X-Trace-ID", "X-Request-ID")


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: dict[str, Any] | list[Any] | str | None = None
    trace_id: str | None = None
    status_code: int | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    @classmethod
    def from_http_response(cls, response: httpx.Response) -> "ApiError":
        """Builds the error from a non-2xx response.

        The dossiers backend answers `{"error": "..."}`, sometimes with a
        `details` list of validation messages. Bodies that are not JSON keep
        the raw text as message.
        """
        body = _json_body(response)
        header_trace = next((response.headers[name] for name in TRACE_HEADERS if name in response.headers), None)
        if not isinstance(body, dict):
            return cls(
                code="HTTP_ERROR",
                message=response.text or FALLBACK_MESSAGE,
                details=body if isinstance(body, list) else None,
                trace_id=header_trace,
                status_code=response.status_code,
            )
        message = body.get("error") or body.get("message") or response.text or FALLBACK_MESSAGE
        return cls(
            code=str(body.get("code") or "HTTP_ERROR"),
            message=str(message),
            details=body.get("details"),
            trace_id=str(body["trace_id"]) if body.get("trace_id") else header_trace,
            status_code=response.status_code,
        )


def _json_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
