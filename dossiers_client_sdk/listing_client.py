from __future__ import annotations

from typing import Any

from dossiers_client_sdk.http_client import HttpClient
from dossiers_client_sdk.models import Facets


class ListingClient:
    def __init__(self, http_client: HttpClient) -> None:
        self.http_client = http_client

    def list_page(self, endpoint: str, params: dict[str, Any]) -> Any:
        return self.http_client.request("GET", endpoint, params=encode_query_params(params))

    def get_facets(self, endpoint: str) -> Facets:
        payload = self.http_client.request("GET", f"{endpoint.rstrip('/')}/facets")
        return Facets.model_validate(payload if isinstance(payload, dict) else {})


def encode_query_params(params: dict[str, Any]) -> dict[str, Any]:
    """List values go out as repeated ``name[]`` parameters, the way the backend parses arrays."""
    encoded: dict[str, Any] = {}
    for key, value in params.items():
        if value in (None, ""):
            continue
        if isinstance(value, (list, tuple)):
            if value:
                encoded[f"{key}[]"] = [str(item) for item in value]
            continue
        encoded[key] = value
    return encoded
