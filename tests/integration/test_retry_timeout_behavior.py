import httpx

from dossiers_client_sdk.config import SDKConfig
from dossiers_client_sdk.errors import ApiError
from dossiers_client_sdk.http_client import HttpClient


class _Transport:
    def __init__(self, responses) -> None:
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        result = self.responses[len(self.requests)]
        self.requests.append(request)
        if isinstance(result, Exception):
            raise result
        return result


def _client(transport: _Transport, **overrides) -> HttpClient:
    values = {
        "base_url": "http://api.test/api/",
        "timeout_seconds": 5,
        "verify_ssl": True,
        "retry_max_attempts": 3,
        "retry_backoff_ms": 0,
    }
    values.update(overrides)
    config = SDKConfig(**values)
    return HttpClient(config, client=httpx.Client(base_url=config.base_url, transport=httpx.MockTransport(transport)))


def test_retry_on_5xx_and_timeout() -> None:
    transport = _Transport(
        [
            httpx.ReadTimeout("timeout"),
            httpx.Response(503, json={"error": "maintenance"}),
            httpx.Response(200, json={"demandes": []}),
        ]
    )

    payload = _client(transport).request("GET", "/demandes")

    assert payload == {"demandes": []}
    assert len(transport.requests) == 3
    assert transport.requests[0].url.path == "/api/demandes"


def test_no_retry_on_4xx() -> None:
    transport = _Transport([httpx.Response(400, json={"error": "Paramètre sortBy invalide"})])

    try:
        _client(transport).request("GET", "demandes")
        raised = False
    except ApiError as error:
        raised = True
        assert error.status_code == 400
        assert error.code == "HTTP_ERROR"
        assert error.message == "Paramètre sortBy invalide"

    assert raised
    assert len(transport.requests) == 1


def test_timeout_exhaustion_raises_timeout_error() -> None:
    transport = _Transport([httpx.ReadTimeout("timeout")] * 2)

    try:
        _client(transport, retry_max_attempts=2).request("GET", "dossiers")
        raised = False
    except ApiError as error:
        raised = True
        assert error.code == "TIMEOUT_ERROR"

    assert raised
    assert len(transport.requests) == 2


def test_network_error_code() -> None:
    transport = _Transport([httpx.ConnectError("refused")])

    try:
        _client(transport, retry_max_attempts=1).request("GET", "dossiers")
        raised = False
    except ApiError as error:
        raised = True
        assert error.code == "NETWORK_ERROR"

    assert raised


def test_non_get_requests_are_not_retried() -> None:
    transport = _Transport([httpx.Response(503, json={"error": "down"})])

    try:
        _client(transport).request("POST", "demandes", json_body={"nom": "x"})
        raised = False
    except ApiError:
        raised = True

    assert raised
    assert len(transport.requests) == 1


def test_bearer_token_and_trace_header() -> None:
    transport = _Transport([httpx.Response(500, json={"error": "boom"}, headers={"X-Trace-ID": "trace-42"})])

    try:
        _client(transport, retry_max_attempts=1, auth_token="jwt-abc").request("GET", "paiements")
    except ApiError as error:
        assert error.trace_id == "trace-42"

    assert transport.requests[0].headers["Authorization"] == "Bearer jwt-abc"


def test_auth_error_handler_called_on_401() -> None:
    transport = _Transport([httpx.Response(401, json={"error": "Token expiré"})])
    client = _client(transport)
    seen: list[ApiError] = []
    client.register_auth_error_handler(seen.append)

    try:
        client.request("GET", "conventions")
    except ApiError:
        pass

    assert [error.status_code for error in seen] == [401]
