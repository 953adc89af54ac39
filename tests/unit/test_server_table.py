from concurrent.futures import Executor, Future

from dossiers_client_sdk.errors import ApiError
from dossiers_client_sdk.normalizers import demandes_adapter
from dossiers_client_sdk.params import build_demandes_params

from dossiers_control.app.listing_cache import ListingCache
from dossiers_control.app.server_table import InlineExecutor, ServerTable
from dossiers_control.app.table_state import TableState


class _ListingClientStub:
    def __init__(self, responder) -> None:
        self.responder = responder
        self.calls: list[tuple[str, dict]] = []

    def list_page(self, endpoint, params):
        self.calls.append((endpoint, dict(params)))
        result = self.responder(params)
        if isinstance(result, Exception):
            raise result
        return result


class _ManualExecutor(Executor):
    def __init__(self) -> None:
        self.jobs: list[tuple[Future, object, tuple]] = []

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        self.jobs.append((future, fn, args))
        return future

    def run(self, index: int) -> None:
        future, fn, args = self.jobs[index]
        future.set_result(fn(*args))


def _page(*ids: str, total: int | None = None) -> dict:
    return {"demandes": [{"id": item} for item in ids], "pagination": {"total": total if total is not None else len(ids), "pages": 1}}


def _table(client, *, state=None, executor=None, cache=None) -> ServerTable:
    return ServerTable(
        name="demandes",
        endpoint="demandes",
        query_key=("demandes",),
        build_params=build_demandes_params,
        transform=demandes_adapter,
        listing_client=client,
        state=state or TableState(),
        cache=cache if cache is not None else ListingCache(),
        executor=executor or InlineExecutor(),
    )


def test_load_fetches_and_exposes_page() -> None:
    client = _ListingClientStub(lambda params: _page("d1", "d2", total=75))
    table = _table(client)

    table.load()

    assert client.calls == [("demandes", {"page": 1, "limit": 50})]
    assert table.data == [{"id": "d1"}, {"id": "d2"}]
    assert table.total == 75
    assert not table.is_loading
    assert not table.is_error


def test_state_change_triggers_fetch_with_built_params() -> None:
    client = _ListingClientStub(lambda params: _page("d1"))
    table = _table(client)

    table.state.set_column_filters({"type": ["VICTIME"]})

    assert client.calls[-1][1] == {"page": 1, "limit": 50, "type": ["VICTIME"]}
    assert table.current_params() == {"page": 1, "limit": 50, "type": ["VICTIME"]}


def test_latest_request_wins_when_responses_arrive_out_of_order() -> None:
    client = _ListingClientStub(lambda params: _page("filtered") if "nom" in params else _page("stale"))
    executor = _ManualExecutor()
    table = _table(client, executor=executor)

    table.load()
    table.state.set_column_filters({"nom": "Dupont"})
    assert table.is_loading

    executor.run(1)
    executor.run(0)

    assert table.data == [{"id": "filtered"}]
    assert not table.is_loading


def test_stale_error_does_not_replace_latest_data() -> None:
    def responder(params):
        if "nom" in params:
            return _page("fresh")
        return ApiError(code="NETWORK_ERROR", message="down")

    executor = _ManualExecutor()
    table = _table(_ListingClientStub(responder), executor=executor)

    table.load()
    table.state.set_column_filters({"nom": "x"})
    executor.run(1)
    executor.run(0)

    assert table.data == [{"id": "fresh"}]
    assert not table.is_error


def test_clear_all_filters_issues_one_fetch_without_filters() -> None:
    client = _ListingClientStub(lambda params: _page())
    state = TableState(column_filters={"nom": "Dupont", "type": ["VICTIME"]}, global_filter="martin")
    table = _table(client, state=state)
    table.load()

    state.clear_all_filters()

    assert len(client.calls) == 2
    assert client.calls[-1][1] == {"page": 1, "limit": 50}


def test_error_keeps_previous_data() -> None:
    responses = [_page("d1"), ApiError(code="HTTP_ERROR", message="boom", status_code=500)]
    client = _ListingClientStub(lambda params: responses.pop(0))
    table = _table(client)

    table.load()
    table.refetch()

    assert table.is_error
    assert isinstance(table.error, ApiError)
    assert table.data == [{"id": "d1"}]
    assert table.status.has_data


def test_unexpected_exception_becomes_error_state() -> None:
    table = _table(_ListingClientStub(lambda params: RuntimeError("socket closed")))

    table.load()

    assert table.is_error
    assert not table.status.has_data
    assert table.data == []


def test_fresh_cache_entry_is_served_without_request() -> None:
    client = _ListingClientStub(lambda params: _page("d1"))
    table = _table(client)

    table.load()
    table.load()

    assert len(client.calls) == 1
    assert table.data == [{"id": "d1"}]


def test_refetch_bypasses_cache_and_invalidate_drops_it() -> None:
    client = _ListingClientStub(lambda params: _page("d1"))
    table = _table(client)

    table.load()
    table.refetch()
    assert len(client.calls) == 2

    table.invalidate()
    table.load()
    assert len(client.calls) == 3


def test_listeners_notified_on_loading_and_commit() -> None:
    executor = _ManualExecutor()
    table = _table(_ListingClientStub(lambda params: _page("d1")), executor=executor)
    seen: list[bool] = []
    table.subscribe(lambda current: seen.append(current.is_loading))

    table.load()
    executor.run(0)

    assert seen == [True, False]


def test_close_detaches_from_state() -> None:
    client = _ListingClientStub(lambda params: _page())
    table = _table(client)

    table.close()
    table.state.set_global_filter("x")

    assert client.calls == []


def test_page_count_derived_from_limit_when_missing() -> None:
    client = _ListingClientStub(lambda params: {"demandes": [{"id": 1}], "pagination": {"total": 120}})
    table = _table(client, state=TableState(page_size=50))

    table.load()

    assert table.page_count == 3


def test_injected_empty_cache_is_shared() -> None:
    cache = ListingCache()
    client = _ListingClientStub(lambda params: _page("d1"))
    table = _table(client, cache=cache)

    table.load()

    assert table.cache is cache
    assert len(cache) == 1
