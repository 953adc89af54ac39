from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from time import perf_counter
from typing import Any

from dossiers_client_sdk.errors import ApiError
from dossiers_client_sdk.listing_client import ListingClient
from dossiers_client_sdk.models import PageResult
from dossiers_client_sdk.normalizers import ResponseAdapter
from dossiers_client_sdk.params import ParamsBuilder

from dossiers_control.app.infrastructure.logging.logger import get_logger, log_action
from dossiers_control.app.listing_cache import ListingCache, cache_key
from dossiers_control.app.table_state import TableSnapshot, TableState

ChangeListener = Callable[["ServerTable"], None]


class InlineExecutor(Executor):
    """Runs each submitted call immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs) -> Future:  # noqa: ANN001
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:  # noqa: BLE001
            future.set_exception(exc)
        return future


@dataclass(frozen=True)
class FetchStatus:
    result: PageResult
    is_loading: bool
    error: Exception | None
    has_data: bool

    @property
    def is_error(self) -> bool:
        return self.error is not None


class ServerTable:
    """Keeps one table's rows in sync with its :class:`TableState`.

    Every state change builds the endpoint params and issues a GET (or serves a
    fresh cache entry). Each request carries a generation number; only the
    response of the latest generation is committed, older ones are dropped.
    """

    def __init__(
        self,
        *,
        name: str,
        endpoint: str,
        query_key: tuple[str, ...],
        build_params: ParamsBuilder,
        transform: ResponseAdapter,
        listing_client: ListingClient,
        state: TableState | None = None,
        cache: ListingCache | None = None,
        executor: Executor | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.name = name
        self.endpoint = endpoint
        self.query_key = tuple(query_key)
        self.state = state or TableState()
        self.cache = cache if cache is not None else ListingCache()
        self._build_params = build_params
        self._transform = transform
        self._client = listing_client
        self._executor = executor or InlineExecutor()
        self._logger = logger or get_logger("dossiers_control.server_table")

        self._lock = threading.Lock()
        self._generation = 0
        self._result = PageResult()
        self._has_data = False
        self._is_loading = False
        self._error: Exception | None = None
        self._listeners: list[ChangeListener] = []
        self._unsubscribe_state = self.state.subscribe(self._on_state_change)

    @property
    def status(self) -> FetchStatus:
        with self._lock:
            return FetchStatus(
                result=self._result,
                is_loading=self._is_loading,
                error=self._error,
                has_data=self._has_data,
            )

    @property
    def data(self) -> list[dict[str, Any]]:
        return self.status.result.data

    @property
    def total(self) -> int:
        return self.status.result.total

    @property
    def page_count(self) -> int:
        return self.status.result.page_count

    @property
    def is_loading(self) -> bool:
        return self.status.is_loading

    @property
    def is_error(self) -> bool:
        return self.status.is_error

    @property
    def error(self) -> Exception | None:
        return self.status.error

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def current_params(self) -> dict[str, Any]:
        snapshot = self.state.snapshot
        return self._build_params(
            snapshot.pagination,
            snapshot.sorting,
            snapshot.column_filters,
            snapshot.global_filter,
        )

    def load(self) -> Future | None:
        return self._request(force=False)

    def refetch(self) -> Future | None:
        log_action(self._logger, module=self.name, action="refetch", outcome="started")
        return self._request(force=True)

    def invalidate(self) -> None:
        self.cache.invalidate_query(self.query_key)
        log_action(self._logger, module=self.name, action="invalidate", outcome="success")

    def close(self) -> None:
        self._unsubscribe_state()
        self._listeners.clear()

    def _on_state_change(self, _snapshot: TableSnapshot) -> None:
        self._request(force=False)

    def _request(self, *, force: bool) -> Future | None:
        params = self.current_params()
        key = cache_key(self.query_key, params)
        with self._lock:
            self._generation += 1
            generation = self._generation

        if not force:
            cached = self.cache.get(key)
            if cached is not None:
                log_action(self._logger, module=self.name, action="cache_hit", outcome="success", page=params.get("page"))
                self._commit(generation, cached, error=None)
                return None

        with self._lock:
            self._is_loading = True
        self._notify()
        return self._executor.submit(self._fetch, generation, params, key)

    def _fetch(self, generation: int, params: dict[str, Any], key: tuple) -> None:
        started = perf_counter()
        try:
            payload = self._client.list_page(self.endpoint, params)
        except ApiError as error:
            log_action(
                self._logger,
                module=self.name,
                action="fetch",
                outcome="error",
                trace_id=error.trace_id,
                duration_ms=_elapsed_ms(started),
                level=logging.WARNING,
                code=error.code,
                status_code=error.status_code,
            )
            self._commit(generation, None, error=error)
            return
        except Exception as error:  # noqa: BLE001
            self._logger.exception("unexpected failure while fetching %s", self.endpoint)
            self._commit(generation, None, error=error)
            return

        page_size = params.get("limit")
        result = self._transform(payload, page_size=page_size if isinstance(page_size, int) else None)
        self.cache.set(key, result)
        committed = self._commit(generation, result, error=None)
        log_action(
            self._logger,
            module=self.name,
            action="fetch" if committed else "stale_drop",
            outcome="success" if committed else "dropped",
            duration_ms=_elapsed_ms(started),
            page=params.get("page"),
            rows=len(result.data),
            total=result.total,
        )

    def _commit(self, generation: int, result: PageResult | None, *, error: Exception | None) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self._is_loading = False
            self._error = error
            if result is not None:
                self._result = result
                self._has_data = True
        self._notify()
        return True

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


def _elapsed_ms(started: float) -> int:
    return int((perf_counter() - started) * 1000)
