from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from dossiers_client_sdk.models import PageResult

Path = tuple[str, ...]


@dataclass(frozen=True)
class ResponseAdapter:
    """Declares where one endpoint puts its rows, total and page count.

    Calling the adapter never raises: absent or ill-typed fields give an
    empty page.
    """

    rows_keys: tuple[str, ...]
    total_paths: tuple[Path, ...] = (("total",),)
    page_count_paths: tuple[Path, ...] = ()
    accepts_bare_list: bool = False

    def __call__(self, payload: Any, *, page_size: int | None = None) -> PageResult:
        rows: list[Any] = []
        total: int | None = None
        page_count: int | None = None

        if isinstance(payload, list) and self.accepts_bare_list:
            rows = payload
            total = len(payload)
        elif isinstance(payload, dict):
            for key in self.rows_keys:
                if isinstance(payload.get(key), list):
                    rows = payload[key]
                    break
            total = _first_int(payload, self.total_paths)
            page_count = _first_int(payload, self.page_count_paths)

        safe_total = max(0, total or 0)
        if page_count is None and page_size and page_size > 0:
            page_count = math.ceil(safe_total / page_size)

        return PageResult(
            data=[row for row in rows if isinstance(row, dict)],
            total=safe_total,
            page_count=max(0, page_count or 0),
        )


demandes_adapter = ResponseAdapter(
    rows_keys=("demandes",),
    total_paths=(("pagination", "total"), ("total",)),
    page_count_paths=(("pagination", "pages"),),
)

# the legacy dossiers route answers with a bare array
dossiers_adapter = ResponseAdapter(
    rows_keys=("dossiers", "data"),
    total_paths=(("total",), ("pagination", "total")),
    page_count_paths=(("pagination", "pages"), ("pageCount",)),
    accepts_bare_list=True,
)

conventions_adapter = ResponseAdapter(
    rows_keys=("conventions",),
    total_paths=(("pagination", "total"),),
    page_count_paths=(("pagination", "totalPages"),),
)

decisions_adapter = ResponseAdapter(
    rows_keys=("decisions",),
    total_paths=(("pagination", "total"),),
    page_count_paths=(("pagination", "totalPages"),),
)

paiements_adapter = ResponseAdapter(
    rows_keys=("paiements",),
    total_paths=(("pagination", "total"),),
    page_count_paths=(("pagination", "totalPages"),),
)


def _first_int(payload: dict[str, Any], paths: tuple[Path, ...]) -> int | None:
    for path in paths:
        value = _to_int(_dig(payload, path))
        if value is not None:
            return value
    return None


def _dig(payload: Any, path: Path) -> Any:
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        if value is None or value == "":
            return None
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None
