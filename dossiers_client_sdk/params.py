"""Query parameter builders for the listing endpoints.

Every builder has the same signature,
``(pagination, sorting, column_filters, global_filter) -> dict``, and maps
column filters explicitly per column id: filter values are heterogeneous
(text, list of labels, ``{"from", "to"}`` date range) and each endpoint names
its parameters differently. Empty values never produce a parameter.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

FilterValue = str | list[str] | dict[str, str]
ColumnFilters = Mapping[str, Any]


@dataclass(frozen=True)
class PaginationState:
    page_index: int = 0
    page_size: int = 50


@dataclass(frozen=True)
class SortItem:
    id: str
    desc: bool = False


ParamsBuilder = Callable[[PaginationState, Sequence[SortItem], ColumnFilters, str], dict[str, Any]]


def is_empty_filter(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not [item for item in value if not is_empty_filter(item)]
    if isinstance(value, dict):
        return not (value.get("from") or value.get("to"))
    return False


def base_params(
    pagination: PaginationState,
    sorting: Sequence[SortItem],
    global_filter: str,
    default_sort: SortItem | None = None,
) -> dict[str, Any]:
    params: dict[str, Any] = {"page": pagination.page_index + 1, "limit": pagination.page_size}
    search = (global_filter or "").strip()
    if search:
        params["search"] = search
    sort = sorting[0] if sorting else default_sort
    if sort is not None:
        params["sortBy"] = sort.id
        params["sortOrder"] = "desc" if sort.desc else "asc"
    return params


def as_list(value: Any) -> list[str]:
    items = value if isinstance(value, (list, tuple)) else [value]
    return [str(item) for item in items if not is_empty_filter(item)]


def put_text(params: dict[str, Any], name: str, value: Any) -> None:
    if is_empty_filter(value):
        return
    params[name] = value.strip() if isinstance(value, str) else str(value)


def put_list(params: dict[str, Any], name: str, value: Any) -> None:
    items = as_list(value)
    if items:
        params[name] = items


def put_date_range(params: dict[str, Any], prefix: str, value: Any) -> None:
    if not isinstance(value, dict):
        return
    if value.get("from"):
        params[f"{prefix}Debut"] = value["from"]
    if value.get("to"):
        params[f"{prefix}Fin"] = value["to"]


def build_demandes_params(
    pagination: PaginationState,
    sorting: Sequence[SortItem],
    column_filters: ColumnFilters,
    global_filter: str,
) -> dict[str, Any]:
    params = base_params(pagination, sorting, global_filter)
    for column_id, value in column_filters.items():
        if column_id in {"numeroDS", "nom", "prenom"}:
            put_text(params, column_id, value)
        elif column_id in {"type", "grade", "assigneA"}:
            put_list(params, column_id, value)
        elif column_id == "dateReception":
            put_date_range(params, "date", value)
        elif column_id in {"dateFaits", "dateAudience"}:
            put_date_range(params, column_id, value)
    return params


def build_dossiers_params(
    pagination: PaginationState,
    sorting: Sequence[SortItem],
    column_filters: ColumnFilters,
    global_filter: str,
) -> dict[str, Any]:
    params = base_params(pagination, sorting, global_filter)
    for column_id, value in column_filters.items():
        if column_id in {"numero", "nomDossier"}:
            put_text(params, column_id, value)
        elif column_id == "demandeurs":
            put_text(params, "demandeur", value)
        elif column_id in {"sgami", "assigneA", "badges"}:
            put_list(params, column_id, value)
    return params


def build_conventions_params(
    pagination: PaginationState,
    sorting: Sequence[SortItem],
    column_filters: ColumnFilters,
    global_filter: str,
) -> dict[str, Any]:
    params = base_params(pagination, sorting, global_filter, default_sort=SortItem("numero", desc=True))
    for column_id, value in column_filters.items():
        if column_id in {"numero", "instance"}:
            put_text(params, column_id, value)
        elif column_id == "dossier":
            put_text(params, "dossierNumero", value)
        elif column_id == "avocat":
            put_text(params, "avocatNom", value)
        elif column_id in {"type", "victimeOuMisEnCause", "creePar", "modifiePar"}:
            put_list(params, column_id, value)
        elif column_id == "dateRetourSigne":
            put_date_range(params, "dateRetourSigne", value)
        elif column_id == "dateCreation":
            put_date_range(params, "createdAt", value)
    return params


def build_decisions_params(
    pagination: PaginationState,
    sorting: Sequence[SortItem],
    column_filters: ColumnFilters,
    global_filter: str,
) -> dict[str, Any]:
    params = base_params(pagination, sorting, global_filter, default_sort=SortItem("createdAt", desc=False))
    for column_id, value in column_filters.items():
        if column_id == "numero":
            put_text(params, "numero", value)
        elif column_id == "dossier":
            put_text(params, "dossierNumero", value)
        elif column_id in {"type", "typeVictMec", "creePar", "modifiePar"}:
            put_list(params, column_id, value)
        elif column_id == "avis_hierarchiques":
            # the backend filters on a single boolean: both choices selected means no filter
            answers = {"true" if item == "Oui" else "false" for item in as_list(value)}
            if len(answers) == 1:
                params["avis_hierarchiques"] = answers.pop()
        elif column_id in {"dateSignature", "dateEnvoi", "createdAt"}:
            put_date_range(params, column_id, value)
    return params


def build_paiements_params(
    pagination: PaginationState,
    sorting: Sequence[SortItem],
    column_filters: ColumnFilters,
    global_filter: str,
) -> dict[str, Any]:
    params = base_params(pagination, sorting, global_filter, default_sort=SortItem("createdAt", desc=True))
    for column_id, value in column_filters.items():
        if column_id in {"numero", "identiteBeneficiaire", "facture", "pceDetaille"}:
            put_text(params, column_id, value)
        elif column_id == "dossier":
            put_text(params, "dossierNumero", value)
        elif column_id == "sgami":
            put_text(params, "sgamiNom", value)
        elif column_id in {"qualiteBeneficiaire", "creePar"}:
            put_list(params, column_id, value)
        elif column_id == "dateServiceFait":
            put_date_range(params, "dateServiceFait", value)
        elif column_id == "createdAt":
            put_date_range(params, "createdAt", value)
    return params
