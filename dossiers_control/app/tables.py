from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any

from dossiers_client_sdk.errors import ApiError
from dossiers_client_sdk.listing_client import ListingClient
from dossiers_client_sdk.models import Facets
from dossiers_client_sdk.normalizers import (
    ResponseAdapter,
    conventions_adapter,
    decisions_adapter,
    demandes_adapter,
    dossiers_adapter,
    paiements_adapter,
)
from dossiers_client_sdk.params import (
    ParamsBuilder,
    SortItem,
    build_conventions_params,
    build_decisions_params,
    build_demandes_params,
    build_dossiers_params,
    build_paiements_params,
)

from dossiers_control.app.infrastructure.logging.logger import get_logger, log_action
from dossiers_control.app.listing_cache import ListingCache
from dossiers_control.app.server_table import ServerTable
from dossiers_control.app.table_state import TableState
from dossiers_control.app.ui.filters import (
    DEFAULT_DEBOUNCE_MS,
    DateRangeFilter,
    DebouncedTextFilter,
    MultiSelectFilter,
    Scheduler,
)
from dossiers_control.app.ui.listing_view import EMPTY_MESSAGE, ColumnDef, FilterStrategy, Row

UNASSIGNED = "Non assigné"


@dataclass(frozen=True)
class FilterContext:
    facets: Facets = field(default_factory=Facets)
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    scheduler: Scheduler | None = None

    def text(self, placeholder: str = "Filtrer...") -> FilterStrategy:
        return lambda column: DebouncedTextFilter(
            column,
            placeholder=placeholder,
            debounce_ms=self.debounce_ms,
            scheduler=self.scheduler,
        )

    def choices(
        self,
        facet_key: str | None = None,
        *,
        fallback: Sequence[str] = (),
        leading: Sequence[str] = (),
        placeholder: str = "Tous",
    ) -> FilterStrategy:
        options = self.facets.options(facet_key) if facet_key else []
        values = [*leading, *(options or fallback)]
        return lambda column: MultiSelectFilter(column, values, placeholder=placeholder)

    def dates(self) -> FilterStrategy:
        return DateRangeFilter


@dataclass(frozen=True)
class TableDefinition:
    key: str
    title: str
    endpoint: str
    build_params: ParamsBuilder
    adapter: ResponseAdapter
    columns: Callable[[FilterContext], list[ColumnDef]]
    page_size: int = 50
    initial_sorting: tuple[SortItem, ...] = ()
    empty_message: str = EMPTY_MESSAGE
    has_facets: bool = False

    @property
    def query_key(self) -> tuple[str, ...]:
        return (self.key,)


def person_name(person: Any, fallback: str = UNASSIGNED) -> str:
    if not isinstance(person, dict):
        return fallback
    parts = [str(person.get(key) or "").strip() for key in ("grade", "prenom", "nom")]
    return " ".join(part for part in parts if part) or fallback


def nested(*path: str, fallback: Any = "—") -> Callable[[Row], Any]:
    def _read(row: Row) -> Any:
        value: Any = row
        for key in path:
            if not isinstance(value, dict):
                return fallback
            value = value.get(key)
        return fallback if value in (None, "") else value

    return _read


def _labels(key: str, inner: str = "nom") -> Callable[[Row], str]:
    def _read(row: Row) -> str:
        items = row.get(key)
        if not isinstance(items, list):
            return ""
        names = []
        for item in items:
            value = item.get(inner) if isinstance(item, dict) else item
            if isinstance(value, dict):
                value = value.get("nom")
            if value:
                names.append(str(value))
        return ", ".join(names)

    return _read


def _demandeurs(row: Row) -> str:
    demandes = row.get("demandes")
    if not isinstance(demandes, list):
        return ""
    names = []
    for item in demandes:
        demande = item.get("demande", item) if isinstance(item, dict) else None
        if isinstance(demande, dict):
            names.append(person_name(demande, fallback=""))
    return ", ".join(name for name in names if name)


def _date_sort_key(column_id: str) -> Callable[[Row], str]:
    return lambda row: str(row.get(column_id) or "")


def demandes_columns(ctx: FilterContext) -> list[ColumnDef]:
    return [
        ColumnDef("numeroDS", "Numéro DS", enable_filter=True, render_filter=ctx.text()),
        ColumnDef(
            "dateReception",
            "Réception",
            enable_filter=True,
            render_filter=ctx.dates(),
            sort_comparator=_date_sort_key("dateReception"),
        ),
        ColumnDef(
            "type",
            "Type",
            enable_filter=True,
            render_filter=ctx.choices("types", fallback=("VICTIME", "MIS_EN_CAUSE"), placeholder="Tous types"),
        ),
        ColumnDef(
            "grade",
            "Grade",
            accessor=nested("grade", "gradeAbrege", fallback="-"),
            enable_filter=True,
            render_filter=ctx.choices("grades", placeholder="Tous grades"),
        ),
        ColumnDef("nom", "Nom", enable_filter=True, render_filter=ctx.text()),
        ColumnDef("prenom", "Prénom", enable_filter=True, render_filter=ctx.text()),
        ColumnDef("dateFaits", "Date faits", enable_filter=True, render_filter=ctx.dates()),
        ColumnDef("dossier", "Dossier", accessor=nested("dossier", "numero", fallback="Non lié"), enable_sorting=False),
        ColumnDef(
            "assigneA",
            "Assigné à",
            accessor=lambda row: person_name(row.get("assigneA")),
            enable_filter=True,
            render_filter=ctx.choices("assigneA", leading=(UNASSIGNED,)),
        ),
        ColumnDef("dateAudience", "Date audience", enable_filter=True, render_filter=ctx.dates()),
        ColumnDef("unite", "Unité", enable_sorting=False, visible=False),
        ColumnDef("commune", "Commune", enable_sorting=False, visible=False),
    ]


def dossiers_columns(ctx: FilterContext) -> list[ColumnDef]:
    return [
        ColumnDef("numero", "Numéro", enable_filter=True, render_filter=ctx.text()),
        ColumnDef("nomDossier", "Nom du dossier", enable_filter=True, render_filter=ctx.text()),
        ColumnDef(
            "nombreDemandes",
            "Nb Demandes",
            accessor=lambda row: nested("stats", "nombreDemandes", fallback=None)(row)
            or len(row.get("demandes") or []),
            enable_sorting=False,
        ),
        ColumnDef("demandeurs", "Demandeurs", accessor=_demandeurs, enable_sorting=False, enable_filter=True, render_filter=ctx.text()),
        ColumnDef(
            "sgami",
            "SGAMI",
            accessor=nested("sgami", "nom", fallback=UNASSIGNED),
            enable_filter=True,
            render_filter=ctx.choices("sgamis", leading=(UNASSIGNED,)),
        ),
        ColumnDef(
            "assigneA",
            "Assigné à",
            accessor=lambda row: person_name(row.get("assigneA")),
            enable_filter=True,
            render_filter=ctx.choices("assigneA", leading=(UNASSIGNED,)),
        ),
        ColumnDef(
            "badges",
            "Badges",
            accessor=_labels("badges", inner="badge"),
            enable_sorting=False,
            enable_filter=True,
            render_filter=ctx.choices("badges"),
        ),
        ColumnDef("createdAt", "Date création"),
    ]


def conventions_columns(ctx: FilterContext) -> list[ColumnDef]:
    return [
        ColumnDef("numero", "N° Convention", enable_filter=True, render_filter=ctx.text()),
        ColumnDef(
            "type",
            "Type",
            enable_filter=True,
            render_filter=ctx.choices("types", fallback=("CONVENTION", "AVENANT"), placeholder="Tous types"),
        ),
        ColumnDef("dossier", "Dossier", accessor=nested("dossier", "numero"), enable_filter=True, render_filter=ctx.text()),
        ColumnDef(
            "victimeOuMisEnCause",
            "Partie",
            enable_filter=True,
            render_filter=ctx.choices(fallback=("VICTIME", "MIS_EN_CAUSE")),
        ),
        ColumnDef("instance", "Instance", enable_filter=True, render_filter=ctx.text()),
        ColumnDef(
            "avocat",
            "Avocat",
            accessor=lambda row: person_name(row.get("avocat"), fallback="—"),
            enable_filter=True,
            render_filter=ctx.text(),
        ),
        ColumnDef("montantHT", "Montant HT"),
        ColumnDef("dateRetourSigne", "Date retour signée", enable_filter=True, render_filter=ctx.dates()),
        ColumnDef("dateCreation", "Date création", enable_filter=True, render_filter=ctx.dates()),
        ColumnDef(
            "creePar",
            "Créé par",
            accessor=lambda row: person_name(row.get("creePar"), fallback="—"),
            enable_filter=True,
            render_filter=ctx.choices("utilisateurs"),
        ),
        ColumnDef(
            "modifiePar",
            "Modifié par",
            accessor=lambda row: person_name(row.get("modifiePar"), fallback="Non modifié"),
            enable_filter=True,
            render_filter=ctx.choices("utilisateurs"),
            visible=False,
        ),
    ]


def decisions_columns(ctx: FilterContext) -> list[ColumnDef]:
    return [
        ColumnDef("numero", "N° Décision", enable_filter=True, render_filter=ctx.text()),
        ColumnDef("dossier", "Dossier", accessor=nested("dossier", "numero"), enable_filter=True, render_filter=ctx.text()),
        ColumnDef("type", "Type", enable_filter=True, render_filter=ctx.choices("types", fallback=("AJ", "AJE", "PJ", "REJET"))),
        ColumnDef("typeVictMec", "Partie", enable_filter=True, render_filter=ctx.choices(fallback=("VICTIME", "MIS_EN_CAUSE"))),
        ColumnDef(
            "avis_hierarchiques",
            "Avis hiérarchiques",
            accessor=lambda row: bool(row.get("avis_hierarchiques")),
            enable_sorting=False,
            enable_filter=True,
            render_filter=ctx.choices(fallback=("Oui", "Non")),
        ),
        ColumnDef("dateSignature", "Date signature", enable_filter=True, render_filter=ctx.dates()),
        ColumnDef("dateEnvoi", "Date envoi", enable_filter=True, render_filter=ctx.dates()),
        ColumnDef(
            "creePar",
            "Créé par",
            accessor=lambda row: person_name(row.get("creePar"), fallback="—"),
            enable_filter=True,
            render_filter=ctx.choices("utilisateurs"),
        ),
        ColumnDef("createdAt", "Date création", enable_filter=True, render_filter=ctx.dates()),
    ]


def paiements_columns(ctx: FilterContext) -> list[ColumnDef]:
    return [
        ColumnDef("numero", "N°", enable_filter=True, render_filter=ctx.text()),
        ColumnDef("dossier", "Dossier", accessor=nested("dossier", "numero"), enable_filter=True, render_filter=ctx.text()),
        ColumnDef("sgami", "SGAMI", accessor=nested("sgami", "nom"), enable_filter=True, render_filter=ctx.text()),
        ColumnDef(
            "qualiteBeneficiaire",
            "Qualité bénéficiaire",
            enable_filter=True,
            render_filter=ctx.choices("qualitesBeneficiaire", fallback=("Avocat", "Commissaire de justice", "Militaire", "Autre")),
        ),
        ColumnDef("identiteBeneficiaire", "Bénéficiaire", enable_filter=True, render_filter=ctx.text()),
        ColumnDef("montantHT", "Montant HT"),
        ColumnDef("montantTTC", "Montant TTC"),
        ColumnDef("facture", "N° Facture", enable_filter=True, render_filter=ctx.text()),
        ColumnDef("dateServiceFait", "Date service fait", enable_filter=True, render_filter=ctx.dates()),
        ColumnDef(
            "pceDetaille",
            "Code PCE",
            accessor=nested("pce", "pceDetaille", fallback="Non défini"),
            enable_filter=True,
            render_filter=ctx.text(),
        ),
        ColumnDef("createdAt", "Date création", enable_filter=True, render_filter=ctx.dates()),
        ColumnDef(
            "creePar",
            "Créé par",
            accessor=lambda row: person_name(row.get("creePar"), fallback="—"),
            enable_filter=True,
            render_filter=ctx.choices("utilisateurs"),
        ),
    ]


TABLES: dict[str, TableDefinition] = {
    "demandes": TableDefinition(
        key="demandes",
        title="Demandes",
        endpoint="demandes",
        build_params=build_demandes_params,
        adapter=demandes_adapter,
        columns=demandes_columns,
        page_size=50,
        initial_sorting=(SortItem("dateReception", desc=True),),
        empty_message="Aucune demande trouvée",
        has_facets=True,
    ),
    "dossiers": TableDefinition(
        key="dossiers",
        title="Dossiers",
        endpoint="dossiers",
        build_params=build_dossiers_params,
        adapter=dossiers_adapter,
        columns=dossiers_columns,
        page_size=25,
        initial_sorting=(SortItem("createdAt", desc=True),),
        empty_message="Aucun dossier trouvé",
        has_facets=True,
    ),
    "conventions": TableDefinition(
        key="conventions",
        title="Conventions",
        endpoint="conventions",
        build_params=build_conventions_params,
        adapter=conventions_adapter,
        columns=conventions_columns,
        page_size=25,
        initial_sorting=(SortItem("numero", desc=True),),
        has_facets=True,
    ),
    "decisions": TableDefinition(
        key="decisions",
        title="Décisions",
        endpoint="decisions",
        build_params=build_decisions_params,
        adapter=decisions_adapter,
        columns=decisions_columns,
        page_size=25,
        initial_sorting=(SortItem("createdAt", desc=True),),
        has_facets=True,
    ),
    "paiements": TableDefinition(
        key="paiements",
        title="Paiements",
        endpoint="paiements",
        build_params=build_paiements_params,
        adapter=paiements_adapter,
        columns=paiements_columns,
        initial_sorting=(SortItem("createdAt", desc=True),),
        has_facets=True,
    ),
}


def get_definition(key: str) -> TableDefinition:
    try:
        return TABLES[key]
    except KeyError as exc:
        raise ValueError(f"Table inconnue: {key!r} (disponibles: {', '.join(sorted(TABLES))})") from exc


def open_table(
    definition: TableDefinition,
    listing_client: ListingClient,
    *,
    state: TableState | None = None,
    cache: ListingCache | None = None,
    executor: Executor | None = None,
    page_size: int | None = None,
) -> ServerTable:
    state = state or TableState(page_size=page_size or definition.page_size, sorting=definition.initial_sorting)
    return ServerTable(
        name=definition.key,
        endpoint=definition.endpoint,
        query_key=definition.query_key,
        build_params=definition.build_params,
        transform=definition.adapter,
        listing_client=listing_client,
        state=state,
        cache=cache,
        executor=executor,
    )


def load_facets(definition: TableDefinition, listing_client: ListingClient, logger: logging.Logger | None = None) -> Facets:
    """Filter options of a table; an unavailable facets route leaves the multi-selects on their fallbacks."""
    if not definition.has_facets:
        return Facets()
    try:
        return listing_client.get_facets(definition.endpoint)
    except ApiError as error:
        log_action(
            logger or get_logger("dossiers_control.tables"),
            module=definition.key,
            action="facets",
            outcome="error",
            trace_id=error.trace_id,
            level=logging.WARNING,
            code=error.code,
            status_code=error.status_code,
        )
        return Facets()
