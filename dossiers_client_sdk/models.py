from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class PageResult(BaseModel):
    """One normalized page of a listing endpoint."""

    model_config = ConfigDict(frozen=True)

    data: list[dict[str, Any]] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page_count: int = Field(default=0, ge=0)


class FacetEntry(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | int | None = None
    full_name: str | None = Field(default=None, alias="fullName")
    nom: str | None = None

    @property
    def label(self) -> str:
        return (self.full_name or self.nom or "").strip()


class Facets(BaseModel):
    """Distinct values per column, as returned by ``GET /<entity>/facets``.

    Keys differ per endpoint (``types``, ``grades``, ``avocats``...), so they
    are kept as extra fields and read through :meth:`options`.
    """

    model_config = ConfigDict(extra="allow")

    def options(self, key: str) -> list[str]:
        raw = (self.model_extra or {}).get(key)
        if not isinstance(raw, list):
            return []
        labels: list[str] = []
        for item in raw:
            if isinstance(item, str):
                label = item.strip()
            elif isinstance(item, dict):
                try:
                    label = FacetEntry.model_validate(item).label
                except ValidationError:
                    continue
            else:
                continue
            if label and label not in labels:
                labels.append(label)
        return labels
