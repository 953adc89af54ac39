from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from dossiers_client_sdk.config import ConfigError

DEFAULT_PAGE_SIZE_OPTIONS = (10, 20, 50, 100, 200)


@dataclass(frozen=True)
class AppConfig:
    debounce_ms: int
    cache_ttl_seconds: float
    page_size_options: tuple[int, ...]
    fetch_workers: int

    @classmethod
    def from_env(cls, env_file: str = ".env") -> "AppConfig":
        load_dotenv(env_file)
        config = cls(
            debounce_ms=_read_int("DOSSIERS_DEBOUNCE_MS", "500"),
            cache_ttl_seconds=_read_float("DOSSIERS_CACHE_TTL_SECONDS", "30"),
            page_size_options=_parse_sizes(os.getenv("DOSSIERS_PAGE_SIZE_OPTIONS", "")),
            fetch_workers=_read_int("DOSSIERS_FETCH_WORKERS", "2"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.debounce_ms < 0:
            raise ConfigError("DOSSIERS_DEBOUNCE_MS doit être >= 0")
        if self.cache_ttl_seconds <= 0:
            raise ConfigError("DOSSIERS_CACHE_TTL_SECONDS doit être > 0")
        if not self.page_size_options or min(self.page_size_options) < 1:
            raise ConfigError("DOSSIERS_PAGE_SIZE_OPTIONS doit lister des tailles >= 1")
        if self.fetch_workers < 1:
            raise ConfigError("DOSSIERS_FETCH_WORKERS doit être >= 1")


def _parse_sizes(raw: str) -> tuple[int, ...]:
    if not raw.strip():
        return DEFAULT_PAGE_SIZE_OPTIONS
    try:
        sizes = sorted({int(part) for part in raw.split(",") if part.strip()})
    except ValueError as exc:
        raise ConfigError(f"DOSSIERS_PAGE_SIZE_OPTIONS invalide: {raw!r}") from exc
    return tuple(sizes)


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} invalide: entier attendu, reçu {raw!r}") from exc


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} invalide: nombre attendu, reçu {raw!r}") from exc
