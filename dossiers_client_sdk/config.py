from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_BASE_URL = "http://localhost:3001/api/"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class SDKConfig:
    base_url: str
    timeout_seconds: float
    verify_ssl: bool
    retry_max_attempts: int
    retry_backoff_ms: int
    auth_token: str | None = None

    @classmethod
    def from_env(cls, env_file: str = ".env") -> "SDKConfig":
        load_dotenv(env_file)
        base_url = _normalize_base_url(os.getenv("DOSSIERS_API_URL", DEFAULT_BASE_URL))
        timeout_seconds = _read_float("DOSSIERS_TIMEOUT_SECONDS", "30")
        if timeout_seconds <= 0:
            raise ConfigError(f"Invalid DOSSIERS_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}")
        verify_ssl = parse_bool(os.getenv("DOSSIERS_VERIFY_SSL", "true"), default=True)
        retry_max_attempts = max(1, _read_int("DOSSIERS_RETRY_MAX_ATTEMPTS", "3"))
        retry_backoff_ms = max(0, _read_int("DOSSIERS_RETRY_BACKOFF_MS", "250"))
        auth_token = (os.getenv("DOSSIERS_AUTH_TOKEN") or "").strip() or None
        return cls(
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            verify_ssl=verify_ssl,
            retry_max_attempts=retry_max_attempts,
            retry_backoff_ms=retry_backoff_ms,
            auth_token=auth_token,
        )


def _normalize_base_url(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        return DEFAULT_BASE_URL
    return normalized if normalized.endswith("/") else f"{normalized}/"


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def parse_bool(value: str | bool | None, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default

    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default
