from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv
from platformdirs import user_data_dir

APP_NAME = "marbete"
APP_AUTHOR = "Marbete"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 20
    verify_ssl: bool = True
    sync_chunk_size: int = 500
    batch_limit: int = 800
    catalog_page_size: int = 1000
    data_dir: str = ""

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()

    @property
    def local_db_url(self) -> str:
        return f"sqlite+pysqlite:///{os.path.join(self.data_dir, 'marbete_local.db')}"


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


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


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("MARBETE_ENV") or "dev").strip()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(f"MARBETE_API_BASE_URL_{env_key}") or "").strip()
        or (os.getenv("MARBETE_API_BASE_URL") or "").strip()
    )

    timeout_seconds = _read_float("MARBETE_TIMEOUT_SECONDS", "10")
    _validate(timeout_seconds > 0, f"Invalid MARBETE_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}")

    connect_timeout_seconds = _read_float("MARBETE_CONNECT_TIMEOUT_SECONDS", str(min(timeout_seconds, 5.0)))
    _validate(
        connect_timeout_seconds > 0,
        f"Invalid MARBETE_CONNECT_TIMEOUT_SECONDS: expected > 0, got {connect_timeout_seconds}",
    )

    read_timeout_seconds = _read_float(
        "MARBETE_READ_TIMEOUT_SECONDS",
        str(max(timeout_seconds, connect_timeout_seconds)),
    )
    _validate(
        read_timeout_seconds > 0,
        f"Invalid MARBETE_READ_TIMEOUT_SECONDS: expected > 0, got {read_timeout_seconds}",
    )

    retries = _read_int("MARBETE_RETRIES", "3")
    _validate(retries >= 0, f"Invalid MARBETE_RETRIES: expected >= 0, got {retries}")

    retry_backoff_seconds = _read_float("MARBETE_RETRY_BACKOFF_SECONDS", "0.3")
    _validate(
        retry_backoff_seconds >= 0,
        f"Invalid MARBETE_RETRY_BACKOFF_SECONDS: expected >= 0, got {retry_backoff_seconds}",
    )

    max_connections = _read_int("MARBETE_MAX_CONNECTIONS", "20")
    _validate(max_connections >= 1, f"Invalid MARBETE_MAX_CONNECTIONS: expected >= 1, got {max_connections}")

    sync_chunk_size = _read_int("MARBETE_SYNC_CHUNK_SIZE", "500")
    _validate(sync_chunk_size >= 1, f"Invalid MARBETE_SYNC_CHUNK_SIZE: expected >= 1, got {sync_chunk_size}")

    batch_limit = _read_int("MARBETE_BATCH_LIMIT", "800")
    _validate(batch_limit >= 1, f"Invalid MARBETE_BATCH_LIMIT: expected >= 1, got {batch_limit}")

    catalog_page_size = _read_int("MARBETE_CATALOG_PAGE_SIZE", "1000")
    _validate(
        catalog_page_size >= 1,
        f"Invalid MARBETE_CATALOG_PAGE_SIZE: expected >= 1, got {catalog_page_size}",
    )

    verify_ssl = _coerce_bool(os.getenv("MARBETE_VERIFY_SSL"), True)
    data_dir = (os.getenv("MARBETE_DATA_DIR") or "").strip() or user_data_dir(APP_NAME, APP_AUTHOR)

    values = {"MARBETE_API_BASE_URL": api_base_url}
    _require(values, ["MARBETE_API_BASE_URL"])

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        max_connections=max_connections,
        verify_ssl=verify_ssl,
        sync_chunk_size=sync_chunk_size,
        batch_limit=batch_limit,
        catalog_page_size=catalog_page_size,
        data_dir=data_dir,
    )
