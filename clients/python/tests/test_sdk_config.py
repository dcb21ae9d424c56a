from __future__ import annotations

import pytest

from marbete_client_sdk.config import ConfigError, load_config


def test_load_config_requires_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MARBETE_API_BASE_URL", raising=False)
    monkeypatch.delenv("MARBETE_API_BASE_URL_DEV", raising=False)
    monkeypatch.delenv("MARBETE_ENV", raising=False)
    with pytest.raises(ConfigError):
        load_config()


def test_load_config_profile(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MARBETE_ENV", "staging")
    monkeypatch.setenv("MARBETE_API_BASE_URL_STAGING", "https://staging.example.com/")
    cfg = load_config()
    assert cfg.api_base_url == "https://staging.example.com"
    assert cfg.env_name == "staging"


def test_load_config_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("MARBETE_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("MARBETE_DATA_DIR", str(tmp_path))
    for key in ("MARBETE_SYNC_CHUNK_SIZE", "MARBETE_BATCH_LIMIT", "MARBETE_CATALOG_PAGE_SIZE", "MARBETE_RETRIES"):
        monkeypatch.delenv(key, raising=False)

    cfg = load_config()

    assert cfg.sync_chunk_size == 500
    assert cfg.batch_limit == 800
    assert cfg.catalog_page_size == 1000
    assert cfg.retries == 3
    assert cfg.data_dir == str(tmp_path)
    assert cfg.local_db_url.endswith("marbete_local.db")


@pytest.mark.parametrize(
    ("key", "value", "snippet"),
    [
        ("MARBETE_TIMEOUT_SECONDS", "0", "MARBETE_TIMEOUT_SECONDS"),
        ("MARBETE_RETRIES", "-1", "MARBETE_RETRIES"),
        ("MARBETE_RETRY_BACKOFF_SECONDS", "-0.1", "MARBETE_RETRY_BACKOFF_SECONDS"),
        ("MARBETE_MAX_CONNECTIONS", "0", "MARBETE_MAX_CONNECTIONS"),
        ("MARBETE_SYNC_CHUNK_SIZE", "0", "MARBETE_SYNC_CHUNK_SIZE"),
        ("MARBETE_BATCH_LIMIT", "0", "MARBETE_BATCH_LIMIT"),
        ("MARBETE_CATALOG_PAGE_SIZE", "abc", "MARBETE_CATALOG_PAGE_SIZE"),
    ],
)
def test_load_config_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch,
    key: str,
    value: str,
    snippet: str,
) -> None:
    monkeypatch.setenv("MARBETE_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError, match=snippet):
        load_config()
