from __future__ import annotations

import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "marbete_client_sdk" / "src"

sys.path.insert(0, str(SDK_SRC))

from marbete_client_sdk.local_db import LocalDatabase  # noqa: E402


@pytest.fixture()
def local_db(tmp_path: Path):
    db = LocalDatabase.at_path(tmp_path / "device.db")
    yield db
    db.dispose()
