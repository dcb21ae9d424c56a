import importlib
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient


def _migrate(database_url: str) -> None:
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def _build_app():
    import app.main as main
    import app.marbete.core.config as config
    import app.marbete.db.session as session

    importlib.reload(config)
    importlib.reload(session)
    importlib.reload(main)
    return main.create_app(), session


@pytest.fixture()
def database_url(tmp_path: Path, monkeypatch) -> str:
    url = f"sqlite+pysqlite:///{tmp_path / 'marbete.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    return url


@pytest.fixture()
def client(database_url: str):
    from app.marbete.core.metrics import metrics

    _migrate(database_url)
    app, session = _build_app()
    metrics.reset()

    with TestClient(app) as test_client:
        yield test_client

    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.marbete.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
