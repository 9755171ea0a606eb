from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient

from app.rfidpos.core.config import Settings
from app.rfidpos.core.metrics import metrics
from app.rfidpos.db.session import build_session_factory

ROOT = Path(__file__).resolve().parents[1]


def _run_migrations(database_url: str):
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return f"sqlite+pysqlite:///{tmp_path / 'test.db'}"


@pytest.fixture()
def session_factory(database_url: str):
    _run_migrations(database_url)
    factory = build_session_factory(database_url)
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture()
def app_settings(database_url: str) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=database_url,
        TAX_RATE="8.5",
        KILL_TAG_AFTER_SALE=False,
        SERIAL_PORT="",
    )


@pytest.fixture()
def client(session_factory, app_settings):
    from app.main import create_app

    app = create_app(session_factory=session_factory, app_settings=app_settings)
    with TestClient(app) as client:
        yield client
