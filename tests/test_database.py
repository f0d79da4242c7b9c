import pytest

from storefront.database import database_url, make_engine


def test_database_url_required(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(RuntimeError):
        database_url()


def test_database_url_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./other.db")
    assert database_url() == "sqlite:///./other.db"


def test_sqlite_engine_is_shared_across_threads():
    engine = make_engine("sqlite://")
    try:
        with engine.connect() as conn:
            assert conn.dialect.name == "sqlite"
    finally:
        engine.dispose()
