import pytest
from fastapi.testclient import TestClient

from contact_store import ContactStore
from db_setup import init_db
from identity_resolver import IdentityResolver


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "contacts.db")
    init_db(path)
    return path


@pytest.fixture
def store(db_path) -> ContactStore:
    return ContactStore(db_path)


@pytest.fixture
def resolver(store) -> IdentityResolver:
    return IdentityResolver(store)


@pytest.fixture
def client(tmp_path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.delenv("MERGE_POLICY", raising=False)

    from app_config import get_settings

    get_settings.cache_clear()

    from main import app

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()
