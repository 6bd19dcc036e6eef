import pytest
from fastapi.testclient import TestClient

from portal_backend.app.core.config import StorageConfig
from portal_backend.app.main import create_app


@pytest.fixture
def public_root(tmp_path):
    root = tmp_path / "public"
    (root / "uploads").mkdir(parents=True)
    return root


@pytest.fixture
def uploads_root(public_root):
    return public_root / "uploads"


@pytest.fixture
def config(public_root):
    return StorageConfig(public_root=str(public_root))


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as c:
        yield c
