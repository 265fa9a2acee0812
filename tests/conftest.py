"""Shared fixtures: isolated storage engines, repositories and an API client."""
import pytest
from fastapi.testclient import TestClient

from batchreview.app import app
from batchreview.db import StorageEngine, get_storage_engine
from batchreview.repositories import AssetRepository, BatchRepository, CommentRepository
from batchreview.storage import LocalStorageAdapter, get_storage_adapter
from batchreview.workflow import ReviewWorkflow
from tests.fixtures.generate_sample import generate_sample


@pytest.fixture
def db_path(tmp_path):
    """Snapshot file location inside a per-test directory."""
    return tmp_path / "data" / "reviews.db"


@pytest.fixture
def storage_engine(db_path):
    """Initialized storage engine backed by a fresh snapshot file."""
    engine = StorageEngine(db_path)
    engine.initialize()
    yield engine
    engine.close()


@pytest.fixture
def batches(storage_engine):
    return BatchRepository(storage_engine)


@pytest.fixture
def assets(storage_engine):
    return AssetRepository(storage_engine)


@pytest.fixture
def comments(storage_engine):
    return CommentRepository(storage_engine)


@pytest.fixture
def workflow(assets):
    return ReviewWorkflow(assets)


@pytest.fixture
def reopen(db_path):
    """Open a second engine on the same snapshot, as after a restart."""
    opened = []

    def _reopen():
        engine = StorageEngine(db_path)
        engine.initialize()
        opened.append(engine)
        return engine

    yield _reopen
    for engine in opened:
        engine.close()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def api_app(storage_engine, upload_dir):
    """The app wired to the test storage engine and upload directory."""
    app.dependency_overrides[get_storage_engine] = lambda: storage_engine
    app.dependency_overrides[get_storage_adapter] = lambda: LocalStorageAdapter(str(upload_dir))
    yield app

    # Cleanup
    app.dependency_overrides.clear()


@pytest.fixture
def test_client(api_app):
    """Create test client against the wired app."""
    return TestClient(api_app)


@pytest.fixture
def sample_png():
    return generate_sample("PNG")


@pytest.fixture
def sample_jpeg():
    return generate_sample("JPEG")
