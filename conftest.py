import os
import importlib
import pytest

import database
from library import Library

@pytest.fixture
def db_file(tmp_path, request):
    # Unique document file per test
    return str(tmp_path / f"test_{request.node.name}.json")

@pytest.fixture
def lib(db_file, monkeypatch):
    # Point module-level defaults at the per-test file too, so the CLI uses it
    monkeypatch.setattr(database, "DATABASE_FILE", db_file)
    lib = Library(db_file=db_file)
    return lib

@pytest.fixture
def client(db_file):
    from fastapi.testclient import TestClient

    os.environ["LIBRARY_DB_FILE"] = db_file
    import api as api_module
    # Reload api so its global Library() instance uses the test-specific file
    importlib.reload(api_module)

    with TestClient(api_module.app) as test_client:
        try:
            yield test_client
        finally:
            os.environ.pop("LIBRARY_DB_FILE", None)
