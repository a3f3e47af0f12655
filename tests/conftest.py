import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from fastapi_datagrid import DataGrid, GridDefaults
from fastapi_datagrid.config import get_settings
from fastapi_datagrid.dependencies import get_datagrid
from grid_app import create_app


@pytest.fixture(autouse=True)
def clear_cached_settings():
    get_settings.cache_clear()
    get_datagrid.cache_clear()
    yield
    get_settings.cache_clear()
    get_datagrid.cache_clear()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'grid.db'}"


@pytest.fixture
def client(database_url):
    app = create_app(database_url, DataGrid(GridDefaults(per_page=5, per_page_limit={"min": 2, "max": 50})))
    with TestClient(app) as test_client:
        yield test_client
