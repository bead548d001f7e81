"""Pytest configuration and shared fixtures."""
import pytest
import pytest_asyncio

from livebase import Sdk
import livebase.config as config_module
from mock_host import CLIENT_FIELD_ID, DESIGN_PROJECTS_ID, MockHost


@pytest.fixture(autouse=True)
def reset_livebase_config():
    """Restore default settings after each test."""
    original = config_module._sync_config
    config_module.reset_sync_config()

    yield

    config_module._sync_config = original


@pytest.fixture
def host():
    """Provide a mock host over the project tracker base."""
    return MockHost()


@pytest.fixture
def sdk(host):
    """Provide an Sdk connected to the mock host."""
    return Sdk(host)


@pytest.fixture
def design_projects(sdk):
    return sdk.base.get_table_by_id(DESIGN_PROJECTS_ID)


@pytest.fixture
def client_field(design_projects):
    return design_projects.get_field_by_id(CLIENT_FIELD_ID)


@pytest_asyncio.fixture
async def loaded_cursor(sdk):
    """Provide the Sdk's cursor with its cursor data loaded."""
    await sdk.cursor.load_data_async()
    assert sdk.cursor.is_data_loaded
    return sdk.cursor
