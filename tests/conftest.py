"""Root pytest configuration for all tests.

Provides settings and an in-memory Confluence for publisher tests.
"""

import logging

import pytest

from confluence_publisher.settings.loaders import SettingsLoader, static_settings
from tests.fixtures.fake_confluence import FakeConfluenceAPI
from tests.fixtures.line_transformer import LineTransformer
from tests.fixtures.settings import MY_ACCOUNT_ID, SPACE_KEY, TOP_PAGE_ID, settings_values

# Suppress noisy ERROR logs from atlassian-python-api when pages don't exist.
logging.getLogger("atlassian").setLevel(logging.WARNING)


@pytest.fixture
def settings_loader(tmp_path):
    """SettingsLoader publishing tmp_path/docs below TOP_PAGE_ID."""
    return SettingsLoader([static_settings(settings_values(tmp_path))])


@pytest.fixture
def settings(settings_loader):
    return settings_loader.load()


@pytest.fixture
def fake_api():
    """In-memory Confluence seeded with the top page."""
    api = FakeConfluenceAPI(account_id=MY_ACCOUNT_ID)
    api.add_page("Top", page_id=TOP_PAGE_ID, space_key=SPACE_KEY, last_updated_by="someone-else")
    return api


@pytest.fixture
def transformer():
    return LineTransformer()
