"""Pytest fixtures for icloudpy tests."""
import pytest

from fakes import FakeHTTPSession, account_document

from icloudpy.core.api import APIConfig, AsyncAPIClient, AccountState
from icloudpy.core.session import CookieStore, MemorySession, SessionData


@pytest.fixture
def config():
    return APIConfig.default()


@pytest.fixture
def http():
    return FakeHTTPSession()


@pytest.fixture
def storage():
    return MemorySession()


@pytest.fixture
def cookies():
    return CookieStore()


@pytest.fixture
def session_data():
    data = SessionData()
    data.ensure_client_id()
    return data


@pytest.fixture
def api(config, session_data, storage, cookies, http):
    """Transport wired to the fake HTTP session."""
    return AsyncAPIClient(config, session_data, storage, cookies, http_session=http)


@pytest.fixture
def signed_in_api(api):
    """Transport holding the account state of a signed-in user."""
    api.account = AccountState.from_response(account_document())
    return api
