# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from datetime import datetime, timedelta
from typing import Dict, Optional
from unittest.mock import MagicMock

from care_core.config import HealthcareConfig
from care_core.models import Identity, Session
from care_core.offline.local_store import LocalStore, MemoryKeyValueStore
from care_core.offline.request_executor import RequestExecutor
from care_core.offline.session_resolver import AuthProvider, SessionContext


# =============================================================================
# CLOCK & IDENTITIES
# =============================================================================

class TickingClock:
    """Deterministic clock; every call advances by one second."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 8, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current += timedelta(seconds=1)
        return now


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def remote_identity():
    return Identity(id="user-1", email="pat@example.com", name="Pat Patient")


@pytest.fixture
def remote_session(remote_identity):
    return Session(access_token="remote-token", identity=remote_identity, local=False)


# =============================================================================
# CONFIG, STORE, CONTEXT
# =============================================================================

@pytest.fixture
def config(tmp_path):
    """Config pointing at a (mocked) backend"""
    return HealthcareConfig(
        supabase_url="https://test-project.supabase.co",
        anon_key="anon-key",
        local_db_path=tmp_path / "healthcare.db",
    )


@pytest.fixture
def unconfigured_config(tmp_path):
    """Config with no backend at all"""
    return HealthcareConfig(local_db_path=tmp_path / "healthcare.db")


@pytest.fixture
def memory_store():
    return LocalStore(MemoryKeyValueStore())


@pytest.fixture
def context():
    return SessionContext()


# =============================================================================
# MOCK FIXTURES
# =============================================================================

def make_response(status_code: int, body=None, invalid_json: bool = False):
    """Build a mock requests.Response"""
    response = MagicMock()
    response.status_code = status_code
    if invalid_json:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def http():
    """Mock requests.Session; tests set http.request.return_value"""
    session = MagicMock()
    session.request.return_value = make_response(500, {"error": "not stubbed"})
    return session


@pytest.fixture
def respond(http):
    """Stub the next backend response(s)"""
    def _respond(status_code: int, body=None, invalid_json: bool = False):
        http.request.return_value = make_response(status_code, body, invalid_json)
        return http
    return _respond


@pytest.fixture
def route(http):
    """Route responses by URL suffix: route({"/medications": (200, {...})})"""
    def _route(table: Dict[str, tuple]):
        def _request(method, url, **kwargs):
            for suffix, (status_code, body) in table.items():
                if url.endswith(suffix):
                    return make_response(status_code, body)
            return make_response(500, {"error": f"unrouted {method} {url}"})
        http.request.side_effect = _request
        return http
    return _route


@pytest.fixture
def executor(config, context, http):
    return RequestExecutor(config, context, http)


class FakeAuthProvider(AuthProvider):
    """In-memory auth provider with a fixed user table."""

    def __init__(self, users: Optional[Dict[str, Session]] = None):
        self.users = users or {}
        self.passwords: Dict[str, str] = {}
        self.current: Optional[Session] = None
        self.fail = False
        self.sign_out_calls = 0

    def add_user(self, session: Session, password: str) -> None:
        self.users[session.identity.email] = session
        self.passwords[session.identity.email] = password

    def get_session(self) -> Optional[Session]:
        if self.fail:
            raise ConnectionError("auth service down")
        return self.current

    def sign_in_with_password(self, email: str, password: str) -> Optional[Session]:
        if self.fail:
            raise ConnectionError("auth service down")
        if self.passwords.get(email) != password:
            return None
        self.current = self.users[email]
        return self.current

    def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.fail:
            raise ConnectionError("auth service down")
        self.current = None


@pytest.fixture
def auth_provider():
    return FakeAuthProvider()


@pytest.fixture
def signed_in(auth_provider, remote_session, context):
    """Remote session active in both the provider and the context"""
    auth_provider.add_user(remote_session, "s3cret-pass")
    auth_provider.current = remote_session
    context.set(remote_session)
    return remote_session


@pytest.fixture
def data_service(config, memory_store, auth_provider, http, clock):
    """Fully wired HealthcareDataService with mocked I/O"""
    from care_core.offline.data_service import HealthcareDataService
    return HealthcareDataService(
        config=config,
        store=memory_store,
        provider=auth_provider,
        http=http,
        clock=clock,
    )


@pytest.fixture
def mock_streamlit(monkeypatch):
    """Mock Streamlit for testing"""
    mock_st = MagicMock()
    mock_st.session_state = {}
    mock_st.cache_data = lambda f: f
    mock_st.cache_resource = lambda f: f

    monkeypatch.setattr("care_core.errors.handlers.st", mock_st)
    monkeypatch.setattr("care_core.state.session.st", mock_st)
    return mock_st
