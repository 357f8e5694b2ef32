# =============================================================================
# care_core/state/session.py
# Session-State Glue Between Streamlit Reruns and the Data Layer
# =============================================================================
"""
Streamlit reruns the page script on every interaction, so the bootstrap
result is mirrored into `st.session_state` once and reused afterwards.
Pages read entity lists from session state and call the data service for
mutations, then `refresh_state()`.
"""

import streamlit as st

from care_core.offline import get_data_service

# Central registry for session-state keys used across the app.
SESSION_DEFAULTS = {
    "bootstrapped": False,
    "bootstrap_state": None,
    "identity": None,
    "is_local": False,
    "medications": [],
    "notifications": [],
    "health_records": [],
    "documents": [],
    "family_links": [],
    "load_failures": [],
}


def _service(service=None):
    return service or get_data_service()


def sync_state(service=None):
    """Copy the data service's current snapshot into session state."""
    service = _service(service)
    snapshot = service.snapshot

    st.session_state["bootstrap_state"] = service.state.value
    st.session_state["identity"] = snapshot.identity
    st.session_state["is_local"] = service.is_local
    for namespace in ("medications", "notifications", "health_records", "documents", "family_links"):
        st.session_state[namespace] = list(snapshot.get(namespace))
    st.session_state["load_failures"] = list(snapshot.failed)


def init_state(service=None):
    """Initialize session state with defaults and bootstrap once per session."""
    for k, v in SESSION_DEFAULTS.items():
        if k not in st.session_state:
            st.session_state[k] = list(v) if isinstance(v, list) else v

    if not st.session_state.get("bootstrapped", False):
        service = _service(service)
        service.bootstrap()
        sync_state(service)
        st.session_state["bootstrapped"] = True


def refresh_state(service=None):
    """Reload data after a mutation or a pull-to-refresh."""
    service = _service(service)
    service.refresh()
    sync_state(service)


def sign_out(service=None):
    """Sign out and reset every session-state key to its default."""
    _service(service).sign_out()
    for k, v in SESSION_DEFAULTS.items():
        st.session_state[k] = list(v) if isinstance(v, list) else v
