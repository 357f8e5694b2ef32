# =============================================================================
# care_core/state/__init__.py
# Streamlit Session-State Glue
# =============================================================================

from .session import SESSION_DEFAULTS, init_state, sync_state, refresh_state, sign_out

__all__ = ["SESSION_DEFAULTS", "init_state", "sync_state", "refresh_state", "sign_out"]
