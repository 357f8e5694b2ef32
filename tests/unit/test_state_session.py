# =============================================================================
# tests/unit/test_state_session.py
# Unit Tests for the Streamlit Session-State Glue
# =============================================================================

from unittest.mock import MagicMock

from care_core.state import SESSION_DEFAULTS, init_state, refresh_state, sign_out


class TestSessionState:

    def test_init_bootstraps_once(self, mock_streamlit, data_service):
        data_service.bootstrap = MagicMock(wraps=data_service.bootstrap)

        init_state(data_service)
        init_state(data_service)

        data_service.bootstrap.assert_called_once()
        state = mock_streamlit.session_state
        assert state["bootstrapped"]
        assert state["is_local"]
        assert state["bootstrap_state"] == "ready"
        assert len(state["medications"]) == 2

    def test_refresh_picks_up_mutations(self, mock_streamlit, data_service):
        init_state(data_service)

        data_service.medications.record_taken("1")
        refresh_state(data_service)

        meds = {m.id: m for m in mock_streamlit.session_state["medications"]}
        assert meds["1"].adherence == 87

    def test_sign_out_resets_defaults(self, mock_streamlit, data_service):
        init_state(data_service)

        sign_out(data_service)

        state = mock_streamlit.session_state
        for key, default in SESSION_DEFAULTS.items():
            assert state[key] == default
        assert data_service.session is None
