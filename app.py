# =============================================================================
# app.py
# HealthCare+ - Streamlit Entry Point
# =============================================================================
from __future__ import annotations
import streamlit as st

from care_core.errors import ErrorContext
from care_core.logging import setup_logging
from care_core.offline import get_data_service
from care_core.state import init_state, refresh_state, sign_out, sync_state

# ============================================================================
# PAGE CONFIGURATION
# ============================================================================
st.set_page_config(
    page_title="HealthCare+",
    page_icon="💊",
    layout="wide",
)

setup_logging()
service = get_data_service()
init_state(service)

identity = st.session_state["identity"]

# ============================================================================
# SIDEBAR
# ============================================================================
with st.sidebar:
    if identity is not None:
        st.markdown(f"**{identity.name}**  \n{identity.email}")
    if st.session_state["is_local"]:
        st.info("Demo mode: data is stored on this device only.")
    if st.session_state["load_failures"]:
        st.caption("Showing saved data for: " + ", ".join(st.session_state["load_failures"]))
    if st.button("Refresh", use_container_width=True):
        refresh_state(service)
        st.rerun()
    if st.button("Sign out", use_container_width=True):
        sign_out(service)
        st.rerun()

# ============================================================================
# MEDICATIONS
# ============================================================================
st.title("My Medications")

for med in st.session_state["medications"]:
    col1, col2, col3 = st.columns([3, 1, 1])
    col1.markdown(f"**{med.name}** - {med.dosage}, {med.frequency}")
    col2.metric("Adherence", f"{med.adherence}%")
    if col3.button("Taken", key=f"take_{med.id}"):
        with ErrorContext("Recording dose"):
            service.medications.record_taken(med.id)
        refresh_state(service)
        st.rerun()

# ============================================================================
# NOTIFICATIONS
# ============================================================================
st.subheader("Notifications")

for note in st.session_state["notifications"]:
    col1, col2 = st.columns([4, 1])
    col1.markdown(f"{'' if note.read else '🔵 '}**{note.title}**  \n{note.message}")
    if not note.read and col2.button("Mark read", key=f"read_{note.id}"):
        with ErrorContext("Marking notification read"):
            updated = service.notifications.mark_read(note.id)
            if updated is not None:
                service.snapshot.replace("notifications", updated)
        sync_state(service)
        st.rerun()
