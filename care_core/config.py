# =============================================================================
# care_core/config.py
# Runtime Configuration for the HealthCare+ Data Layer
# =============================================================================
"""
Configuration loading.

Backend credentials come from Streamlit secrets (.streamlit/secrets.toml):

    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

with environment variables as a fallback. An empty backend URL is a valid
configuration: the app then runs entirely on the local store.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException

from care_core.errors import ConfigurationError
from care_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FUNCTION_SLUG = "make-server-05eeb3cf"
DEFAULT_DB_PATH = Path("local_data") / "healthcare.db"


@dataclass
class HealthcareConfig:
    """Settings shared by the executor, the local store and the services."""
    supabase_url: str = ""
    anon_key: str = ""
    function_slug: str = DEFAULT_FUNCTION_SLUG
    request_timeout: float = 5.0
    local_db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    notification_cap: int = 50
    adherence_increment: int = 2

    def __post_init__(self):
        self.supabase_url = (self.supabase_url or "").rstrip("/")
        self.local_db_path = Path(self.local_db_path)
        if self.request_timeout <= 0:
            raise ConfigurationError(
                "request_timeout must be positive",
                config_key="request_timeout",
                expected_type="float > 0",
            )
        if self.notification_cap < 1:
            raise ConfigurationError(
                "notification_cap must be at least 1",
                config_key="notification_cap",
                expected_type="int >= 1",
            )
        if not 0 < self.adherence_increment <= 100:
            raise ConfigurationError(
                "adherence_increment must be within (0, 100]",
                config_key="adherence_increment",
                expected_type="int",
            )

    @property
    def is_configured(self) -> bool:
        """True when a remote backend is available to try."""
        return bool(self.supabase_url and self.anon_key)

    @property
    def api_base(self) -> str:
        """Base URL of the edge-function API."""
        return f"{self.supabase_url}/functions/v1/{self.function_slug}"


def _read_secrets(secrets: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Return the [supabase] secrets table, or an empty mapping."""
    if secrets is None:
        try:
            secrets = st.secrets
            if "supabase" not in secrets:
                return {}
        except (FileNotFoundError, KeyError, StreamlitAPIException) as e:
            logger.debug(f"No Streamlit secrets available: {e}")
            return {}
    return secrets.get("supabase", {}) or {}


def load_config(secrets: Optional[Mapping[str, Any]] = None) -> HealthcareConfig:
    """
    Build a HealthcareConfig from Streamlit secrets and the environment.

    Args:
        secrets: Mapping shaped like st.secrets (defaults to st.secrets)

    Returns:
        HealthcareConfig instance
    """
    table = _read_secrets(secrets)

    url = table.get("url") or os.getenv("SUPABASE_URL", "")
    key = table.get("key") or os.getenv("SUPABASE_ANON_KEY", "")

    timeout_raw = table.get("timeout") or os.getenv("CARE_REQUEST_TIMEOUT", "5")
    try:
        timeout = float(timeout_raw)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid request timeout: {timeout_raw!r}",
            config_key="timeout",
            expected_type="float",
        )

    db_path = os.getenv("CARE_LOCAL_DB") or DEFAULT_DB_PATH

    config = HealthcareConfig(
        supabase_url=url,
        anon_key=key,
        request_timeout=timeout,
        local_db_path=Path(db_path),
    )

    if not config.is_configured:
        logger.info("Supabase not configured - running on the local store only")

    return config
