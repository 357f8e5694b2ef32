# =============================================================================
# care_core/offline/data_service.py
# HealthcareDataService - Single Entry Point for the Data Layer
# =============================================================================
"""
HealthcareDataService - the one object the UI talks to.

It wires configuration, the local store, the session context, the request
executor and every entity service together, and exposes bootstrap and the
auth actions.

Usage:
------
from care_core.offline import get_data_service

service = get_data_service()
snapshot = service.bootstrap()

service.medications.record_taken(snapshot.medications[0].id)
print(service.is_local)
"""

from __future__ import annotations
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional
import logging

import requests

from care_core.config import HealthcareConfig, load_config
from care_core.models import Identity, Session
from care_core.offline.bootstrap import AppSnapshot, Bootstrapper, BootstrapState
from care_core.offline.local_store import LocalStore, SQLiteKeyValueStore
from care_core.offline.request_executor import RequestExecutor
from care_core.offline.session_resolver import (
    AuthProvider,
    SessionContext,
    SessionResolver,
    SupabaseAuthProvider,
)
from care_core.services.medication_service import MedicationService
from care_core.services.notification_service import NotificationService
from care_core.services.profile_service import ProfileService
from care_core.services.record_services import (
    DocumentService,
    FamilyLinkService,
    HealthRecordService,
)

logger = logging.getLogger(__name__)

DEMO_HEALTH = {"status": "demo", "message": "Running in demo mode"}


class HealthcareDataService:
    """
    Data layer facade.

    Every collaborator can be injected; anything omitted is built from the
    configuration (SQLite store, Supabase auth, a fresh requests.Session).
    """

    _instance: Optional[HealthcareDataService] = None
    _lock = threading.Lock()

    def __init__(
        self,
        config: Optional[HealthcareConfig] = None,
        store: Optional[LocalStore] = None,
        provider: Optional[AuthProvider] = None,
        http: Optional[requests.Session] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or load_config()
        self.store = store or LocalStore(SQLiteKeyValueStore(self.config.local_db_path))
        self.context = SessionContext()
        self.executor = RequestExecutor(self.config, self.context, http)
        self.resolver = SessionResolver(
            self.store,
            provider or SupabaseAuthProvider.from_config(self.config),
            self.context,
            self.executor,
        )

        deps = (self.executor, self.store, self.context)
        self.medications = MedicationService(
            *deps, clock=clock, increment=self.config.adherence_increment
        )
        self.notifications = NotificationService(
            *deps, clock=clock, cap=self.config.notification_cap
        )
        self.health_records = HealthRecordService(*deps, clock=clock)
        self.documents = DocumentService(*deps, clock=clock)
        self.family_links = FamilyLinkService(*deps, clock=clock)
        self.profile = ProfileService(*deps, clock=clock)

        self.bootstrapper = Bootstrapper(
            self.resolver,
            [
                self.medications,
                self.notifications,
                self.health_records,
                self.documents,
                self.family_links,
            ],
            self.store,
            self.context,
        )
        mode = "configured" if self.config.is_configured else "unconfigured (demo only)"
        logger.info(f"HealthcareDataService created, backend {mode}")

    @classmethod
    def get_instance(cls) -> HealthcareDataService:
        """Get or create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = HealthcareDataService()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton (tests, config reloads)."""
        with cls._lock:
            cls._instance = None

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def session(self) -> Optional[Session]:
        return self.context.session

    @property
    def identity(self) -> Optional[Identity]:
        return self.context.identity

    @property
    def is_local(self) -> bool:
        """True while a local-only identity is active."""
        return self.context.is_local

    @property
    def state(self) -> BootstrapState:
        return self.bootstrapper.state

    @property
    def snapshot(self) -> AppSnapshot:
        return self.bootstrapper.snapshot

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def bootstrap(self) -> AppSnapshot:
        return self.bootstrapper.bootstrap()

    def refresh(self) -> AppSnapshot:
        return self.bootstrapper.refresh()

    def health_check(self) -> Dict[str, Any]:
        """Backend health, or a demo-mode marker when it cannot be reached."""
        result = self.executor.execute(RequestExecutor.HEALTH_ENDPOINT)
        if result:
            return result.data
        return dict(DEMO_HEALTH)

    # =========================================================================
    # AUTH ACTIONS
    # =========================================================================

    def sign_up(self, email: str, password: str, name: str, **profile: Any) -> Session:
        """Register, then reload data for the new identity."""
        session = self.resolver.sign_up(email, password, name, **profile)
        self.bootstrapper.refresh()
        return session

    def sign_in(self, email: str, password: str) -> Optional[Session]:
        """
        Sign in and reload data.

        Returns:
            The session, or None when the credentials were rejected
        """
        session = self.resolver.sign_in(email, password)
        if session is not None:
            self.bootstrapper.refresh()
        return session

    def sign_out(self) -> None:
        self.bootstrapper.sign_out()


# Singleton accessor
def get_data_service() -> HealthcareDataService:
    """
    Get the global HealthcareDataService instance.

    Usage:
        from care_core.offline import get_data_service

        service = get_data_service()
    """
    return HealthcareDataService.get_instance()
