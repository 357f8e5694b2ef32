# =============================================================================
# care_core/offline/bootstrap.py
# Bootstrap/Reconciler - Session Resolution, Data Load and Demo Seeding
# =============================================================================
"""
Bootstrapper - the one-time start-up sequence.

State machine:

    INIT -> SESSION_RESOLVED -> DATA_LOADED | DATA_LOAD_FAILED -> READY

- No session resolved: a local-only demo identity is created, its empty
  collections are seeded with the demo set, and the state moves straight
  to READY.
- A session resolved: every entity list is loaded in parallel. One
  entity falling back does not block the others, and does not throw away
  what was already held in memory for it.

`refresh()` re-enters SESSION_RESOLVED with the current session;
`sign_out()` tears everything down and returns to INIT.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
import logging

from care_core.logging import LogContext
from care_core.models import Identity
from care_core.offline.demo_data import DEMO_EMAIL, DEMO_NAME
from care_core.offline.local_store import LocalStore
from care_core.offline.request_executor import FallbackReason
from care_core.offline.session_resolver import SessionContext, SessionResolver

logger = logging.getLogger(__name__)


class BootstrapState(Enum):
    INIT = "init"
    SESSION_RESOLVED = "session_resolved"
    DATA_LOADED = "data_loaded"
    DATA_LOAD_FAILED = "data_load_failed"
    READY = "ready"


@dataclass
class AppSnapshot:
    """In-memory entity lists held by the UI, keyed by namespace."""
    identity: Optional[Identity] = None
    entities: Dict[str, List[Any]] = field(default_factory=dict)
    sources: Dict[str, str] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)

    def get(self, namespace: str) -> List[Any]:
        return self.entities.get(namespace, [])

    def replace(self, namespace: str, entity: Any) -> None:
        """Swap the held copy of an entity (matched by id) for a newer one."""
        self.entities[namespace] = [
            entity if held.id == entity.id else held for held in self.get(namespace)
        ]

    @property
    def medications(self) -> List[Any]:
        return self.get("medications")

    @property
    def notifications(self) -> List[Any]:
        return self.get("notifications")

    @property
    def health_records(self) -> List[Any]:
        return self.get("health_records")

    @property
    def documents(self) -> List[Any]:
        return self.get("documents")

    @property
    def family_links(self) -> List[Any]:
        return self.get("family_links")


class Bootstrapper:
    """
    Drives the start-up state machine over a set of entity services.

    Usage:
        bootstrapper = Bootstrapper(resolver, services, store, context)
        snapshot = bootstrapper.bootstrap()
        print(snapshot.medications)
    """

    def __init__(
        self,
        resolver: SessionResolver,
        services: Sequence[Any],
        store: LocalStore,
        context: SessionContext,
    ):
        self.resolver = resolver
        self.services = {service.namespace: service for service in services}
        self.store = store
        self.context = context
        self.state = BootstrapState.INIT
        self.history: List[BootstrapState] = [self.state]
        self.snapshot = AppSnapshot()

    def _transition(self, state: BootstrapState) -> None:
        logger.debug(f"Bootstrap {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def is_ready(self) -> bool:
        return self.state is BootstrapState.READY

    def bootstrap(self) -> AppSnapshot:
        """Resolve the session, then load or seed data. Never raises on I/O."""
        self.state = BootstrapState.INIT
        self.history = [self.state]

        with LogContext(logger, "Bootstrapping session"):
            session = self.resolver.resolve()
            self._transition(BootstrapState.SESSION_RESOLVED)

            if session is None:
                self._start_demo()
                self._transition(BootstrapState.READY)
            else:
                self._load_entities()

        return self.snapshot

    def refresh(self) -> AppSnapshot:
        """Reload entity data for the current session."""
        if self.context.session is None:
            return self.bootstrap()

        self._transition(BootstrapState.SESSION_RESOLVED)
        with LogContext(logger, "Refreshing data"):
            self._load_entities()
        return self.snapshot

    def sign_out(self) -> None:
        """Sign out and drop everything held in memory."""
        self.resolver.sign_out()
        self.snapshot = AppSnapshot()
        self.state = BootstrapState.INIT
        self.history = [self.state]

    # =========================================================================
    # DEMO SEEDING
    # =========================================================================

    def _start_demo(self) -> None:
        self.resolver.create_local_session(DEMO_EMAIL, DEMO_NAME)
        seeded = self.seed_demo_data()
        if seeded:
            logger.info(f"Seeded demo data: {', '.join(seeded)}")

        self.snapshot = AppSnapshot(identity=self.context.identity)
        for namespace, service in self.services.items():
            self.snapshot.entities[namespace] = service.repository.all()
            self.snapshot.sources[namespace] = "local"

    def seed_demo_data(self) -> List[str]:
        """Seed every empty collection that has a demo set. Idempotent."""
        seeded = []
        with self.store.lock:
            for namespace, service in self.services.items():
                demo = service.demo_seed()
                if demo and service.repository.seed_if_empty(demo):
                    seeded.append(namespace)
        return seeded

    # =========================================================================
    # DATA LOAD
    # =========================================================================

    def _load_entities(self) -> None:
        identity = self.context.identity
        held_by = self.snapshot.identity
        if held_by is not None and (identity is None or held_by.id != identity.id):
            # Data held for another identity is never kept as a fallback
            self.snapshot = AppSnapshot()
        self.snapshot.identity = identity
        failed = []

        with ThreadPoolExecutor(max_workers=len(self.services) or 1) as pool:
            futures = {
                namespace: pool.submit(service.list_result)
                for namespace, service in self.services.items()
            }
            for namespace, future in futures.items():
                try:
                    result = future.result()
                except Exception as e:
                    logger.warning(f"Loading {namespace} failed: {e}")
                    failed.append(namespace)
                    continue

                reason = (result.metadata or {}).get("reason")
                fell_back = result.source == "local" and reason != FallbackReason.LOCAL_SESSION.value
                held = self.snapshot.get(namespace)

                if fell_back:
                    failed.append(namespace)
                    if held:
                        logger.info(f"Keeping previously loaded {namespace} ({reason})")
                        continue

                self.snapshot.entities[namespace] = result.data
                self.snapshot.sources[namespace] = result.source

        self.snapshot.failed = failed
        if failed:
            logger.warning(f"Data load incomplete, fell back for: {', '.join(failed)}")
            self._transition(BootstrapState.DATA_LOAD_FAILED)
        else:
            self._transition(BootstrapState.DATA_LOADED)
        self._transition(BootstrapState.READY)
