# =============================================================================
# care_core/offline/__init__.py
# Offline-First Data Layer for HealthCare+
# =============================================================================
"""
Offline-first data layer.

Every remote call can fall back to the local store: the app behaves the
same whether the backend is reachable, unconfigured, or rejecting the
session.

Usage:
------
from care_core.offline import get_data_service

service = get_data_service()
snapshot = service.bootstrap()
"""

from care_core.offline.local_store import (
    KeyValueAdapter,
    LocalRepository,
    LocalStore,
    MemoryKeyValueStore,
    SQLiteKeyValueStore,
)
from care_core.offline.request_executor import (
    FallbackReason,
    RequestExecutor,
    RequestResult,
    ResultKind,
)
from care_core.offline.session_resolver import (
    AuthProvider,
    SessionContext,
    SessionResolver,
    SupabaseAuthProvider,
)
from care_core.offline.bootstrap import AppSnapshot, Bootstrapper, BootstrapState

__all__ = [
    "KeyValueAdapter",
    "LocalRepository",
    "LocalStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "FallbackReason",
    "RequestExecutor",
    "RequestResult",
    "ResultKind",
    "AuthProvider",
    "SessionContext",
    "SessionResolver",
    "SupabaseAuthProvider",
    "AppSnapshot",
    "Bootstrapper",
    "BootstrapState",
    "get_data_service",
]


def get_data_service():
    """
    Get the global HealthcareDataService instance.

    Imported on first use: the facade pulls in the service layer, which
    itself imports this package.
    """
    from care_core.offline.data_service import get_data_service as _get_data_service
    return _get_data_service()
