# =============================================================================
# care_core/offline/local_store.py
# Local Persistent Store - Namespaced Key/Value Storage for Offline Operation
# =============================================================================
"""
LocalStore - durable storage for the single local identity and its entity
collections.

Layers:
- KeyValueAdapter: string-keyed get/set/remove (SQLite on disk, or memory
  for tests)
- LocalStore: fixed namespaces holding JSON documents, one lock for every
  read-modify-write
- LocalRepository: typed list access to one entity collection

Nothing outside the data layer touches this module directly; UI code goes
through the entity services.
"""

from __future__ import annotations
import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar
import logging

from care_core.models import (
    Document,
    DoseEvent,
    FamilyLink,
    HealthRecord,
    Identity,
    Medication,
    Notification,
    Session,
)

logger = logging.getLogger(__name__)

KEY_PREFIX = "healthcare_demo_"

# Namespace name -> storage key
NAMESPACES = {
    "user": f"{KEY_PREFIX}user",
    "session": f"{KEY_PREFIX}session",
    "medications": f"{KEY_PREFIX}medications",
    "dose_events": f"{KEY_PREFIX}dose_events",
    "notifications": f"{KEY_PREFIX}notifications",
    "health_records": f"{KEY_PREFIX}health_records",
    "documents": f"{KEY_PREFIX}documents",
    "family_links": f"{KEY_PREFIX}family_links",
}

# Namespace name -> entity class of its collection
COLLECTIONS = {
    "medications": Medication,
    "dose_events": DoseEvent,
    "notifications": Notification,
    "health_records": HealthRecord,
    "documents": Document,
    "family_links": FamilyLink,
}

E = TypeVar("E")


# =============================================================================
# KEY/VALUE ADAPTERS
# =============================================================================

class KeyValueAdapter(ABC):
    """Durable string-keyed storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    def close(self) -> None:
        """Release any held resources."""


class MemoryKeyValueStore(KeyValueAdapter):
    """Process-local adapter, used by tests and ephemeral sessions."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteKeyValueStore(KeyValueAdapter):
    """
    SQLite-backed adapter.

    One table of key/value rows; connections are thread-local so bootstrap
    worker threads can read concurrently.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: Path):
        """
        Initialize the adapter.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        with self.transaction() as conn:
            conn.execute(self.SCHEMA)
        logger.info(f"Local store initialized at: {self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
            )
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def get(self, key: str) -> Optional[str]:
        row = self._get_connection().execute(
            "SELECT value FROM kv_store WHERE key = ?", [key]
        ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                [key, value, datetime.now().isoformat()],
            )

    def remove(self, key: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", [key])

    def close(self) -> None:
        """Close this thread's database connection."""
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None


# =============================================================================
# NAMESPACED STORE
# =============================================================================

class LocalStore:
    """JSON documents under fixed namespaces, over any KeyValueAdapter."""

    def __init__(self, adapter: Optional[KeyValueAdapter] = None):
        self.adapter = adapter or MemoryKeyValueStore()
        self.lock = threading.RLock()

    @staticmethod
    def _key(namespace: str) -> str:
        try:
            return NAMESPACES[namespace]
        except KeyError:
            raise KeyError(f"Unknown local namespace: {namespace}") from None

    def read(self, namespace: str) -> Any:
        """Decoded document stored in namespace, or None."""
        raw = self.adapter.get(self._key(namespace))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding corrupt local data in '{namespace}'")
            self.adapter.remove(self._key(namespace))
            return None

    def write(self, namespace: str, value: Any) -> None:
        self.adapter.set(self._key(namespace), json.dumps(value))

    def remove(self, namespace: str) -> None:
        self.adapter.remove(self._key(namespace))

    def clear_all(self) -> None:
        """Remove every namespace (sign-out)."""
        with self.lock:
            for namespace in NAMESPACES:
                self.remove(namespace)
        logger.info("Local store cleared")

    # =========================================================================
    # LOCAL SESSION
    # =========================================================================

    def get_session(self) -> Optional[Session]:
        data = self.read("session")
        return Session.from_dict(data) if data else None

    def save_session(self, session: Session) -> None:
        with self.lock:
            self.write("user", session.identity.to_dict())
            self.write("session", session.to_dict())

    def get_identity(self) -> Optional[Identity]:
        data = self.read("user")
        return Identity.from_dict(data) if data else None

    def repository(
        self,
        namespace: str,
        seed: Optional[Callable[[], List[Any]]] = None,
    ) -> LocalRepository:
        """Typed repository over one entity collection."""
        return LocalRepository(self, namespace, COLLECTIONS[namespace], seed)


class LocalRepository(Generic[E]):
    """
    List-of-entities access to one namespace.

    A collection that has never been written is seeded on first read, from
    `seed` when given, otherwise as empty.
    """

    def __init__(
        self,
        store: LocalStore,
        namespace: str,
        entity_cls: Type[E],
        seed: Optional[Callable[[], List[E]]] = None,
    ):
        self.store = store
        self.namespace = namespace
        self.entity_cls = entity_cls
        self._seed = seed

    def exists(self) -> bool:
        return self.store.read(self.namespace) is not None

    def all(self) -> List[E]:
        with self.store.lock:
            rows = self.store.read(self.namespace)
            if rows is None:
                entities = self._seed() if self._seed else []
                self.save_all(entities)
                return entities
            return [self.entity_cls.from_dict(row) for row in rows]

    def save_all(self, entities: List[E]) -> None:
        self.store.write(self.namespace, [e.to_dict() for e in entities])

    def get(self, entity_id: str) -> Optional[E]:
        return next((e for e in self.all() if e.id == entity_id), None)

    def append(self, entity: E, front: bool = False, cap: Optional[int] = None) -> E:
        """Add an entity, optionally newest-first and pruned to cap entries."""
        with self.store.lock:
            entities = self.all()
            if front:
                entities.insert(0, entity)
            else:
                entities.append(entity)
            if cap is not None and len(entities) > cap:
                entities = entities[:cap] if front else entities[-cap:]
            self.save_all(entities)
        return entity

    def replace(self, entity: E) -> bool:
        """Overwrite the entity with the same id; False if absent."""
        with self.store.lock:
            entities = self.all()
            for index, existing in enumerate(entities):
                if existing.id == entity.id:
                    entities[index] = entity
                    self.save_all(entities)
                    return True
        return False

    def remove(self, entity_id: str) -> bool:
        with self.store.lock:
            entities = self.all()
            kept = [e for e in entities if e.id != entity_id]
            self.save_all(kept)
        return len(kept) != len(entities)

    def seed_if_empty(self, entities: List[E]) -> bool:
        """Write entities only when the collection is empty or absent."""
        with self.store.lock:
            rows = self.store.read(self.namespace)
            if rows:
                return False
            self.save_all(entities)
            return True

