# =============================================================================
# tests/unit/test_local_store.py
# Unit Tests for the Local Persistent Store
# =============================================================================

import threading

import pytest

from care_core.models import Identity, Medication, Notification, Session
from care_core.offline.local_store import (
    KEY_PREFIX,
    LocalStore,
    MemoryKeyValueStore,
    NAMESPACES,
    SQLiteKeyValueStore,
)


def _med(med_id, name="Aspirin"):
    return Medication(
        id=med_id, name=name, dosage="1 tablet", frequency="daily",
        owner_id="demo", created_at="2024-03-01T08:00:00",
        updated_at="2024-03-01T08:00:00",
    )


def _note(note_id):
    return Notification(id=note_id, type="info", title=f"T{note_id}",
                        message="m", created_at="2024-03-01T08:00:00")


class TestSQLiteAdapter:
    """Durable adapter round-trips raw strings"""

    def test_set_get_remove(self, tmp_path):
        adapter = SQLiteKeyValueStore(tmp_path / "kv.db")
        adapter.set("k", "v1")
        adapter.set("k", "v2")
        assert adapter.get("k") == "v2"

        adapter.remove("k")
        assert adapter.get("k") is None

    def test_survives_reopen(self, tmp_path):
        path = tmp_path / "nested" / "kv.db"
        first = SQLiteKeyValueStore(path)
        first.set("healthcare_demo_user", '{"id": "demo-1"}')
        first.close()

        second = SQLiteKeyValueStore(path)
        assert second.get("healthcare_demo_user") == '{"id": "demo-1"}'

    def test_readable_from_worker_thread(self, tmp_path):
        adapter = SQLiteKeyValueStore(tmp_path / "kv.db")
        adapter.set("k", "v")
        seen = []

        worker = threading.Thread(target=lambda: seen.append(adapter.get("k")))
        worker.start()
        worker.join()

        assert seen == ["v"]


class TestLocalStore:
    """Namespaced JSON documents"""

    def test_namespaces_share_prefix(self):
        assert all(key.startswith(KEY_PREFIX) for key in NAMESPACES.values())

    def test_unknown_namespace_rejected(self, memory_store):
        with pytest.raises(KeyError):
            memory_store.read("appointments")

    def test_corrupt_document_is_discarded(self):
        adapter = MemoryKeyValueStore()
        adapter.set(NAMESPACES["medications"], "{not json")
        store = LocalStore(adapter)

        assert store.read("medications") is None
        assert adapter.get(NAMESPACES["medications"]) is None

    def test_session_round_trip(self, memory_store):
        identity = Identity(id="demo-1", email="d@example.com", name="D", language="hi")
        memory_store.save_session(Session("demo-token", identity, local=True))

        session = memory_store.get_session()
        assert session.local
        assert session.identity == identity
        assert memory_store.get_identity() == identity

    def test_clear_all_removes_every_namespace(self, memory_store):
        identity = Identity(id="demo-1", email="d@example.com", name="D")
        memory_store.save_session(Session("demo-token", identity, local=True))
        memory_store.repository("medications").append(_med("1"))

        memory_store.clear_all()

        assert memory_store.get_session() is None
        for namespace in NAMESPACES:
            assert memory_store.read(namespace) is None


class TestLocalRepository:
    """Typed collection access"""

    def test_absent_collection_seeded_on_first_read(self, memory_store):
        repo = memory_store.repository("medications", seed=lambda: [_med("1")])

        assert [m.id for m in repo.all()] == ["1"]
        assert repo.exists()

    def test_absent_collection_without_seed_is_empty(self, memory_store):
        repo = memory_store.repository("documents")
        assert repo.all() == []

    def test_seed_not_reapplied_after_emptying(self, memory_store):
        repo = memory_store.repository("medications", seed=lambda: [_med("1")])
        repo.remove("1")

        assert repo.all() == []

    def test_append_front_with_cap(self, memory_store):
        repo = memory_store.repository("notifications")
        for i in range(5):
            repo.append(_note(str(i)), front=True, cap=3)

        assert [n.id for n in repo.all()] == ["4", "3", "2"]

    def test_append_back_with_cap_drops_oldest(self, memory_store):
        repo = memory_store.repository("medications")
        for i in range(4):
            repo.append(_med(str(i)), cap=2)

        assert [m.id for m in repo.all()] == ["2", "3"]

    def test_replace_and_remove(self, memory_store):
        repo = memory_store.repository("medications")
        repo.append(_med("1"))

        assert repo.replace(_med("1", name="Renamed"))
        assert repo.get("1").name == "Renamed"
        assert not repo.replace(_med("missing"))

        assert repo.remove("1")
        assert not repo.remove("1")

    def test_seed_if_empty_is_idempotent(self, memory_store):
        repo = memory_store.repository("medications")

        assert repo.seed_if_empty([_med("1"), _med("2")])
        assert not repo.seed_if_empty([_med("1"), _med("2")])
        assert len(repo.all()) == 2
