# =============================================================================
# care_core/services/base_service.py
# Base Service Classes with the Shared Remote-or-Local Entity Contract
# =============================================================================

from __future__ import annotations
import random
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from care_core.errors import NotFoundError
from care_core.logging import get_logger
from care_core.offline.local_store import LocalRepository, LocalStore
from care_core.offline.request_executor import RequestExecutor, RequestResult, ResultKind
from care_core.offline.session_resolver import SessionContext

E = TypeVar("E")

SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"


@dataclass
class ServiceResult:
    """
    Standard result container for service operations.

    `metadata["source"]` records which store produced the data.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.success

    @property
    def source(self) -> Optional[str]:
        return (self.metadata or {}).get("source")

    @classmethod
    def ok(cls, data: Any = None, metadata: Dict[str, Any] = None) -> ServiceResult:
        """Create a successful result"""
        return cls(success=True, data=data, metadata=metadata)


class BaseService(ABC):
    """
    Abstract base class for all services.

    Provides common functionality:
    - Logging
    - Clock injection (tests pass a ticking clock)
    - Id generation for locally created records
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.logger = get_logger(self.__class__.__name__)
        self.clock = clock or datetime.now

    def _now(self) -> str:
        return self.clock().isoformat()

    @staticmethod
    def new_id() -> str:
        """Millisecond timestamp plus a random base-36 suffix."""
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
        return f"{int(time.time() * 1000)}-{suffix}"


class EntityService(BaseService, Generic[E]):
    """
    list / create / delete for one entity type, remote first.

    Every call goes through the RequestExecutor; a FALLBACK result switches
    the call to the local repository, a DOMAIN_ERROR result is raised.
    Subclasses describe the endpoints and how to build a local record.
    """

    entity_cls: Type[E]
    entity_name: str = "entity"
    namespace: str = ""
    collection_path: str = ""
    create_path: Optional[str] = None
    list_key: str = ""
    item_key: str = ""
    # Newest-first collections are prepended locally
    newest_first: bool = False
    # Whether the backend serves PUT/DELETE on collection_path/:id
    item_routes: bool = True

    def __init__(
        self,
        executor: RequestExecutor,
        store: LocalStore,
        context: SessionContext,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(clock)
        self.executor = executor
        self.store = store
        self.context = context

    # =========================================================================
    # HOOKS
    # =========================================================================

    @abstractmethod
    def validate_input(self, data: Any) -> Dict[str, Any]:
        """Validate create input; raise ValidationError when malformed."""

    @abstractmethod
    def build_local(self, entity_id: str, fields: Dict[str, Any]) -> E:
        """Build a new entity from validated fields on the local path."""

    def demo_seed(self) -> List[E]:
        """Records a never-written local collection starts with."""
        return []

    @property
    def cap(self) -> Optional[int]:
        return None

    @property
    def repository(self) -> LocalRepository:
        return self.store.repository(self.namespace, seed=self.demo_seed)

    def item_path(self, entity_id: str) -> str:
        return f"{self.collection_path}/{entity_id}"

    def _item_id(self, entity_id: str) -> Optional[str]:
        """Id the executor reports a 404 against; None when the route is unserved."""
        return entity_id if self.item_routes else None

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _raise_if_domain_error(self, result: RequestResult) -> None:
        if result.kind is ResultKind.DOMAIN_ERROR:
            raise result.error

    def _parse_item(self, result: RequestResult) -> Optional[E]:
        raw = (result.data or {}).get(self.item_key)
        if not isinstance(raw, dict):
            self.logger.warning(
                f"Backend accepted the {self.entity_name} but the response lacks "
                f"'{self.item_key}'; nothing written locally"
            )
            return None
        return self.entity_cls.from_dict(raw)

    def _not_found(self, entity_id: str) -> NotFoundError:
        return NotFoundError(
            f"{self.entity_name.capitalize()} not found",
            entity=self.entity_name,
            entity_id=entity_id,
        )

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def list_result(self) -> ServiceResult:
        """
        Entities plus where they came from.

        Returns:
            ServiceResult with data=list of entities and metadata
            {"source": "remote" | "local", "reason": fallback reason}
        """
        result = self.executor.execute(self.collection_path)
        if result:
            rows = result.data.get(self.list_key)
            if isinstance(rows, list):
                entities = [self.entity_cls.from_dict(row) for row in rows]
                return ServiceResult.ok(entities, metadata={"source": SOURCE_REMOTE})
            self.logger.warning(f"Response lacks '{self.list_key}', using local store")

        reason = result.reason.value if result.reason else "malformed_response"
        return ServiceResult.ok(
            self.repository.all(),
            metadata={"source": SOURCE_LOCAL, "reason": reason},
        )

    def list(self) -> List[E]:
        return self.list_result().data

    def create(self, data: Any) -> Optional[E]:
        """
        Create an entity.

        Returns:
            The created entity. None when the backend accepted the record
            but did not echo it back; it shows up on the next list.

        Raises:
            ValidationError: malformed input
        """
        fields = self.validate_input(data)

        result = self.executor.execute(
            self.create_path or self.collection_path,
            method="POST",
            payload=fields,
        )
        self._raise_if_domain_error(result)
        if result:
            return self._parse_item(result)

        entity = self.build_local(self.new_id(), fields)
        self.repository.append(entity, front=self.newest_first, cap=self.cap)
        self.logger.info(f"Created local {self.entity_name} {entity.id}")
        return entity

    def delete(self, entity_id: str) -> None:
        """Delete an entity. Deleting an absent id is not an error."""
        result = self.executor.execute(
            self.item_path(entity_id),
            method="DELETE",
            item_id=self._item_id(entity_id),
        )
        if result.kind is ResultKind.DOMAIN_ERROR:
            if isinstance(result.error, NotFoundError):
                return
            raise result.error
        if result:
            return

        if self.repository.remove(entity_id):
            self.logger.info(f"Deleted local {self.entity_name} {entity_id}")


class MutableEntityService(EntityService[E]):
    """EntityService plus partial updates."""

    @abstractmethod
    def validate_patch(self, patch: Any) -> Dict[str, Any]:
        """Validate an update patch; raise ValidationError when malformed."""

    def _merge(self, existing: E, fields: Dict[str, Any]) -> E:
        merged = {**existing.to_dict(), **fields}
        if "updatedAt" in merged:
            merged["updatedAt"] = self._now()
        return self.entity_cls.from_dict(merged)

    def _find_remote(self, entity_id: str) -> Optional[E]:
        """The backend's copy of an entity, looked up through the collection."""
        result = self.executor.execute(self.collection_path)
        rows = result.data.get(self.list_key) if result else None
        if not isinstance(rows, list):
            return None
        for row in rows:
            if isinstance(row, dict) and row.get("id") == entity_id:
                return self.entity_cls.from_dict(row)
        return None

    def update(self, entity_id: str, patch: Any) -> Optional[E]:
        """
        Merge patch into an entity.

        On a remote session whose backend cannot patch the entity, the
        backend's copy is patched and returned without being written to
        the local store, so the change lasts until the next reload.

        Returns:
            The updated entity. None when the backend accepted the patch
            but did not echo the entity back.

        Raises:
            ValidationError: malformed patch
            NotFoundError: no entity with that id
        """
        fields = self.validate_patch(patch)

        result = self.executor.execute(
            self.item_path(entity_id),
            method="PUT",
            payload=fields,
            item_id=self._item_id(entity_id),
        )
        self._raise_if_domain_error(result)
        if result:
            return self._parse_item(result)

        with self.store.lock:
            existing = self.repository.get(entity_id)
            if existing is not None:
                entity = self._merge(existing, fields)
                self.repository.replace(entity)
                return entity

        if not self.context.is_local:
            remote = self._find_remote(entity_id)
            if remote is not None:
                self.logger.info(
                    f"Backend cannot update {self.entity_name} {entity_id}; "
                    "change kept in memory only"
                )
                return self._merge(remote, fields)

        raise self._not_found(entity_id)
