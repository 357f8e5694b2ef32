# =============================================================================
# care_core/services/profile_service.py
# Profile Service - The Active Identity's Profile
# =============================================================================

from __future__ import annotations
from typing import Any, Optional

from care_core.errors import NotFoundError
from care_core.models import Identity, Session
from care_core.models.validation import validate_profile_patch
from care_core.services.base_service import BaseService


class ProfileService(BaseService):
    """
    Reads and updates the profile behind the active session.

    The local path edits the stored identity and keeps the stored session's
    copy of it in step.
    """

    PATH = "/user/profile"

    def __init__(self, executor, store, context, clock=None):
        super().__init__(clock)
        self.executor = executor
        self.store = store
        self.context = context

    def get_profile(self) -> Optional[Identity]:
        result = self.executor.execute(self.PATH)
        if result and isinstance(result.data.get("profile"), dict):
            return Identity.from_dict(result.data["profile"])
        return self.store.get_identity() or self.context.identity

    def update_profile(self, patch: Any) -> Identity:
        """
        Merge patch into the profile.

        Raises:
            ValidationError: malformed patch (bad role/language, ...)
            NotFoundError: no profile exists to update
        """
        fields = validate_profile_patch(patch)

        result = self.executor.execute(self.PATH, method="PUT", payload=fields)
        if result.error is not None:
            raise result.error
        if result and isinstance(result.data.get("profile"), dict):
            identity = Identity.from_dict(result.data["profile"])
            self._refresh_context(identity)
            return identity

        with self.store.lock:
            current = self.store.get_identity() or self.context.identity
            if current is None:
                raise NotFoundError("Profile not found", entity="profile")
            identity = Identity.from_dict({**current.to_dict(), **fields})
            if self.context.is_local:
                self.store.save_session(Session(
                    access_token=self.context.session.access_token,
                    identity=identity,
                    local=True,
                ))
        self._refresh_context(identity)
        self.logger.info(f"Profile updated locally for {identity.id}")
        return identity

    def _refresh_context(self, identity: Identity) -> None:
        session = self.context.session
        if session is not None:
            self.context.set(Session(session.access_token, identity, session.local))
