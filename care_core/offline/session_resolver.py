# =============================================================================
# care_core/offline/session_resolver.py
# Session Resolution - Local-Only vs Remote-Authenticated Identities
# =============================================================================
"""
SessionResolver - decides who the current actor is.

A local-only session in the LocalStore always wins and short-circuits the
remote check; local identities never hold a remote token. Otherwise the
Supabase auth provider is asked. Resolution never raises: a missing or
failing provider simply means "no identity".

The resolved session lives in a SessionContext that is handed to the
request executor and the entity services, so there is exactly one place
that knows whether the app is running locally.
"""

from __future__ import annotations
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional
import logging

from care_core.models import LOCAL_TOKEN, Identity, Session
from care_core.models.validation import validate_signup
from care_core.offline.local_store import LocalStore
from care_core.offline.request_executor import RequestExecutor, ResultKind

if TYPE_CHECKING:
    from care_core.config import HealthcareConfig

logger = logging.getLogger(__name__)


class SessionContext:
    """The active session, shared by the executor and every service."""

    def __init__(self, session: Optional[Session] = None):
        self._session = session

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def identity(self) -> Optional[Identity]:
        return self._session.identity if self._session else None

    @property
    def is_local(self) -> bool:
        """True when a local-only identity is active."""
        return self._session is not None and self._session.local

    @property
    def access_token(self) -> Optional[str]:
        if self._session is None or self._session.local:
            return None
        return self._session.access_token

    @property
    def owner_id(self) -> str:
        return self._session.identity.id if self._session else "demo"

    def set(self, session: Optional[Session]) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


# =============================================================================
# AUTH PROVIDERS
# =============================================================================

class AuthProvider(ABC):
    """Remote identity provider."""

    @abstractmethod
    def get_session(self) -> Optional[Session]:
        ...

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> Optional[Session]:
        ...

    @abstractmethod
    def sign_out(self) -> None:
        ...


class SupabaseAuthProvider(AuthProvider):
    """AuthProvider backed by the supabase-py client's GoTrue API."""

    def __init__(self, client: Any = None):
        self.client = client

    @classmethod
    def from_config(cls, config: HealthcareConfig) -> SupabaseAuthProvider:
        """Create a provider; unconfigured backends yield a client-less one."""
        if not config.is_configured:
            return cls(None)
        from supabase import create_client
        return cls(create_client(config.supabase_url, config.anon_key))

    @staticmethod
    def _to_session(raw: Any) -> Optional[Session]:
        if raw is None or not getattr(raw, "access_token", None):
            return None
        user = raw.user
        identity = Identity.from_dict({
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
        })
        return Session(access_token=raw.access_token, identity=identity, local=False)

    def get_session(self) -> Optional[Session]:
        if self.client is None:
            return None
        return self._to_session(self.client.auth.get_session())

    def sign_in_with_password(self, email: str, password: str) -> Optional[Session]:
        if self.client is None:
            return None
        response = self.client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
        return self._to_session(response.session)

    def sign_out(self) -> None:
        if self.client is not None:
            self.client.auth.sign_out()


# =============================================================================
# RESOLVER
# =============================================================================

class SessionResolver:
    """
    Resolves, creates and tears down sessions.

    Usage:
        resolver = SessionResolver(store, provider, context)
        session = resolver.resolve()      # None means "no identity"
    """

    def __init__(
        self,
        store: LocalStore,
        provider: AuthProvider,
        context: SessionContext,
        executor: Optional[RequestExecutor] = None,
    ):
        self.store = store
        self.provider = provider
        self.context = context
        self.executor = executor

    def get_session(self) -> Optional[Session]:
        """
        Current session, or None. Never raises.

        Returns:
            The local-only session if one is stored, else the provider's
        """
        local = self.store.get_session()
        if local is not None:
            return local

        try:
            return self.provider.get_session()
        except Exception as e:
            logger.warning(f"Auth provider session lookup failed: {e}")
            return None

    def resolve(self) -> Optional[Session]:
        """Look up the session and make it the active one."""
        session = self.get_session()
        self.context.set(session)
        if session is None:
            logger.info("No session resolved")
        else:
            kind = "local-only" if session.local else "remote"
            logger.info(f"Resolved {kind} session for {session.identity.id}")
        return session

    # =========================================================================
    # AUTH ACTIONS
    # =========================================================================

    def create_local_session(
        self,
        email: str,
        name: str,
        role: str = "patient",
        phone: Optional[str] = None,
        age: Optional[int] = None,
        language: str = "en",
    ) -> Session:
        """
        Create and persist a local-only identity and make it active.

        Any records left by a previously stored identity are cleared first;
        the local store only ever holds one identity's data.
        """
        identity = Identity(
            id=f"demo-{int(time.time() * 1000)}",
            email=email,
            name=name,
            role=role,
            phone=phone,
            age=age,
            language=language,
        )
        session = Session(access_token=LOCAL_TOKEN, identity=identity, local=True)
        with self.store.lock:
            previous = self.store.get_session()
            if previous is not None:
                logger.info(f"Clearing local data of previous identity {previous.identity.id}")
                self.store.clear_all()
            self.store.save_session(session)
        self.context.set(session)
        logger.info(f"Created local-only identity {identity.id}")
        return session

    def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        role: str = "patient",
        phone: Optional[str] = None,
        age: Optional[int] = None,
    ) -> Session:
        """
        Register an account.

        The backend signup endpoint is tried first; if it is unavailable the
        account is created as a local-only identity instead.

        Raises:
            ValidationError: on malformed signup input, or if the backend
                rejects it
        """
        validate_signup(email, password, name, role)

        if self.executor is not None:
            result = self.executor.execute(
                "/auth/signup",
                method="POST",
                payload={
                    "email": email,
                    "password": password,
                    "name": name,
                    "role": role,
                    "phone": phone,
                    "age": age,
                },
            )
            if result.kind is ResultKind.DOMAIN_ERROR:
                raise result.error
            if result.kind is ResultKind.OK:
                session = self.sign_in(email, password)
                if session is not None:
                    return session
                logger.warning("Signed up remotely but sign-in failed; using local identity")

        return self.create_local_session(email, name, role, phone, age)

    def sign_in(self, email: str, password: str) -> Optional[Session]:
        """
        Sign in. An existing local identity wins over the remote provider.

        Returns:
            The new active session, or None when sign-in was rejected
        """
        local = self.store.get_session()
        if local is not None:
            self.context.set(local)
            logger.info(f"Signed in local identity {local.identity.id}")
            return local

        try:
            session = self.provider.sign_in_with_password(email, password)
        except Exception as e:
            logger.warning(f"Remote sign-in failed: {e}")
            return None

        self.context.set(session)
        return session

    def sign_out(self) -> None:
        """Sign out remotely (best effort) and clear every local namespace."""
        try:
            self.provider.sign_out()
        except Exception as e:
            logger.warning(f"Remote sign-out failed: {e}")

        self.store.clear_all()
        self.context.clear()
        logger.info("Signed out")
