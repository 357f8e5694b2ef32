# =============================================================================
# care_core/offline/request_executor.py
# Fallback-Aware Request Executor for the Edge-Function API
# =============================================================================
"""
RequestExecutor - wraps every call to the remote backend.

Each call resolves to a RequestResult, never an exception:

    OK            parsed JSON object from a 2xx response
    FALLBACK      use the local store instead (reason is logged, not surfaced)
    DOMAIN_ERROR  the backend rejected the request itself (NotFound /
                  Validation); callers raise the attached error

Policy, in order:
1. A local-only session never reaches the network (except /health).
2. No backend configured, or no token for an authenticated endpoint,
   falls back.
3. HTTP status and transport failures are classified; there are no retries.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional
import logging

import requests

from care_core.errors import HealthcareError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from care_core.config import HealthcareConfig
    from care_core.offline.session_resolver import SessionContext

logger = logging.getLogger(__name__)


class ResultKind(Enum):
    OK = "ok"
    FALLBACK = "fallback"
    DOMAIN_ERROR = "domain_error"


class FallbackReason(Enum):
    """Why a call did not produce a remote result."""
    LOCAL_SESSION = "local_session"     # Local-only identity is active
    UNCONFIGURED = "unconfigured"       # No backend URL/key
    NO_TOKEN = "no_token"               # Authenticated endpoint, no session
    AUTH_FAILURE = "auth_failure"       # 401 / 403
    SERVER_ERROR = "server_error"       # Other non-2xx, malformed body
    UNREACHABLE = "unreachable"         # Connection error, timeout


@dataclass
class RequestResult:
    """Tagged outcome of one remote call."""
    kind: ResultKind
    data: Optional[Dict[str, Any]] = None
    reason: Optional[FallbackReason] = None
    status_code: Optional[int] = None
    error: Optional[HealthcareError] = None

    def __bool__(self) -> bool:
        return self.kind is ResultKind.OK

    @property
    def is_fallback(self) -> bool:
        return self.kind is ResultKind.FALLBACK

    @classmethod
    def ok(cls, data: Dict[str, Any], status_code: int = 200) -> RequestResult:
        return cls(kind=ResultKind.OK, data=data, status_code=status_code)

    @classmethod
    def fallback(
        cls,
        reason: FallbackReason,
        status_code: Optional[int] = None,
    ) -> RequestResult:
        return cls(kind=ResultKind.FALLBACK, reason=reason, status_code=status_code)

    @classmethod
    def domain_error(cls, error: HealthcareError, status_code: int) -> RequestResult:
        return cls(kind=ResultKind.DOMAIN_ERROR, error=error, status_code=status_code)


class RequestExecutor:
    """
    Executes edge-function calls for the active session.

    Usage:
        executor = RequestExecutor(config, context)
        result = executor.execute("/medications")
        if result:
            meds = result.data["medications"]
    """

    HEALTH_ENDPOINT = "/health"
    PUBLIC_ENDPOINTS = ("/auth/signup", HEALTH_ENDPOINT)

    def __init__(
        self,
        config: HealthcareConfig,
        context: SessionContext,
        http: Optional[requests.Session] = None,
    ):
        self.config = config
        self.context = context
        self.session = http or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _token_for(self, endpoint: str) -> Optional[str]:
        if endpoint in self.PUBLIC_ENDPOINTS:
            return self.config.anon_key
        return self.context.access_token

    def execute(
        self,
        endpoint: str,
        method: str = "GET",
        payload: Optional[Dict[str, Any]] = None,
        item_id: Optional[str] = None,
    ) -> RequestResult:
        """
        Issue one request. Never raises.

        Args:
            endpoint: Path under the API base (e.g. "/medications/42")
            method: HTTP method
            payload: JSON body
            item_id: Id of the entity the path names, if any; a 404 then
                means "no such entity" rather than "no such route"

        Returns:
            RequestResult
        """
        if self.context.is_local and endpoint != self.HEALTH_ENDPOINT:
            logger.debug(f"Local-only session, skipping remote {method} {endpoint}")
            return RequestResult.fallback(FallbackReason.LOCAL_SESSION)

        if not self.config.is_configured:
            return RequestResult.fallback(FallbackReason.UNCONFIGURED)

        token = self._token_for(endpoint)
        if not token:
            logger.info(f"No session token for {endpoint}, using local store")
            return RequestResult.fallback(FallbackReason.NO_TOKEN)

        url = f"{self.config.api_base}{endpoint}"
        try:
            response = self.session.request(
                method=method,
                url=url,
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.config.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Backend unreachable for {method} {endpoint}: {e}")
            return RequestResult.fallback(FallbackReason.UNREACHABLE)

        return self._classify(response, method, endpoint, item_id)

    def _classify(
        self,
        response: requests.Response,
        method: str,
        endpoint: str,
        item_id: Optional[str],
    ) -> RequestResult:
        status = response.status_code

        if status in (401, 403):
            logger.info(f"Authentication failed ({status}) for {endpoint}, using local store")
            return RequestResult.fallback(FallbackReason.AUTH_FAILURE, status)

        if 200 <= status < 300:
            try:
                body = response.json()
            except ValueError:
                logger.warning(f"Undecodable response body from {endpoint}")
                return RequestResult.fallback(FallbackReason.SERVER_ERROR, status)
            if not isinstance(body, dict):
                logger.warning(f"Unexpected response shape from {endpoint}")
                return RequestResult.fallback(FallbackReason.SERVER_ERROR, status)
            return RequestResult.ok(body, status)

        message = self._error_message(response)

        if status in (400, 422):
            return RequestResult.domain_error(
                ValidationError(message, details={"endpoint": endpoint}), status
            )

        if status == 404 and item_id is not None:
            return RequestResult.domain_error(
                NotFoundError(message, entity_id=item_id),
                status,
            )

        logger.warning(f"API error ({status}) for {method} {endpoint}: {message}")
        return RequestResult.fallback(FallbackReason.SERVER_ERROR, status)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"HTTP error! status: {response.status_code}"
