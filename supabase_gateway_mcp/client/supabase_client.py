"""HTTP transport for the Supabase (PostgREST) REST API."""

import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.structures import CaseInsensitiveDict
from requests.utils import quote

from ..config.settings import ServerConfig
from ..models import RequestSpec
from ..errors import (
    BackendError,
    ErrorContext,
    get_logger,
    log_error,
    log_operation,
    log_performance,
    redact,
)


logger = get_logger(__name__)

PREFER_REPRESENTATION = "return=representation"
PREFER_EXACT_COUNT = "count=exact"


def build_headers(config: ServerConfig, prefer: Optional[str] = None) -> Dict[str, str]:
    """Authentication and content headers sent with every backend call."""
    config.require_backend(operation="build_headers")
    headers = {
        "apikey": config.service_role_key,
        "Authorization": f"Bearer {config.service_role_key}",
        "Content-Type": "application/json",
    }
    if prefer:
        headers["Prefer"] = prefer
    return headers


@dataclass
class RestResponse:
    """Status, headers and raw body of a backend response."""
    status_code: int
    headers: Mapping[str, str]
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body; an empty body decodes to None."""
        if not self.text or not self.text.strip():
            return None
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise BackendError(
                message="Supabase returned a body that is not valid JSON",
                backend_status=self.status_code,
                response_body=self.text[:500],
                cause=e
            )


class SupabaseRestClient:
    """
    Executes RequestSpecs against ``<SUPABASE_URL>/rest/v1``.

    ``requests.Session`` is not thread-safe, and the HTTP server runs tool
    calls in a threadpool, so each worker thread gets its own session.
    """

    def __init__(self, config: ServerConfig, session: Optional[requests.Session] = None):
        """
        Initialize the transport.

        Args:
            config: Immutable server configuration holding URL and key
            session: Optional session used by every thread (tests inject a mock here)
        """
        self.config = config
        self._shared_session = session
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()
        if session is not None:
            session.headers.update({"Accept": "application/json"})

    @property
    def session(self) -> requests.Session:
        """The session owned by the calling thread."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"Accept": "application/json"})
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def url_for(self, spec: RequestSpec) -> str:
        return f"{self.config.rest_url}/{quote(spec.path, safe='')}"

    def redacted_url(self, spec: RequestSpec) -> str:
        """Full request URL with the credential masked, for logging only."""
        prepared = requests.Request(spec.method, self.url_for(spec), params=spec.params).prepare()
        return redact(prepared.url, self.config.secrets)

    def execute(self, spec: RequestSpec, operation: str = "supabase_request") -> RestResponse:
        """
        Perform one HTTP call. No retries: transport failures surface immediately.

        Raises:
            ConfigurationError: If URL or key is not configured
            BackendError: If the backend cannot be reached
        """
        self.config.require_backend(operation=operation)
        url = self.url_for(spec)

        log_operation(
            logger,
            "supabase_request",
            method=spec.method,
            url=self.redacted_url(spec),
            tool_operation=operation,
        )

        start_time = time.time()
        try:
            response = self.session.request(
                method=spec.method,
                url=url,
                params=spec.params or None,
                headers=spec.headers,
                data=spec.body.encode("utf-8") if spec.body is not None else None,
                timeout=self.config.request_timeout,
            )
        except requests.exceptions.Timeout as e:
            error = BackendError(
                message=f"Supabase request timed out after {self.config.request_timeout}s",
                context=ErrorContext(operation=operation, resource=spec.path or "/"),
                cause=e
            )
            log_error(logger, error, operation=operation)
            raise error
        except requests.exceptions.RequestException as e:
            error = BackendError(
                message="Unable to reach Supabase",
                context=ErrorContext(operation=operation, resource=spec.path or "/"),
                cause=redact_exception(e, self.config.secrets)
            )
            log_error(logger, error, operation=operation)
            raise error

        duration_ms = (time.time() - start_time) * 1000
        log_performance(
            logger,
            "supabase_request",
            duration_ms,
            success=200 <= response.status_code < 300,
            method=spec.method,
            status_code=response.status_code,
        )

        return RestResponse(
            status_code=response.status_code,
            headers=CaseInsensitiveDict(response.headers or {}),
            text=response.text or "",
        )

    def close(self) -> None:
        if self._shared_session is not None:
            self._shared_session.close()
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()


def redact_exception(error: Exception, secrets) -> Exception:
    """Copy of ``error`` as a plain RuntimeError with secrets masked."""
    return RuntimeError(redact(f"{type(error).__name__}: {error}", secrets))
