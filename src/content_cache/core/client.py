from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

import requests

from ..config import Config
from ..errors import RemoteRejectedError, RemoteUnavailableError
from .documents import PING_QUERY, SNAPSHOT_QUERY

if TYPE_CHECKING:
    from ..sync.models import MutationOperation

logger = logging.getLogger(__name__)

# Status codes that mean "try again later" rather than "your request is wrong"
_RETRYABLE_STATUS = frozenset({408, 429})


class GraphQLClient:
    """Remote execution against a GraphQL endpoint over HTTP POST.

    Transport problems raise ``RemoteUnavailableError``; a response carrying
    an ``errors`` list raises ``RemoteRejectedError``.  Callers rely on that
    split to decide between queueing and rejecting a write.
    """

    def __init__(self, config: Config):
        if not config.graphql_url:
            raise ValueError("GraphQL URL is not configured")
        self.config = config
        self.endpoint = config.graphql_url
        self._thread_local = threading.local()

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.verify = not self.config.insecure
        session.headers["Accept"] = "application/json"
        if self.config.auth_token:
            session.headers["Authorization"] = (
                f"Bearer {self.config.auth_token}"
            )
        elif self.config.username and self.config.password:
            session.auth = (self.config.username, self.config.password)
        return session

    def execute(
        self,
        document: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Execute a GraphQL document and return its ``data`` object.

        Raises:
            RemoteUnavailableError: Network error, timeout, 5xx/408/429
                status, or a body that is not a GraphQL JSON response.
            RemoteRejectedError: The response contains GraphQL errors.
        """
        payload: dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = variables

        timeout = self.config.timeout
        try:
            response = self._get_session().post(
                self.endpoint,
                json=payload,
                timeout=(timeout, timeout),
            )
        except requests.RequestException as e:
            raise RemoteUnavailableError(
                f"GraphQL endpoint unreachable: {e}"
            ) from e

        status = response.status_code
        if status >= 500 or status in _RETRYABLE_STATUS:
            raise RemoteUnavailableError(
                f"GraphQL endpoint returned HTTP {status}"
            )

        try:
            body = response.json()
        except ValueError as e:
            if status >= 400:
                raise _http_rejection(status) from e
            raise RemoteUnavailableError(
                "GraphQL endpoint returned a non-JSON response"
            ) from e

        if not isinstance(body, dict):
            raise RemoteUnavailableError(
                "GraphQL endpoint returned a malformed response"
            )

        errors = body.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [{"message": str(errors)}]
            raise RemoteRejectedError(
                [e if isinstance(e, dict) else {"message": str(e)} for e in errors]
            )

        if status >= 400:
            raise _http_rejection(status)

        data = body.get("data")
        if data is None:
            raise RemoteUnavailableError(
                "GraphQL response has neither data nor errors"
            )
        return data

    def ping(self) -> str:
        """
        Lightweight reachability check.
        Returns the root type name reported by the server.
        """
        data = self.execute(PING_QUERY)
        return str(data.get("__typename", ""))

    def execute_mutation(self, operation: MutationOperation) -> dict[str, Any]:
        """
        Execute a queued or direct write operation.
        """
        logger.debug("Executing mutation %s", operation.name)
        return self.execute(operation.resolve_document(), operation.variables)

    def fetch_snapshot(self, first: int = 100) -> dict[str, Any]:
        """
        Fetch every cached collection in one request.
        """
        return self.execute(SNAPSHOT_QUERY, {"first": first})


def _http_rejection(status: int) -> RemoteRejectedError:
    return RemoteRejectedError(
        [
            {
                "message": f"HTTP {status}",
                "extensions": {"code": f"HTTP_{status}"},
            }
        ]
    )
