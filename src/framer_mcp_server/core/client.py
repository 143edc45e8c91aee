import itertools
import logging
import threading
from typing import Any

import requests

from .. import __version__
from ..config import Config
from ..errors import FramerApiError, TransportError

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Framer-Session"


class FramerClient:
    """Blocking JSON-RPC client for the Framer Server API.

    Every project operation takes the ``session_id`` returned by
    ``connect()``. Use ``core.session.open_session`` from async code: it
    pairs connect/disconnect and bridges calls onto worker threads.
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self._ids = itertools.count(1)
        self.rpc_url = config.api_endpoint.rstrip("/")

    @property
    def session(self) -> requests.Session:
        """The current thread's HTTP session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
                "User-Agent": f"framer-mcp-server/{__version__}",
            }
        )
        return session

    def _rpc_request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> Any:
        """
        Make a JSON-RPC 2.0 request to the Framer API.

        Raises:
            FramerApiError: The response carried an ``error`` member.
            TransportError: HTTP failure or a malformed response body.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or {},
        }
        headers = {SESSION_HEADER: session_id} if session_id else None

        logger.debug("RPC %s", method)
        try:
            response = self._get_session().post(
                self.rpc_url,
                json=payload,
                headers=headers,
                timeout=(10, 60),
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"{method} request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} returned a non-JSON response"
            ) from e
        if not isinstance(body, dict):
            raise TransportError(f"{method} returned a malformed response")

        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                code = error.get("code", 0)
                message = error.get("message") or "Unknown error"
            else:
                code, message = 0, str(error)
            try:
                code = int(code)
            except (TypeError, ValueError):
                code = 0
            raise FramerApiError(code, str(message))

        return body.get("result")

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self, project_url: str) -> str:
        """
        Open an API session for a project and return its session id.
        """
        result = self._rpc_request("connect", {"projectUrl": project_url})
        session_id = (
            result.get("sessionId") if isinstance(result, dict) else result
        )
        if not session_id:
            raise TransportError("connect did not return a session id")
        return str(session_id)

    def disconnect(self, session_id: str) -> None:
        """
        Release an API session.
        """
        self._rpc_request("disconnect", session_id=session_id)

    # ------------------------------------------------------------------
    # Project operations
    # ------------------------------------------------------------------

    def get_project_info(self, session_id: str) -> Any:
        return self._rpc_request("getProjectInfo", session_id=session_id)

    def get_changed_paths(self, session_id: str) -> Any:
        """
        Get added, removed, and modified paths since the last publish.
        """
        return self._rpc_request("getChangedPaths", session_id=session_id)

    def get_change_contributors(
        self,
        session_id: str,
        from_version: int | None = None,
        to_version: int | None = None,
    ) -> Any:
        """
        Get contributors between two versions. None means the API default.
        """
        params: dict[str, Any] = {}
        if from_version is not None:
            params["fromVersion"] = from_version
        if to_version is not None:
            params["toVersion"] = to_version
        return self._rpc_request(
            "getChangeContributors", params, session_id=session_id
        )

    def publish(self, session_id: str) -> Any:
        """
        Create a new preview deployment.
        """
        return self._rpc_request("publish", session_id=session_id)

    def deploy(self, session_id: str, deployment_id: str) -> Any:
        """
        Promote a deployment to production.
        """
        return self._rpc_request(
            "deploy", {"deploymentId": deployment_id}, session_id=session_id
        )

    # ------------------------------------------------------------------
    # CMS operations
    # ------------------------------------------------------------------

    def create_managed_collection(self, session_id: str, name: str) -> Any:
        return self._rpc_request(
            "createManagedCollection", {"name": name}, session_id=session_id
        )

    def get_collections(self, session_id: str) -> list[dict]:
        result = self._rpc_request("getCollections", session_id=session_id)
        return result if isinstance(result, list) else []

    def get_collection(
        self, session_id: str, collection_id: str
    ) -> dict | None:
        """
        Get a collection by id, or None if it does not exist.
        """
        result = self._rpc_request(
            "getCollection",
            {"collectionId": collection_id},
            session_id=session_id,
        )
        return result if isinstance(result, dict) else None

    def get_collection_items(
        self, session_id: str, collection_id: str
    ) -> list[dict]:
        result = self._rpc_request(
            "getCollectionItems",
            {"collectionId": collection_id},
            session_id=session_id,
        )
        return result if isinstance(result, list) else []

    def add_collection_items(
        self, session_id: str, collection_id: str, items: list[dict]
    ) -> Any:
        """
        Add or update items. Items with an ``id`` update, others create.

        The returned list may be empty or partial; callers must not rely
        on it to confirm every item.
        """
        return self._rpc_request(
            "addCollectionItems",
            {"collectionId": collection_id, "items": items},
            session_id=session_id,
        )

    def remove_collection_items(
        self, session_id: str, collection_id: str, item_ids: list[str]
    ) -> Any:
        return self._rpc_request(
            "removeCollectionItems",
            {"collectionId": collection_id, "itemIds": item_ids},
            session_id=session_id,
        )

    def get_collection_fields(
        self, session_id: str, collection_id: str
    ) -> list[dict]:
        result = self._rpc_request(
            "getCollectionFields",
            {"collectionId": collection_id},
            session_id=session_id,
        )
        return result if isinstance(result, list) else []

    def add_collection_fields(
        self, session_id: str, collection_id: str, fields: list[dict]
    ) -> list[dict]:
        result = self._rpc_request(
            "addCollectionFields",
            {"collectionId": collection_id, "fields": fields},
            session_id=session_id,
        )
        return result if isinstance(result, list) else []
