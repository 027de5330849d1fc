"""
SugarCRM Client

Wrapper for the SugarCRM v10 REST API (Sugar 7.x and upwards).
Every operation is a thin passthrough to the authenticated call pipeline.
"""

import logging
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from ..core.models import API_PREFIX, CallEnvelope, HttpMethod
from .auth import AuthManager, AuthState
from .credentials import CredentialStore
from .dispatcher import RequestDispatcher
from .retry import RetryOrchestrator

logger = logging.getLogger(__name__)

LOG_LEVELS = frozenset({"debug", "info", "warn", "deprecated", "error", "fatal", "security"})


def _segment(value: str) -> str:
    """Percent-encode a single path segment (module name or record id)."""
    return quote(str(value), safe="")


def _with_query(path: str, params: dict[str, Any], optional: dict[str, Any]) -> str:
    """Append query parameters to a path; optional ones only when set."""
    params = dict(params)
    params.update({k: v for k, v in optional.items() if v is not None and v != ""})
    return f"{path}?{urlencode(params)}"


class SugarClient:
    """
    Client for one SugarCRM instance and one user session.

    Features:
    - OAuth2 password-grant login and refresh-token renewal
    - Transparent single retry when the access token has expired
    - Session affinity through a shared cookie jar
    - Record CRUD, favorites, search and server-side logging
    """

    def __init__(
        self,
        endpoint: str,
        username: str | None = None,
        password: str | None = None,
        client_id: str = "sugar",
        client_secret: str = "",
        platform: str = "base",
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
        connect_timeout_seconds: float = 10.0,
    ):
        """
        Initialize the client, logging in when a username and password are given.

        Args:
            endpoint: URL of the Sugar instance (e.g. https://instance.sugarondemand.com)
            username: Optional username to log in with immediately
            password: Optional password to log in with immediately
            client_id: OAuth client identifier
            client_secret: OAuth client secret
            platform: Sugar platform for the session
            http_client: Optional httpx client (created if None)
            timeout_seconds: Read/write timeout in seconds
            connect_timeout_seconds: Connect timeout in seconds
        """
        self.credentials = CredentialStore()
        self.dispatcher = RequestDispatcher(
            endpoint,
            self.credentials,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
            connect_timeout_seconds=connect_timeout_seconds,
        )
        self.auth = AuthManager(self.dispatcher, self.credentials)
        self.orchestrator = RetryOrchestrator(self.dispatcher, self.auth)

        if username is not None and password is not None:
            try:
                self.login(username, password, client_id, client_secret, platform)
            except BaseException:
                self.close()
                raise

    @property
    def endpoint(self) -> str:
        return self.dispatcher.endpoint

    @property
    def is_authenticated(self) -> bool:
        return self.auth.state is AuthState.AUTHENTICATED

    def close(self) -> None:
        """Close the underlying HTTP client if we created it."""
        self.dispatcher.close()

    def __enter__(self):
        """Context manager support."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager cleanup."""
        self.close()
        return False

    # ===== SESSION =====

    def call(self, path: str, method: HttpMethod | str, body: Any = None) -> Any:
        """
        Perform a REST call.

        Args:
            path: Relative path to the REST call (eg. /rest/v10/Accounts),
                already percent-encoded
            method: HTTP verb (GET, POST, PUT, DELETE)
            body: Optional body, serialized to JSON for POST and PUT

        Returns:
            Decoded JSON result
        """
        if not isinstance(method, HttpMethod):
            method = HttpMethod(method.upper())
        return self.orchestrator.execute(CallEnvelope(path, method, body))

    def login(
        self,
        username: str,
        password: str,
        client_id: str = "sugar",
        client_secret: str = "",
        platform: str = "base",
    ) -> None:
        """Log in and retrieve access and refresh tokens."""
        self.auth.login(username, password, client_id, client_secret, platform)

    def refresh(self) -> None:
        """Retrieve a new token pair with the current refresh token."""
        self.auth.refresh()

    def me(self) -> Any:
        """Get the current user and their preferences."""
        return self.call(f"{API_PREFIX}/me", HttpMethod.GET)

    # ===== SEARCH =====

    def search(
        self,
        query: str,
        max_num: int = 20,
        offset: int = 0,
        fields: str | None = None,
        order_by: str | None = None,
        favorites: int = 0,
        my_items: int = 0,
    ) -> Any:
        """
        Perform a global search.

        Args:
            query: Query to search on
            max_num: Maximum amount of records to return
            offset: Amount of records to skip
            fields: Comma delimited list of fields to retrieve
            order_by: Comma delimited sort list (eg. name:DESC,date_modified:ASC)
            favorites: 1 to only select favorite records
            my_items: 1 to only select records assigned to the current user

        Returns:
            Result with next_offset and records
        """
        return self._search(
            f"{API_PREFIX}/search", query, max_num, offset, fields, order_by, favorites, my_items
        )

    def search_users(
        self,
        query: str,
        max_num: int = 20,
        offset: int = 0,
        fields: str | None = None,
        order_by: str | None = None,
        favorites: int = 0,
        my_items: int = 0,
    ) -> Any:
        """Search the Users module; same parameters as search()."""
        return self._search(
            f"{API_PREFIX}/Users", query, max_num, offset, fields, order_by, favorites, my_items
        )

    def _search(self, path, query, max_num, offset, fields, order_by, favorites, my_items) -> Any:
        params = {
            "q": query,
            "max_num": max_num,
            "offset": offset,
            "favorites": favorites,
            "my_items": my_items,
        }
        optional = {"fields": fields, "orderBy": order_by}
        return self.call(_with_query(path, params, optional), HttpMethod.GET)

    def search_module(
        self,
        module: str,
        query: str,
        max_num: int = 20,
        offset: int = 0,
        fields: str | None = None,
        view: str | None = None,
        order_by: str | None = None,
        deleted: int = 0,
    ) -> Any:
        """
        Search records of one module.

        Args:
            module: Module name (eg. Accounts)
            query: Search query
            max_num: Maximum amount of records to return
            offset: Amount of records to skip
            fields: Comma delimited list of fields to retrieve
            view: Server-side view ("record", "list") used instead of fields
            order_by: Comma delimited sort list
            deleted: 1 to include deleted records

        Returns:
            Result with next_offset and records
        """
        params = {
            "q": query,
            "max_num": max_num,
            "offset": offset,
            "deleted": deleted,
        }
        optional = {"fields": fields, "view": view, "orderBy": order_by}
        return self.call(
            _with_query(f"{API_PREFIX}/{_segment(module)}", params, optional), HttpMethod.GET
        )

    # ===== LOGGING =====

    def log_message(self, message: str, level: str) -> Any:
        """
        Write a message to the Sugar log.

        Args:
            message: Message text
            level: One of debug, info, warn, deprecated, error, fatal, security

        Raises:
            ValueError: If the level is unknown
        """
        if level not in LOG_LEVELS:
            raise ValueError(
                f"Unknown log level '{level}'. Must be one of: {', '.join(sorted(LOG_LEVELS))}"
            )
        return self.call(f"{API_PREFIX}/logger", HttpMethod.POST, {"level": level, "message": message})

    # ===== RECORDS =====

    def create_record(self, module: str, record: dict[str, Any]) -> Any:
        """
        Create a record.

        Args:
            module: Module name (eg. Accounts, Contacts)
            record: Record fields, optionally with link operations
                (eg. {"name": "Acme", "contacts": {"add": ["id1"]}})

        Returns:
            The created record
        """
        return self.call(f"{API_PREFIX}/{_segment(module)}", HttpMethod.POST, record)

    def retrieve_record(self, module: str, record_id: str) -> Any:
        """Retrieve a record by id."""
        return self.call(self._record_path(module, record_id), HttpMethod.GET)

    def update_record(self, module: str, record_id: str, data: dict[str, Any]) -> Any:
        """Update a record; returns the updated record."""
        return self.call(self._record_path(module, record_id), HttpMethod.PUT, data)

    def delete_record(self, module: str, record_id: str) -> Any:
        """Delete a record."""
        return self.call(self._record_path(module, record_id), HttpMethod.DELETE)

    def set_favorite(self, module: str, record_id: str) -> Any:
        """Mark a record as favorite for the current user."""
        return self.call(f"{self._record_path(module, record_id)}/favorite", HttpMethod.PUT)

    def unset_favorite(self, module: str, record_id: str) -> Any:
        """Unmark a record as favorite for the current user."""
        return self.call(f"{self._record_path(module, record_id)}/favorite", HttpMethod.DELETE)

    def _record_path(self, module: str, record_id: str) -> str:
        return f"{API_PREFIX}/{_segment(module)}/{_segment(record_id)}"
