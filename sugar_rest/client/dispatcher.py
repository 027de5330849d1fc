"""
Request Dispatcher

Single choke point through which every SugarCRM API call passes.
Attaches the session token, serializes bodies and decodes responses.
"""

import logging
from typing import Any

import httpx

from ..core.errors import AuthenticationRequired
from ..core.models import AUTH_HEADER, CONTENT_TYPE, CallEnvelope
from .credentials import CredentialStore

logger = logging.getLogger(__name__)


class TransportFailure(Exception):
    """
    Raised by the dispatcher when a call does not succeed.

    Consumed by the error classifier; callers of SugarClient never see it.
    `body` is None when no HTTP response was received.
    """

    def __init__(
        self,
        reason: str,
        status_code: int | None = None,
        body: str | None = None,
        access_token: str = "",
    ):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
        self.body = body
        self.access_token = access_token


class RequestDispatcher:
    """
    Issues HTTP requests against one Sugar instance.

    Features:
    - Token precondition check before any network I/O
    - oauth-token header on authenticated calls
    - Cookie jar shared across calls for backend session affinity
    - Connect/read deadline on every request
    """

    def __init__(
        self,
        endpoint: str,
        credentials: CredentialStore,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
        connect_timeout_seconds: float = 10.0,
    ):
        """
        Initialize the dispatcher.

        Args:
            endpoint: Base URL of the Sugar instance
            credentials: Session state for this client
            http_client: Optional httpx client (created if None)
            timeout_seconds: Read/write/pool timeout in seconds
            connect_timeout_seconds: Connect timeout in seconds
        """
        self._endpoint = endpoint.rstrip("/")
        self.credentials = credentials
        self.timeout_seconds = timeout_seconds
        self.connect_timeout_seconds = connect_timeout_seconds

        # Track if we own the HTTP client (for cleanup)
        self._owns_client = http_client is None

        if http_client is None:
            self.http_client = httpx.Client(
                timeout=httpx.Timeout(timeout_seconds, connect=connect_timeout_seconds),
            )
        else:
            self.http_client = http_client

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def close(self) -> None:
        """Close the HTTP client if we created it."""
        if self._owns_client and self.http_client:
            self.http_client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def build_url(self, path: str) -> str:
        """
        Build full URL from the endpoint and a relative API path.

        Args:
            path: API path (e.g., "/rest/v10/Accounts")

        Returns:
            Full URL
        """
        return f"{self._endpoint}/{path.lstrip('/')}"

    def send(self, envelope: CallEnvelope) -> Any:
        """
        Perform one HTTP request for the envelope.

        Args:
            envelope: Path, verb and optional body of the call

        Returns:
            Decoded JSON response (None for an empty body)

        Raises:
            AuthenticationRequired: If no access token is held for a
                non-token call; no request is made
            TransportFailure: On a non-2xx response or transport error
        """
        access_token = self.credentials.access_token

        if not envelope.is_token_call and not access_token:
            raise AuthenticationRequired("You must authenticate first")

        headers = {"Content-Type": CONTENT_TYPE}
        if access_token:
            headers[AUTH_HEADER] = access_token

        json_body = None
        if envelope.method.carries_body and envelope.body is not None:
            json_body = envelope.body

        url = self.build_url(envelope.path)
        method = envelope.method.value
        logger.debug(f"{method} {url}")

        try:
            response = self.http_client.request(
                method=method,
                url=url,
                headers=headers,
                json=json_body,
            )
        except httpx.RequestError as e:
            logger.debug(f"{method} {url} failed: {e}")
            raise TransportFailure(
                f"Request failed: {e}", access_token=access_token
            ) from e

        if not 200 <= response.status_code < 300:
            logger.debug(f"{method} {url} returned {response.status_code}")
            raise TransportFailure(
                f"API request failed: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
                access_token=access_token,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise TransportFailure(
                f"Invalid JSON in response from {envelope.path}: {e}",
                status_code=response.status_code,
                access_token=access_token,
            ) from e
