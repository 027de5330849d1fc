"""
Auth Manager

OAuth2 password-grant login and refresh-token flows against the
Sugar token endpoint.
"""

import logging
import threading
from enum import Enum

from ..core.errors import ApiError, NoRefreshToken, SugarRestError
from ..core.models import TOKEN_PATH, CallEnvelope, Credentials, HttpMethod, TokenPair
from .classifier import to_error
from .credentials import CredentialStore
from .dispatcher import RequestDispatcher, TransportFailure

logger = logging.getLogger(__name__)


class AuthState(Enum):
    """Session lifecycle of a client instance."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    EXPIRED = "expired"


class AuthManager:
    """
    Owns the token lifecycle of one client.

    The AuthManager is the only writer of the CredentialStore's token
    pair. Refreshes are serialized: Sugar refresh tokens are single-use,
    so two refreshes must never run with the same stored token.
    """

    def __init__(self, dispatcher: RequestDispatcher, credentials: CredentialStore):
        self.dispatcher = dispatcher
        self.credentials = credentials
        self.state = AuthState.UNAUTHENTICATED
        self._refresh_lock = threading.Lock()

    def login(
        self,
        username: str,
        password: str,
        client_id: str = "sugar",
        client_secret: str = "",
        platform: str = "base",
    ) -> None:
        """
        Log in with the password grant and store the returned tokens.

        Args:
            username: Sugar username
            password: Sugar password
            client_id: OAuth client identifier
            client_secret: OAuth client secret
            platform: Sugar platform for the session

        Raises:
            SessionExpired, ApiError, TransportError: If the login call fails
        """
        credentials = Credentials(
            username=username,
            password=password,
            client_id=client_id,
            client_secret=client_secret,
            platform=platform,
        )
        envelope = CallEnvelope(TOKEN_PATH, HttpMethod.POST, credentials.password_grant_body())

        logger.info(f"Logging in as '{username}' (platform: {platform})")
        tokens = self._request_tokens(envelope)

        self.credentials.set_client(client_id, client_secret, platform)
        self.credentials.replace_tokens(tokens)
        self.state = AuthState.AUTHENTICATED
        logger.info(f"Logged in as '{username}'")

    def refresh(self, stale_access_token: str | None = None) -> None:
        """
        Exchange the stored refresh token for a new token pair.

        Args:
            stale_access_token: Access token a failed call was sent with.
                If the store already holds a different token, another
                caller refreshed in the meantime and nothing is done.

        Raises:
            NoRefreshToken: If no refresh token is stored
            SessionExpired: If Sugar rejects the refresh token
            ApiError, TransportError: If the refresh call fails otherwise
        """
        with self._refresh_lock:
            current = self.credentials.tokens
            if stale_access_token is not None and current.access_token != stale_access_token:
                logger.debug("Tokens were refreshed by another call; skipping refresh")
                return

            if not current.refresh_token:
                raise NoRefreshToken("No refresh token found. Unable to perform a refresh")

            envelope = CallEnvelope(
                TOKEN_PATH, HttpMethod.POST, self.credentials.refresh_grant_body()
            )

            self.state = AuthState.REFRESHING
            logger.info("Refreshing access token")
            try:
                tokens = self._request_tokens(envelope)
            except SugarRestError:
                self.state = AuthState.EXPIRED
                logger.error("Token refresh failed; a new login is required")
                raise

            self.credentials.replace_tokens(tokens)
            self.state = AuthState.AUTHENTICATED
            logger.info("Access token refreshed")

    def _request_tokens(self, envelope: CallEnvelope) -> TokenPair:
        try:
            result = self.dispatcher.send(envelope)
        except TransportFailure as failure:
            raise to_error(failure) from failure.__cause__

        try:
            return TokenPair.from_response(result)
        except ValueError as e:
            raise ApiError(str(e), code="invalid_token_response") from e
