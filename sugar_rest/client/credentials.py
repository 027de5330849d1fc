"""Session state for a single client instance."""

import threading

from ..core.models import TokenPair


class CredentialStore:
    """
    Holds the client identity and the current token pair.

    Only the AuthManager writes to the store. The token pair is swapped
    as a single value so readers never see a mixed pair.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens = TokenPair()
        self._client_id = "sugar"
        self._client_secret = ""
        self._platform = "base"

    @property
    def tokens(self) -> TokenPair:
        with self._lock:
            return self._tokens

    @property
    def access_token(self) -> str:
        return self.tokens.access_token

    @property
    def refresh_token(self) -> str:
        return self.tokens.refresh_token

    @property
    def has_access_token(self) -> bool:
        return self.tokens.is_authenticated

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def client_secret(self) -> str:
        return self._client_secret

    @property
    def platform(self) -> str:
        return self._platform

    def set_client(self, client_id: str, client_secret: str, platform: str) -> None:
        """Record the OAuth client identity used for login and refresh."""
        with self._lock:
            self._client_id = client_id
            self._client_secret = client_secret
            self._platform = platform

    def replace_tokens(self, tokens: TokenPair) -> None:
        """Replace the current token pair with a new one."""
        with self._lock:
            self._tokens = tokens

    def refresh_grant_body(self) -> dict[str, str]:
        """Build the token endpoint body for a refresh grant."""
        with self._lock:
            return {
                "grant_type": "refresh_token",
                "refresh_token": self._tokens.refresh_token,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            }
