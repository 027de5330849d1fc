"""Tests for the auth manager."""

import json
import threading
import time

import pytest
import httpx
from unittest.mock import Mock

from sugar_rest.core.errors import ApiError, NoRefreshToken, SessionExpired, TransportError
from sugar_rest.core.models import TOKEN_PATH, TokenPair
from sugar_rest.client.auth import AuthManager, AuthState
from sugar_rest.client.credentials import CredentialStore
from sugar_rest.client.dispatcher import RequestDispatcher


def make_response(status_code, payload):
    """Build a mock httpx response with a JSON payload."""
    response = Mock()
    response.status_code = status_code
    response.text = json.dumps(payload)
    response.content = response.text.encode()
    response.json.return_value = payload
    return response


def tokens(n):
    return make_response(200, {"access_token": f"access-{n}", "refresh_token": f"refresh-{n}"})


@pytest.fixture
def mock_http_client():
    """Create a mock HTTP client."""
    return Mock(spec=httpx.Client)


@pytest.fixture
def credentials():
    return CredentialStore()


@pytest.fixture
def auth(mock_http_client, credentials):
    """Create an auth manager over a mocked transport."""
    dispatcher = RequestDispatcher("https://crm.example.com", credentials, http_client=mock_http_client)
    return AuthManager(dispatcher, credentials)


# ===== Login Tests =====

def test_login_stores_tokens(auth, credentials, mock_http_client):
    """Test that login posts a password grant and stores the pair."""
    mock_http_client.request.return_value = tokens(1)

    auth.login("admin", "secret", client_id="app", client_secret="shh", platform="mobile")

    call_kwargs = mock_http_client.request.call_args[1]
    assert call_kwargs["method"] == "POST"
    assert call_kwargs["url"] == f"https://crm.example.com{TOKEN_PATH}"
    assert call_kwargs["json"] == {
        "grant_type": "password",
        "client_id": "app",
        "client_secret": "shh",
        "username": "admin",
        "password": "secret",
        "platform": "mobile",
    }
    assert credentials.tokens == TokenPair("access-1", "refresh-1")
    assert credentials.client_id == "app"
    assert credentials.client_secret == "shh"
    assert auth.state is AuthState.AUTHENTICATED


def test_login_failure_stays_unauthenticated(auth, credentials, mock_http_client):
    """Test that a rejected login raises ApiError and stores nothing."""
    mock_http_client.request.return_value = make_response(
        401, {"error": "need_login", "error_message": "Invalid credentials"}
    )

    with pytest.raises(ApiError) as exc_info:
        auth.login("admin", "wrong")

    assert exc_info.value.code == "need_login"
    assert str(exc_info.value) == "Invalid credentials"
    assert auth.state is AuthState.UNAUTHENTICATED
    assert not credentials.has_access_token
    assert mock_http_client.request.call_count == 1


def test_login_network_failure(auth, mock_http_client):
    """Test that network failures during login are transport errors."""
    mock_http_client.request.side_effect = httpx.ConnectTimeout("timed out")

    with pytest.raises(TransportError):
        auth.login("admin", "secret")

    assert auth.state is AuthState.UNAUTHENTICATED


def test_login_incomplete_token_response(auth, credentials, mock_http_client):
    """Test that a response without both tokens is rejected."""
    mock_http_client.request.return_value = make_response(200, {"access_token": "only"})

    with pytest.raises(ApiError) as exc_info:
        auth.login("admin", "secret")

    assert exc_info.value.code == "invalid_token_response"
    assert not credentials.has_access_token


# ===== Refresh Tests =====

def test_refresh_without_login(auth, mock_http_client):
    """Test that refresh without a refresh token fails without I/O."""
    with pytest.raises(NoRefreshToken):
        auth.refresh()

    mock_http_client.request.assert_not_called()


def test_refresh_replaces_pair(auth, credentials, mock_http_client):
    """Test that refresh posts a refresh grant and swaps the pair."""
    mock_http_client.request.side_effect = [tokens(1), tokens(2)]
    auth.login("admin", "secret", client_id="app", client_secret="shh")

    auth.refresh()

    call_kwargs = mock_http_client.request.call_args[1]
    assert call_kwargs["json"] == {
        "grant_type": "refresh_token",
        "refresh_token": "refresh-1",
        "client_id": "app",
        "client_secret": "shh",
    }
    assert call_kwargs["headers"]["oauth-token"] == "access-1"
    assert credentials.tokens == TokenPair("access-2", "refresh-2")
    assert auth.state is AuthState.AUTHENTICATED


def test_refresh_rejected_expires_session(auth, credentials, mock_http_client):
    """Test that a rejected refresh token is terminal."""
    mock_http_client.request.side_effect = [
        tokens(1),
        make_response(400, {"error": "invalid_grant", "error_message": "Invalid refresh token"}),
    ]
    auth.login("admin", "secret")

    with pytest.raises(SessionExpired) as exc_info:
        auth.refresh()

    assert str(exc_info.value) == "Invalid refresh token"
    assert auth.state is AuthState.EXPIRED
    # The old pair is kept; it is never half-replaced
    assert credentials.tokens == TokenPair("access-1", "refresh-1")


def test_refresh_skipped_when_already_refreshed(auth, credentials, mock_http_client):
    """Test that a stale caller does not refresh again."""
    mock_http_client.request.side_effect = [tokens(1), tokens(2)]
    auth.login("admin", "secret")
    auth.refresh(stale_access_token="access-1")

    auth.refresh(stale_access_token="access-1")

    assert mock_http_client.request.call_count == 2
    assert credentials.tokens == TokenPair("access-2", "refresh-2")


def test_concurrent_refresh_is_single_flight(auth, credentials, mock_http_client):
    """Test that concurrent refreshes for the same stale token refresh once."""
    mock_http_client.request.return_value = tokens(1)
    auth.login("admin", "secret")

    used_refresh_tokens = []

    def slow_refresh(**kwargs):
        used_refresh_tokens.append(kwargs["json"]["refresh_token"])
        time.sleep(0.05)
        return tokens(2)

    mock_http_client.request.side_effect = slow_refresh

    errors = []

    def worker():
        try:
            auth.refresh(stale_access_token="access-1")
        except Exception as e:  # pragma: no cover
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert used_refresh_tokens == ["refresh-1"]
    assert credentials.tokens == TokenPair("access-2", "refresh-2")
