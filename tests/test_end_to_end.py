"""End-to-end tests against an in-process fake Sugar instance."""

import json

import pytest
import httpx

from sugar_rest import SugarClient, SessionExpired, ApiError, TransportError


class FakeSugar:
    """
    Minimal Sugar v10 server for httpx.MockTransport.

    Issues numbered token pairs, expires access tokens on demand and
    sets a routing cookie on login.
    """

    def __init__(self):
        self.generation = 0
        self.valid_access = set()
        self.valid_refresh = set()
        self.requests: list[httpx.Request] = []

    def issue(self):
        self.generation += 1
        access = f"access-{self.generation}"
        refresh = f"refresh-{self.generation}"
        self.valid_access = {access}
        self.valid_refresh = {refresh}
        return {"access_token": access, "refresh_token": refresh, "expires_in": 3600}

    def expire_access_token(self):
        self.valid_access = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/rest/v10/oauth2/token/":
            body = json.loads(request.content)
            if body["grant_type"] == "password":
                if body["password"] != "secret":
                    return httpx.Response(
                        401, json={"error": "need_login", "error_message": "Invalid credentials"}
                    )
                return httpx.Response(
                    200, json=self.issue(), headers={"Set-Cookie": "BACKEND=node-7; Path=/"}
                )
            if body["refresh_token"] not in self.valid_refresh:
                return httpx.Response(
                    400, json={"error": "invalid_grant", "error_message": "Invalid refresh token"}
                )
            return httpx.Response(200, json=self.issue())

        if request.headers.get("oauth-token") not in self.valid_access:
            return httpx.Response(
                401,
                json={"error": "invalid_grant", "error_message": "The access token provided is invalid."},
            )

        if path == "/rest/v10/me":
            return httpx.Response(200, json={"current_user": {"user_name": "admin"}})
        if path == "/rest/v10/Accounts" and request.method == "POST":
            record = json.loads(request.content)
            if "name" not in record:
                return httpx.Response(
                    422, json={"error": "missing_parameter", "error_message": "Required field missing"}
                )
            return httpx.Response(200, json={"id": "acc-1", **record})
        return httpx.Response(404, json={"error": "not_found", "error_message": "Could not find record"})


@pytest.fixture
def server():
    return FakeSugar()


@pytest.fixture
def client(server):
    http_client = httpx.Client(transport=httpx.MockTransport(server.handler))
    sugar = SugarClient("https://crm.example.com", http_client=http_client)
    yield sugar
    http_client.close()


def test_login_then_me_sends_token_and_cookie(client, server):
    """Test the token and the affinity cookie on calls after login."""
    client.login("admin", "secret")

    assert client.me() == {"current_user": {"user_name": "admin"}}

    login_request, me_request = server.requests
    assert login_request.headers["content-type"] == "application/json;charset=utf-8"
    assert "oauth-token" not in login_request.headers
    assert me_request.headers["oauth-token"] == "access-1"
    assert "BACKEND=node-7" in me_request.headers["cookie"]


def test_expired_access_token_is_recovered(client, server):
    """Test that the caller receives the retried result after a refresh."""
    client.login("admin", "secret")
    server.expire_access_token()

    result = client.create_record("Accounts", {"name": "Acme"})

    assert result == {"id": "acc-1", "name": "Acme"}
    paths = [r.url.path for r in server.requests]
    assert paths == [
        "/rest/v10/oauth2/token/",
        "/rest/v10/Accounts",
        "/rest/v10/oauth2/token/",
        "/rest/v10/Accounts",
    ]
    assert server.requests[-1].headers["oauth-token"] == "access-2"
    assert json.loads(server.requests[-1].content) == {"name": "Acme"}
    # The refresh kept the session on the same backend node
    assert "BACKEND=node-7" in server.requests[2].headers["cookie"]


def test_rejected_refresh_token_expires_session(client, server):
    """Test that a refresh token invalidated server-side is fatal."""
    client.login("admin", "secret")
    server.expire_access_token()
    server.valid_refresh = set()

    with pytest.raises(SessionExpired):
        client.me()

    with pytest.raises(SessionExpired):
        client.me()

    # One refresh attempt in total; the second call is not recovered
    token_calls = [r for r in server.requests if r.url.path == "/rest/v10/oauth2/token/"]
    assert len(token_calls) == 2

    client.login("admin", "secret")
    assert client.me() == {"current_user": {"user_name": "admin"}}


def test_validation_error_surfaces(client, server):
    """Test that CRM errors are classified with their code and message."""
    client.login("admin", "secret")

    with pytest.raises(ApiError) as exc_info:
        client.create_record("Accounts", {"description": "no name"})

    assert exc_info.value.code == "missing_parameter"
    assert str(exc_info.value) == "Required field missing"
    assert exc_info.value.status_code == 422


def test_bad_password(client, server):
    """Test that a failed login leaves the client unauthenticated."""
    with pytest.raises(ApiError) as exc_info:
        client.login("admin", "wrong")

    assert exc_info.value.code == "need_login"
    assert not client.is_authenticated


def test_undecodable_response_is_transport_error(server):
    """Test that a success body that is not UTF-8 surfaces as TransportError."""
    def handler(request):
        if request.url.path == "/rest/v10/oauth2/token/":
            return server.handler(request)
        return httpx.Response(200, content=b'{"name": "\xff\xfe"}')

    with httpx.Client(transport=httpx.MockTransport(handler)) as http_client:
        sugar = SugarClient("https://crm.example.com", "admin", "secret", http_client=http_client)

        with pytest.raises(TransportError):
            sugar.me()
