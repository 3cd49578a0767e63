"""
tests.test_lldap_directory

LLDAP GraphQL lookup: login/token handling and found / not-found / failure mapping.
"""

from __future__ import annotations

import json
import time
from typing import Any

import httpx
import jwt
import pytest

from directory_authz.access.errors import AccessLookupError
from directory_authz.access.factory import create_access_service
from directory_authz.access.types import Permission
from directory_authz.directory.errors import DirectoryResponseError, DirectoryUnavailableError
from directory_authz.directory.lldap_graphql import (
    LldapCredentials,
    LldapDirectoryLookup,
    LldapGraphQLClient,
    build_lldap_lookup,
)
from directory_authz.directory.types import DirectoryGroup, DirectoryLookup, GroupSummary
from directory_authz.settings import Settings

ENDPOINT = "http://lldap:17170/api/graphql"
LOGIN_URL = "http://lldap:17170/auth/simple/login"

USERS = {
    "alice": {
        "id": "alice",
        "email": "alice@example.com",
        "displayName": "Alice",
        "groups": [{"id": 1, "displayName": "lldap_admin", "uuid": "uuid-admin"}],
    }
}
GROUPS = [
    {"id": 1, "displayName": "lldap_admin", "uuid": "uuid-admin"},
    {"id": 7, "displayName": "users", "uuid": "uuid-users"},
]


def _token(exp: float | None) -> str:
    claims: dict[str, Any] = {"sub": "admin"}
    if exp is not None:
        claims["exp"] = int(exp)
    return jwt.encode(claims, "lldap-secret", algorithm="HS256")


class FakeLldap:
    def __init__(self, *, token_exp: float | None = None) -> None:
        self.logins = 0
        self.queries: list[str] = []
        self.token_exp = token_exp if token_exp is not None else time.time() + 3600
        self.graphql_status = 200
        self.login_status = 200
        self.reject_next_with_401 = False
        self.raise_transport_error = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.raise_transport_error:
            raise httpx.ConnectError("connection refused", request=request)

        if str(request.url) == LOGIN_URL:
            self.logins += 1
            body = json.loads(request.content)
            assert body == {"username": "admin", "password": "secret"}
            if self.login_status != 200:
                return httpx.Response(self.login_status)
            return httpx.Response(200, json={"token": _token(self.token_exp)})

        assert str(request.url) == ENDPOINT
        assert request.headers["Authorization"].startswith("Bearer ")
        if self.reject_next_with_401:
            self.reject_next_with_401 = False
            return httpx.Response(401)
        if self.graphql_status != 200:
            return httpx.Response(self.graphql_status)

        body = json.loads(request.content)
        query: str = body["query"]
        variables: dict[str, Any] = body["variables"]
        self.queries.append(query.split("(")[0].split("{")[0].strip())

        if "GetUser" in query:
            user = USERS.get(variables["userId"])
            if user is None:
                return httpx.Response(
                    200,
                    json={
                        "data": None,
                        "errors": [{"message": f"Entity not found: No such user: '{variables['userId']}'"}],
                    },
                )
            return httpx.Response(200, json={"data": {"user": user}})
        if "ListGroups" in query:
            return httpx.Response(200, json={"data": {"groups": GROUPS}})
        if "GetGroup" in query:
            group = next(g for g in GROUPS if g["id"] == variables["groupId"])
            return httpx.Response(200, json={"data": {"group": group}})
        if "apiVersion" in query:
            return httpx.Response(200, json={"data": {"apiVersion": "0.5"}})
        return httpx.Response(200, json={"errors": [{"message": "unknown query"}]})


def _lookup(fake: FakeLldap) -> tuple[LldapDirectoryLookup, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    client = LldapGraphQLClient(
        credentials=LldapCredentials(endpoint=ENDPOINT, user="admin", password="secret"),
        http=http,
    )
    return LldapDirectoryLookup(client=client), http


@pytest.mark.asyncio
async def test_get_principal_maps_groups_by_uuid() -> None:
    fake = FakeLldap()
    lookup, http = _lookup(fake)
    async with http:
        user = await lookup.get_principal("alice")

    assert isinstance(lookup, DirectoryLookup)
    assert user is not None
    assert user.id == "alice"
    assert user.email == "alice@example.com"
    assert user.groups == (GroupSummary(id="uuid-admin", display_name="lldap_admin"),)
    assert user.group_names == ["lldap_admin"]


@pytest.mark.asyncio
async def test_missing_principal_is_none() -> None:
    lookup, http = _lookup(FakeLldap())
    async with http:
        assert await lookup.get_principal("nobody") is None


@pytest.mark.asyncio
async def test_get_group_resolves_uuid() -> None:
    fake = FakeLldap()
    lookup, http = _lookup(fake)
    async with http:
        group = await lookup.get_group("uuid-users")
        missing = await lookup.get_group("uuid-unknown")

    assert group == DirectoryGroup(id="uuid-users", display_name="users")
    assert missing is None
    assert fake.queries == ["query ListGroups", "query GetGroup", "query ListGroups"]


@pytest.mark.asyncio
async def test_token_is_reused_until_expiry() -> None:
    fake = FakeLldap()
    lookup, http = _lookup(fake)
    async with http:
        await lookup.get_principal("alice")
        await lookup.get_principal("alice")
        assert await lookup.ping() == "0.5"
    assert fake.logins == 1


@pytest.mark.asyncio
async def test_token_close_to_expiry_is_refreshed() -> None:
    # Inside the refresh margin: every request logs in again.
    fake = FakeLldap(token_exp=time.time() + 10)
    lookup, http = _lookup(fake)
    async with http:
        await lookup.get_principal("alice")
        await lookup.get_principal("alice")
    assert fake.logins == 2


@pytest.mark.asyncio
async def test_rejected_token_triggers_single_relogin() -> None:
    fake = FakeLldap()
    lookup, http = _lookup(fake)
    async with http:
        await lookup.get_principal("alice")
        fake.reject_next_with_401 = True
        user = await lookup.get_principal("alice")
    assert user is not None
    assert fake.logins == 2


@pytest.mark.asyncio
async def test_failed_login_is_unavailable() -> None:
    fake = FakeLldap()
    fake.login_status = 401
    lookup, http = _lookup(fake)
    async with http:
        with pytest.raises(DirectoryUnavailableError, match="authentication failed"):
            await lookup.get_principal("alice")


@pytest.mark.asyncio
async def test_transport_error_is_unavailable() -> None:
    fake = FakeLldap()
    fake.raise_transport_error = True
    lookup, http = _lookup(fake)
    async with http:
        with pytest.raises(DirectoryUnavailableError):
            await lookup.get_principal("alice")


@pytest.mark.asyncio
async def test_server_error_is_unavailable() -> None:
    fake = FakeLldap()
    fake.graphql_status = 502
    lookup, http = _lookup(fake)
    async with http:
        with pytest.raises(DirectoryUnavailableError):
            await lookup.get_group("uuid-users")


@pytest.mark.asyncio
async def test_other_graphql_errors_are_response_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == LOGIN_URL:
            return httpx.Response(200, json={"token": _token(None)})
        return httpx.Response(200, json={"data": None, "errors": [{"message": "permission denied"}]})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = LldapGraphQLClient(
        credentials=LldapCredentials(endpoint=ENDPOINT, user="admin", password="secret"),
        http=http,
    )
    async with http:
        with pytest.raises(DirectoryResponseError, match="permission denied"):
            await LldapDirectoryLookup(client=client).get_principal("alice")


@pytest.mark.asyncio
async def test_malformed_user_payload_is_response_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == LOGIN_URL:
            return httpx.Response(200, json={"token": "not-a-jwt"})
        return httpx.Response(200, json={"data": {"user": {"id": "alice", "groups": [{}]}}})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = LldapGraphQLClient(
        credentials=LldapCredentials(endpoint=ENDPOINT, user="admin", password="secret"),
        http=http,
    )
    async with http:
        with pytest.raises(DirectoryResponseError, match="Malformed"):
            await LldapDirectoryLookup(client=client).get_principal("alice")


@pytest.mark.asyncio
async def test_non_object_login_body_is_response_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == LOGIN_URL:
            return httpx.Response(200, json=["not", "an", "object"])
        return httpx.Response(200, json={"data": {"user": USERS["alice"]}})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = LldapGraphQLClient(
        credentials=LldapCredentials(endpoint=ENDPOINT, user="admin", password="secret"),
        http=http,
    )
    async with http:
        with pytest.raises(DirectoryResponseError, match="non-object"):
            await LldapDirectoryLookup(client=client).get_principal("alice")

        svc = create_access_service(
            directory=LldapDirectoryLookup(client=client), directory_type="lldap-graphql"
        )
        with pytest.raises(AccessLookupError):
            await svc.check("alice", Permission.USER_LIST)


@pytest.mark.asyncio
async def test_non_list_errors_field_is_response_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == LOGIN_URL:
            return httpx.Response(200, json={"token": _token(None)})
        return httpx.Response(200, json={"data": None, "errors": 42})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = LldapGraphQLClient(
        credentials=LldapCredentials(endpoint=ENDPOINT, user="admin", password="secret"),
        http=http,
    )
    async with http:
        with pytest.raises(DirectoryResponseError, match="non-list"):
            await LldapDirectoryLookup(client=client).get_group("uuid-users")


def test_credentials_repr_hides_password() -> None:
    creds = LldapCredentials(endpoint=ENDPOINT, user="admin", password="secret")
    assert "secret" not in repr(creds)
    assert creds.login_url == LOGIN_URL


@pytest.mark.asyncio
async def test_build_from_settings() -> None:
    fake = FakeLldap()
    settings = Settings(
        env="test",
        lldap_graphql_endpoint=ENDPOINT,
        lldap_graphql_user="admin",
        lldap_graphql_password="secret",
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake.handler)) as http:
        lookup = build_lldap_lookup(settings, http=http)
        assert await lookup.get_principal("alice") is not None
    assert "secret" not in repr(settings)
