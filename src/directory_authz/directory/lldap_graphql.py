"""
directory_authz.directory.lldap_graphql

LLDAP GraphQL implementation of `DirectoryLookup`.

Responsibilities:
- Log in to LLDAP with the service account and keep the bearer token fresh.
- Run the user/group queries the access engine needs.
- Translate LLDAP answers into "found", "not found" (`None`) or a `DirectoryError`.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import httpx
import jwt

from directory_authz.directory.errors import DirectoryResponseError, DirectoryUnavailableError
from directory_authz.directory.types import DirectoryGroup, DirectoryUser, GroupSummary
from directory_authz.observability.logging import get_logger
from directory_authz.settings import Settings

log = get_logger(__name__)

GET_USER = """
query GetUser($userId: String!) {
  user(userId: $userId) {
    id
    email
    displayName
    groups {
      id
      displayName
      uuid
    }
  }
}
"""

LIST_GROUPS = """
query ListGroups {
  groups {
    id
    displayName
    uuid
  }
}
"""

GET_GROUP = """
query GetGroup($groupId: Int!) {
  group(groupId: $groupId) {
    id
    displayName
    uuid
  }
}
"""

GET_API_VERSION = """
query {
  apiVersion
}
"""

# Refresh this long before the token's `exp`.
TOKEN_EXPIRY_MARGIN_SECONDS = 30
DEFAULT_TOKEN_TTL_SECONDS = 3600


@dataclass(frozen=True, slots=True)
class LldapCredentials:
    endpoint: str
    user: str
    password: str

    @property
    def login_url(self) -> str:
        return self.endpoint.replace("/api/graphql", "/auth/simple/login")

    def __repr__(self) -> str:
        return f"LldapCredentials(endpoint={self.endpoint!r}, user={self.user!r})"


class GraphQLError(DirectoryResponseError):
    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages) or "unknown GraphQL error")
        self.messages = messages

    @property
    def is_not_found(self) -> bool:
        return any("not found" in m.lower() for m in self.messages)


class LldapGraphQLClient:
    """
    Minimal GraphQL client for LLDAP.

    The bearer token is shared by all requests of this client and refreshed under a lock
    so concurrent requests trigger a single login.
    """

    def __init__(self, *, credentials: LldapCredentials, http: httpx.AsyncClient) -> None:
        self._credentials = credentials
        self._http = http
        self._token: str | None = None
        self._token_expiry: float = 0.0
        self._lock = asyncio.Lock()

    def clear_token(self) -> None:
        self._token = None
        self._token_expiry = 0.0

    async def _get_token(self) -> str:
        if self._token_valid():
            return self._token  # type: ignore[return-value]
        async with self._lock:
            # Another task may have refreshed while we waited.
            if self._token_valid():
                return self._token  # type: ignore[return-value]
            token = await self._login()
            self._token = token
            self._token_expiry = _token_expiry(token)
            return token

    def _token_valid(self) -> bool:
        return (
            self._token is not None
            and time.time() < self._token_expiry - TOKEN_EXPIRY_MARGIN_SECONDS
        )

    async def _login(self) -> str:
        try:
            r = await self._http.post(
                self._credentials.login_url,
                json={"username": self._credentials.user, "password": self._credentials.password},
            )
        except httpx.HTTPError as e:
            raise DirectoryUnavailableError(f"LLDAP login request failed: {e}") from e

        if r.status_code != 200:
            raise DirectoryUnavailableError(f"LLDAP authentication failed: HTTP {r.status_code}")
        try:
            body = r.json()
        except ValueError as e:
            raise DirectoryResponseError("LLDAP login returned invalid JSON") from e
        if not isinstance(body, dict):
            raise DirectoryResponseError("LLDAP login returned a non-object payload")
        token = body.get("token")
        if not token:
            raise DirectoryResponseError("No token in LLDAP authentication response")

        log.debug("lldap_login", user=self._credentials.user)
        return str(token)

    async def query(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        r = await self._post(document, variables)
        if r.status_code == 401:
            # Token revoked or expired early; log in again once.
            self.clear_token()
            r = await self._post(document, variables)

        if r.status_code >= 500 or r.status_code == 401:
            raise DirectoryUnavailableError(f"LLDAP GraphQL request failed: HTTP {r.status_code}")
        if r.status_code != 200:
            raise DirectoryResponseError(f"LLDAP GraphQL request failed: HTTP {r.status_code}")

        try:
            payload = r.json()
        except ValueError as e:
            raise DirectoryResponseError("LLDAP GraphQL returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise DirectoryResponseError("LLDAP GraphQL returned a non-object payload")

        errors = payload.get("errors") or []
        if not isinstance(errors, list):
            raise DirectoryResponseError("LLDAP GraphQL returned a non-list errors field")
        if errors:
            raise GraphQLError([str(e.get("message", "")) for e in errors if isinstance(e, dict)])

        data = payload.get("data")
        if not isinstance(data, dict):
            raise DirectoryResponseError("No data in LLDAP GraphQL response")
        return data

    async def _post(self, document: str, variables: dict[str, Any] | None) -> httpx.Response:
        token = await self._get_token()
        try:
            return await self._http.post(
                self._credentials.endpoint,
                headers={"Authorization": f"Bearer {token}"},
                json={"query": document, "variables": variables or {}},
            )
        except httpx.HTTPError as e:
            raise DirectoryUnavailableError(f"LLDAP GraphQL request failed: {e}") from e


class LldapDirectoryLookup:
    """
    `DirectoryLookup` over LLDAP. Group ids exposed to callers are LLDAP group uuids.
    """

    def __init__(self, *, client: LldapGraphQLClient) -> None:
        self._client = client

    async def get_principal(self, user_id: str) -> DirectoryUser | None:
        try:
            data = await self._client.query(GET_USER, {"userId": user_id})
        except GraphQLError as e:
            if e.is_not_found:
                return None
            raise

        raw = data.get("user")
        if raw is None:
            return None
        try:
            return DirectoryUser(
                id=str(raw["id"]),
                email=str(raw.get("email") or ""),
                display_name=str(raw.get("displayName") or ""),
                groups=tuple(
                    GroupSummary(id=str(g["uuid"]), display_name=str(g["displayName"]))
                    for g in raw.get("groups") or []
                ),
            )
        except (KeyError, TypeError) as e:
            raise DirectoryResponseError(f"Malformed LLDAP user payload: {e}") from e

    async def get_group(self, group_id: str) -> DirectoryGroup | None:
        numeric_id = await self._find_numeric_group_id(group_id)
        if numeric_id is None:
            return None

        try:
            data = await self._client.query(GET_GROUP, {"groupId": numeric_id})
        except GraphQLError as e:
            if e.is_not_found:
                return None
            raise

        raw = data.get("group")
        if raw is None:
            return None
        try:
            return DirectoryGroup(id=str(raw["uuid"]), display_name=str(raw["displayName"]))
        except (KeyError, TypeError) as e:
            raise DirectoryResponseError(f"Malformed LLDAP group payload: {e}") from e

    async def ping(self) -> str:
        data = await self._client.query(GET_API_VERSION)
        return str(data.get("apiVersion", ""))

    async def _find_numeric_group_id(self, group_uuid: str) -> int | None:
        # LLDAP addresses groups by numeric id; callers only know the uuid.
        data = await self._client.query(LIST_GROUPS)
        for g in data.get("groups") or []:
            if isinstance(g, dict) and g.get("uuid") == group_uuid:
                try:
                    return int(g["id"])
                except (KeyError, TypeError, ValueError) as e:
                    raise DirectoryResponseError(f"Malformed LLDAP group id: {e}") from e
        return None


def build_lldap_lookup(settings: Settings, *, http: httpx.AsyncClient) -> LldapDirectoryLookup:
    credentials = LldapCredentials(
        endpoint=settings.lldap_graphql_endpoint,
        user=settings.lldap_graphql_user,
        password=settings.lldap_graphql_password,
    )
    return LldapDirectoryLookup(client=LldapGraphQLClient(credentials=credentials, http=http))


def _token_expiry(token: str) -> float:
    # Only the expiry is needed; the token is verified by LLDAP itself.
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return time.time() + DEFAULT_TOKEN_TTL_SECONDS
    exp = claims.get("exp")
    if isinstance(exp, (int, float)):
        return float(exp)
    return time.time() + DEFAULT_TOKEN_TTL_SECONDS


# --- Module Notes -----------------------------------------------------------
# Password changes go through LDAP, not GraphQL, and are outside this lookup's scope.
