"""
directory_authz.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., directory bind password).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `AAD_`), with defaults safe for local dev.
    """

    model_config = SettingsConfigDict(env_prefix="AAD_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "directory-authz"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Set by the forward-auth proxy (Authelia) after it validated the session.
    principal_header: str = "Remote-User"

    # Directory backend
    directory_type: Literal["lldap-graphql"] = "lldap-graphql"
    lldap_graphql_endpoint: str = "http://lldap:17170/api/graphql"
    lldap_graphql_user: str = "admin"
    lldap_graphql_password: str = Field(default="", repr=False)
    directory_timeout_seconds: float = 10.0

    # Role mapping overrides. Keys are role values ("admin", "user_manager", ...);
    # a listed role replaces the backend's default granting groups for that role.
    role_groups: dict[str, list[str]] = Field(default_factory=dict)
    extra_protected_groups: list[str] = Field(default_factory=list)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Complex fields (role_groups, extra_protected_groups) are parsed from JSON env values,
# e.g. AAD_EXTRA_PROTECTED_GROUPS='["security_team"]'.
