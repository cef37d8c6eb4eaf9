# === NAVMAP v1 ===
# {
#   "module": "fluenthttp.settings",
#   "purpose": "Define configuration models, environment overrides, and proxy property sources",
#   "sections": [
#     {
#       "id": "loggingconfiguration",
#       "name": "LoggingConfiguration",
#       "anchor": "class-loggingconfiguration",
#       "kind": "class"
#     },
#     {
#       "id": "clientconfiguration",
#       "name": "ClientConfiguration",
#       "anchor": "class-clientconfiguration",
#       "kind": "class"
#     },
#     {
#       "id": "environmentoverrides",
#       "name": "EnvironmentOverrides",
#       "anchor": "class-environmentoverrides",
#       "kind": "class"
#     },
#     {
#       "id": "proxyproperties",
#       "name": "ProxyProperties",
#       "anchor": "class-proxyproperties",
#       "kind": "class"
#     },
#     {
#       "id": "load-system-properties",
#       "name": "load_system_properties",
#       "anchor": "function-load-system-properties",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Configuration models for the fluent HTTP client.

:class:`ClientConfiguration` holds the cross-request settings consumed by the
executor.  It is frozen: the builder swaps in a fresh copy on every setter call,
so a request that is already executing never observes a change.  Environment
overrides use ``FLUENTHTTP_`` prefixed variables, and the process-wide proxy
properties (``http.proxyHost`` and friends) are exposed as a plain mapping so
the proxy resolver can be handed any other source in tests.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .network.policy import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_TEXT_ENCODING,
    HTTP_NON_PROXY_HOSTS,
    HTTP_PROXY_HOST,
    HTTP_PROXY_PORT,
    HTTPS_NON_PROXY_HOSTS,
    HTTPS_PROXY_HOST,
    HTTPS_PROXY_PORT,
    USER_AGENT_MOZILLA,
)

__all__ = [
    "LoggingConfiguration",
    "ClientConfiguration",
    "EnvironmentOverrides",
    "ProxyProperties",
    "load_system_properties",
]

LOGGER = logging.getLogger("fluenthttp.settings")


class LoggingConfiguration(BaseModel):
    """Logging-related configuration for the client package."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    json_format: bool = Field(default=False, description="Emit JSON lines instead of plain text")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Normalise logging levels and ensure they match the supported set."""

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return upper

    model_config = {"validate_assignment": True}

    @classmethod
    def from_env(cls, **overrides: object) -> "LoggingConfiguration":
        """Build a logging configuration honouring ``FLUENTHTTP_LOG_LEVEL``."""

        data: Dict[str, object] = {}
        env_level = EnvironmentOverrides().log_level
        if env_level:
            data["level"] = env_level
        data.update(overrides)
        return cls.model_validate(data)


class ClientConfiguration(BaseModel):
    """Cross-request HTTP settings owned by one client instance.

    The model is frozen; use :meth:`with_updates` (or ``model_copy``) to derive
    a modified snapshot.  ``max_retries`` below zero behaves as zero retries.
    """

    user_agent: str = Field(default=USER_AGENT_MOZILLA)
    connect_timeout_sec: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0.0)
    read_timeout_sec: float = Field(default=DEFAULT_READ_TIMEOUT, gt=0.0)
    tcp_no_delay: bool = True
    follow_redirects: bool = True
    max_retries: int = 0
    retry_backoff_sec: float = Field(default=0.0, ge=0.0)
    propagate_errors: bool = True
    trust_all_certificates: bool = False
    reuse_cookie_store: bool = False
    log_headers: bool = False
    log_cookies: bool = False
    default_encoding: str = DEFAULT_TEXT_ENCODING

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("max_retries")
    @classmethod
    def clamp_retries(cls, value: int) -> int:
        """Treat negative retry counts as zero."""

        return max(0, value)

    def with_updates(self, **changes: object) -> "ClientConfiguration":
        """Return a validated copy with ``changes`` applied."""

        merged = self.model_dump()
        merged.update(changes)
        return ClientConfiguration.model_validate(merged)

    @classmethod
    def from_env(cls, **overrides: object) -> "ClientConfiguration":
        """Build a configuration from ``FLUENTHTTP_*`` variables plus ``overrides``."""

        env = EnvironmentOverrides()
        data: Dict[str, object] = {
            key: value
            for key, value in env.model_dump(exclude_none=True).items()
            if key in cls.model_fields
        }
        if data:
            LOGGER.debug("applying environment overrides", extra={"overrides": sorted(data)})
        data.update(overrides)
        return cls.model_validate(data)


class EnvironmentOverrides(BaseSettings):
    """Pydantic settings model exposing environment-derived overrides."""

    max_retries: Optional[int] = Field(default=None, alias="FLUENTHTTP_MAX_RETRIES")
    connect_timeout_sec: Optional[float] = Field(
        default=None, alias="FLUENTHTTP_CONNECT_TIMEOUT_SEC"
    )
    read_timeout_sec: Optional[float] = Field(default=None, alias="FLUENTHTTP_READ_TIMEOUT_SEC")
    user_agent: Optional[str] = Field(default=None, alias="FLUENTHTTP_USER_AGENT")
    log_level: Optional[str] = Field(default=None, alias="FLUENTHTTP_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_prefix="FLUENTHTTP_", case_sensitive=False, extra="ignore"
    )


def _property_field(name: str, env_name: str):
    return Field(default=None, validation_alias=AliasChoices(name, env_name))


class ProxyProperties(BaseSettings):
    """Process-wide proxy properties.

    Each value may be supplied under its dotted property name (``http.proxyHost``)
    or under a ``FLUENTHTTP_`` environment variable.  Ports stay strings here; the
    proxy resolver owns their validation.
    """

    http_proxy_host: Optional[str] = _property_field(HTTP_PROXY_HOST, "FLUENTHTTP_HTTP_PROXY_HOST")
    http_proxy_port: Optional[str] = _property_field(HTTP_PROXY_PORT, "FLUENTHTTP_HTTP_PROXY_PORT")
    http_non_proxy_hosts: Optional[str] = _property_field(
        HTTP_NON_PROXY_HOSTS, "FLUENTHTTP_HTTP_NON_PROXY_HOSTS"
    )
    https_proxy_host: Optional[str] = _property_field(
        HTTPS_PROXY_HOST, "FLUENTHTTP_HTTPS_PROXY_HOST"
    )
    https_proxy_port: Optional[str] = _property_field(
        HTTPS_PROXY_PORT, "FLUENTHTTP_HTTPS_PROXY_PORT"
    )
    https_non_proxy_hosts: Optional[str] = _property_field(
        HTTPS_NON_PROXY_HOSTS, "FLUENTHTTP_HTTPS_NON_PROXY_HOSTS"
    )

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore", populate_by_name=True)

    def to_properties(self) -> Dict[str, str]:
        """Return the populated values keyed by their dotted property names."""

        values = {
            HTTP_PROXY_HOST: self.http_proxy_host,
            HTTP_PROXY_PORT: self.http_proxy_port,
            HTTP_NON_PROXY_HOSTS: self.http_non_proxy_hosts,
            HTTPS_PROXY_HOST: self.https_proxy_host,
            HTTPS_PROXY_PORT: self.https_proxy_port,
            HTTPS_NON_PROXY_HOSTS: self.https_non_proxy_hosts,
        }
        return {key: value for key, value in values.items() if value is not None}


def load_system_properties() -> Dict[str, str]:
    """Read the current process-wide proxy properties."""

    return ProxyProperties().to_properties()
