"""Provider configuration models.

A `ProviderConfig` is built once per login attempt and never mutated. Keys may
be given in snake_case or in the camelCase used by existing provider
definitions (`clientId`, `accessTokenUrl`, ...).

## Security-relevant configuration fields

- `client_secret`: either an opaque string or a `SignedClientSecret`
  descriptor whose private key is used to mint short-lived credentials.
- `callback_url`: sent as `redirect_uri`; affects redirect binding.
- `headers`: sent on every token and profile request.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from authbridge.contracts import ProviderConfigurationError
from authbridge.models import BridgeBaseModel

_CAMEL_CONFIG = ConfigDict(
    extra="forbid",
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class ProtocolFamily(str, Enum):
    """Handshake family selected by the provider's version tag."""

    OAUTH1 = "oauth1"
    OAUTH2 = "oauth2"


class SignedClientSecret(BridgeBaseModel):
    """Descriptor for a client secret minted on the fly as a signed token."""

    model_config = _CAMEL_CONFIG

    key_id: str
    team_id: str
    private_key: str


class HttpTransportConfig(BridgeBaseModel):
    """Settings for the bundled httpx transports."""

    timeout_seconds: float = 30.0
    access_token_name: str = "access_token"
    authorization_method: str = "Bearer"


class ProviderConfig(BridgeBaseModel):
    """Configuration for one third-party login provider.

    Keys this library does not use (`name`, `type`, `profile`, ...) are
    dropped, so full provider definitions from an existing login setup load
    as they are.
    """

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    version: str | None = None

    authorization_url: str | None = None
    access_token_url: str | None = None
    request_token_url: str | None = None
    profile_url: str | None = None

    client_id: str
    client_secret: str | SignedClientSecret
    callback_url: str | None = None

    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, str] = Field(default_factory=dict)
    authorization_params: dict[str, str] = Field(default_factory=dict)
    scope: str | None = None

    # OAuth 1 signature method
    encoding: str = "HMAC-SHA1"
    use_authorization_header_for_get: bool = True

    @property
    def family(self) -> ProtocolFamily:
        if self.version and self.version.startswith("2."):
            return ProtocolFamily.OAUTH2
        return ProtocolFamily.OAUTH1

    @property
    def static_client_secret(self) -> str:
        """The client secret as configured, for providers that use it verbatim."""
        if isinstance(self.client_secret, SignedClientSecret):
            raise ProviderConfigurationError(
                f"Provider '{self.id}' has a signed client secret descriptor, not a static secret"
            )
        return self.client_secret

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProviderConfig:
        """Validate a raw provider definition.

        Raises:
            ProviderConfigurationError: If the definition is invalid.
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            provider_id = data.get("id", "<unknown>")
            raise ProviderConfigurationError(
                f"Invalid configuration for provider '{provider_id}': {exc}"
            ) from exc


__all__ = [
    "HttpTransportConfig",
    "ProtocolFamily",
    "ProviderConfig",
    "SignedClientSecret",
]
