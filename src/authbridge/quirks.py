"""Per-provider deviations from the baseline OAuth 2 flow.

Every entry is pure data. `authbridge.exchange` and `authbridge.profile`
look up the entry for the provider they serve and apply its fields at fixed
points; a provider without an entry gets `STANDARD`, which changes nothing.
Quirks only add or reroute values, they never remove one the base protocol
needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ClientSecretStrategy(str, Enum):
    STATIC = "static"
    SIGNED_JWT = "signed_jwt"


class TokenAuthorization(str, Enum):
    """How the token request carries an Authorization header."""

    NONE = "none"
    # Basic base64(client_id:client_secret), always set
    BASIC_CLIENT_CREDENTIALS = "basic_client_credentials"
    # Bearer <code>, only if the configured headers lack one
    BEARER_CODE = "bearer_code"


@dataclass(frozen=True)
class ProfileUrlTemplate:
    """Profile URL placeholder filled from the token response."""

    placeholder: str
    result_field: str
    required_header: str | None = None


@dataclass(frozen=True)
class ProviderQuirks:
    client_secret: ClientSecretStrategy = ClientSecretStrategy.STATIC
    token_client_id_header: bool = False
    token_authorization: TokenAuthorization = TokenAuthorization.NONE
    access_token_path: tuple[str, ...] = ("access_token",)
    profile_client_id_header: bool = False
    profile_token_in_query: bool = False
    profile_url_template: ProfileUrlTemplate | None = None


STANDARD = ProviderQuirks()

# Fixed audience for Sign in with Apple client secrets
APPLE_AUDIENCE = "https://appleid.apple.com"
SIGNED_SECRET_ALGORITHM = "ES256"
SIGNED_SECRET_LIFETIME_SECONDS = 86400 * 180

QUIRKS: dict[str, ProviderQuirks] = {
    "apple": ProviderQuirks(client_secret=ClientSecretStrategy.SIGNED_JWT),
    "bungie": ProviderQuirks(
        profile_url_template=ProfileUrlTemplate(
            placeholder="{membershipId}",
            result_field="membership_id",
            required_header="X-API-Key",
        ),
    ),
    "identity-server4": ProviderQuirks(token_authorization=TokenAuthorization.BEARER_CODE),
    "mailru": ProviderQuirks(profile_token_in_query=True),
    "okta": ProviderQuirks(token_authorization=TokenAuthorization.BEARER_CODE),
    "reddit": ProviderQuirks(token_authorization=TokenAuthorization.BASIC_CLIENT_CREDENTIALS),
    "spotify": ProviderQuirks(access_token_path=("authed_user", "access_token")),
    "twitch": ProviderQuirks(token_client_id_header=True, profile_client_id_header=True),
}


def quirks_for(provider_id: str) -> ProviderQuirks:
    """Return the quirks entry for `provider_id`, or `STANDARD`."""
    return QUIRKS.get(provider_id, STANDARD)


__all__ = [
    "APPLE_AUDIENCE",
    "ClientSecretStrategy",
    "ProfileUrlTemplate",
    "ProviderQuirks",
    "QUIRKS",
    "SIGNED_SECRET_ALGORITHM",
    "SIGNED_SECRET_LIFETIME_SECONDS",
    "STANDARD",
    "TokenAuthorization",
    "quirks_for",
]
