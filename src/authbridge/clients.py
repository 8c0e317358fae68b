"""Uniform clients for both handshake families.

Both clients expose the same awaitable surface:

- `get_request_token()`: OAuth 1 only
- `exchange_code_for_token(...)`: returns a `HandshakeResult`
- `fetch_profile(result)`: returns the raw profile payload
- `build_authorize_url(...)`: where to send the user

Clients hold a provider configuration and its collaborators; the protocol
steps themselves live in `authbridge.exchange` and `authbridge.profile` and
take everything they need as arguments.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urlencode

from authbridge.config import ProtocolFamily, ProviderConfig
from authbridge.contracts import (
    CredentialSigner,
    HandshakeResult,
    Logger,
    OAuth1Transport,
    OAuth2Transport,
    ProtectedResource,
    ProviderConfigurationError,
    RequestToken,
    UnsupportedOperationError,
)
from authbridge.exchange import exchange_access_token
from authbridge.profile import fetch_profile
from authbridge.promise import promisify
from authbridge.quirks import ProviderQuirks, quirks_for


def _with_query(url: str, params: Mapping[str, str]) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


class OAuth2Client:
    """Client for authorization-code providers."""

    family = ProtocolFamily.OAUTH2

    def __init__(
        self,
        provider: ProviderConfig,
        transport: OAuth2Transport,
        *,
        error_logger: Logger,
        signer: CredentialSigner | None = None,
        quirks: ProviderQuirks | None = None,
    ):
        self.provider = provider
        self.transport = transport
        self.error_logger = error_logger
        self.signer = signer
        self.quirks = quirks or quirks_for(provider.id)

    async def get_request_token(self, *args: object) -> RequestToken:
        raise UnsupportedOperationError(
            f"Provider '{self.provider.id}' uses OAuth 2; request tokens are OAuth 1 only"
        )

    async def exchange_code_for_token(self, code: str) -> HandshakeResult:
        return await exchange_access_token(
            code,
            self.provider,
            self.transport,
            error_logger=self.error_logger,
            signer=self.signer,
            quirks=self.quirks,
        )

    async def refresh_access_token(self, refresh_token: str) -> HandshakeResult:
        """Run the token exchange with a refresh-token grant."""
        provider = self.provider.model_copy(
            update={"params": {**self.provider.params, "grant_type": "refresh_token"}}
        )
        return await exchange_access_token(
            refresh_token,
            provider,
            self.transport,
            error_logger=self.error_logger,
            signer=self.signer,
            quirks=self.quirks,
        )

    async def fetch_profile(self, result: HandshakeResult) -> str:
        return await fetch_profile(
            self.provider,
            self.transport,
            result.access_token,
            result.raw,
            quirks=self.quirks,
        )

    def build_authorize_url(
        self,
        *,
        state: str | None = None,
        extra_params: Mapping[str, str] | None = None,
    ) -> str:
        if not self.provider.authorization_url:
            raise ProviderConfigurationError(
                f"Provider '{self.provider.id}' has no authorization_url"
            )
        params: dict[str, str] = {
            "client_id": self.provider.client_id,
            "response_type": "code",
        }
        if self.provider.callback_url:
            params["redirect_uri"] = self.provider.callback_url
        if self.provider.scope:
            params["scope"] = self.provider.scope
        if state:
            params["state"] = state
        params.update(self.provider.authorization_params)
        if extra_params:
            params.update(extra_params)
        return _with_query(self.provider.authorization_url, params)


class OAuth1Client:
    """Client for signature-based providers.

    Each transport operation is wrapped once with `promisify`; the wrapped
    `get` is public for signed requests beyond the profile URL.
    """

    family = ProtocolFamily.OAUTH1

    def __init__(self, provider: ProviderConfig, transport: OAuth1Transport):
        self.provider = provider
        self.transport = transport
        self.get = promisify(transport.get, ProtectedResource)
        self._get_request_token = promisify(transport.get_oauth_request_token, RequestToken)
        self._get_access_token = promisify(transport.get_oauth_access_token, HandshakeResult)

    async def get_request_token(
        self, extra_params: Mapping[str, str] | None = None
    ) -> RequestToken:
        return await self._get_request_token(extra_params)

    async def exchange_code_for_token(
        self, oauth_token: str, oauth_token_secret: str, verifier: str
    ) -> HandshakeResult:
        return await self._get_access_token(oauth_token, oauth_token_secret, verifier)

    async def fetch_profile(self, result: HandshakeResult) -> str:
        if not self.provider.profile_url:
            raise ProviderConfigurationError(f"Provider '{self.provider.id}' has no profile_url")
        resource = await self.get(
            self.provider.profile_url, result.access_token, result.refresh_token or ""
        )
        return resource.body

    def build_authorize_url(self, oauth_token: str) -> str:
        if not self.provider.authorization_url:
            raise ProviderConfigurationError(
                f"Provider '{self.provider.id}' has no authorization_url"
            )
        return _with_query(
            self.provider.authorization_url,
            {**self.provider.authorization_params, "oauth_token": oauth_token},
        )


__all__ = ["OAuth1Client", "OAuth2Client"]
