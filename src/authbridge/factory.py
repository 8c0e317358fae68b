"""Client factory.

Picks the handshake family from the provider's version tag and assembles the
matching client. Construction is pure object assembly: no network I/O.
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from authbridge.clients import OAuth1Client, OAuth2Client
from authbridge.config import HttpTransportConfig, ProtocolFamily, ProviderConfig
from authbridge.contracts import (
    CredentialSigner,
    Logger,
    OAuth1Transport,
    OAuth2Transport,
    ProviderConfigurationError,
)
from authbridge.log import StructuredLogger
from authbridge.signing import JoseCredentialSigner
from authbridge.transports.base import ClientFactory
from authbridge.transports.oauth1 import OAuth1HttpTransport
from authbridge.transports.oauth2 import OAuth2HttpTransport

logger = logging.getLogger(__name__)


def split_url(url: str | None, *, field: str, provider_id: str) -> tuple[str, str]:
    """Split an absolute http(s) URL into origin and path.

    Raises:
        ProviderConfigurationError: If the URL is missing or malformed.
    """
    if not url:
        raise ProviderConfigurationError(f"Provider '{provider_id}' has no {field}")
    try:
        parts = urlsplit(url)
        # Accessing port validates it
        _ = parts.port
    except ValueError as exc:
        raise ProviderConfigurationError(
            f"Provider '{provider_id}' has a malformed {field}: {url!r}"
        ) from exc
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ProviderConfigurationError(
            f"Provider '{provider_id}' has a malformed {field}: {url!r}"
        )
    return f"{parts.scheme}://{parts.netloc}", parts.path or "/"


def create_client(
    provider: ProviderConfig,
    *,
    transport: OAuth1Transport | OAuth2Transport | None = None,
    signer: CredentialSigner | None = None,
    error_logger: Logger | None = None,
    transport_config: HttpTransportConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> OAuth1Client | OAuth2Client:
    """Build a client for `provider`.

    Args:
        provider: Provider configuration.
        transport: Transport collaborator; the bundled httpx transport for
            the provider's family is built when omitted.
        signer: Credential signer for minted client secrets.
        error_logger: Logger collaborator for token exchange failures.
        transport_config: Settings for the bundled transports.
        client_factory: httpx client factory for the bundled transports.

    Raises:
        ProviderConfigurationError: Missing or malformed endpoint URLs.
    """
    if provider.family is ProtocolFamily.OAUTH2:
        base_site, authorize_path = split_url(
            provider.authorization_url, field="authorization_url", provider_id=provider.id
        )
        _, access_token_path = split_url(
            provider.access_token_url, field="access_token_url", provider_id=provider.id
        )
        if transport is None:
            transport = OAuth2HttpTransport(
                provider.client_id,
                base_site,
                authorize_path,
                access_token_path,
                provider.headers,
                use_authorization_header_for_get=provider.use_authorization_header_for_get,
                config=transport_config,
                client_factory=client_factory,
            )
        logger.debug(
            "Built OAuth 2 client",
            extra={"provider": provider.id, "base_site": base_site},
        )
        return OAuth2Client(
            provider,
            transport,  # type: ignore[arg-type]
            error_logger=error_logger or StructuredLogger(),
            signer=signer or JoseCredentialSigner(),
        )

    split_url(provider.request_token_url, field="request_token_url", provider_id=provider.id)
    split_url(provider.access_token_url, field="access_token_url", provider_id=provider.id)
    if transport is None:
        transport = OAuth1HttpTransport(
            provider.request_token_url,  # type: ignore[arg-type]
            provider.access_token_url,  # type: ignore[arg-type]
            provider.client_id,
            provider.static_client_secret,
            provider.callback_url,
            provider.encoding,
            config=transport_config,
            client_factory=client_factory,
        )
    logger.debug("Built OAuth 1 client", extra={"provider": provider.id})
    return OAuth1Client(provider, transport)  # type: ignore[arg-type]


__all__ = ["create_client", "split_url"]
