"""OAuth 2 profile retrieval."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from authbridge.config import ProviderConfig
from authbridge.contracts import OAuth2Transport, ProviderConfigurationError, TransportReply
from authbridge.promise import promisify
from authbridge.quirks import ProfileUrlTemplate, ProviderQuirks, quirks_for
from authbridge.transports.oauth2 import append_query_param

logger = logging.getLogger(__name__)


def render_profile_url(
    url: str,
    template: ProfileUrlTemplate,
    provider: ProviderConfig,
    results: Mapping[str, Any],
) -> str:
    """Fill the profile URL placeholder from the token response.

    Raises:
        ProviderConfigurationError: If the token response lacks the value or
            the provider headers lack the required header.
    """
    value = results.get(template.result_field)
    if not value:
        raise ProviderConfigurationError(
            f"Expected {template.result_field} in the token response of provider '{provider.id}'"
        )
    if template.required_header and not provider.headers.get(template.required_header):
        raise ProviderConfigurationError(
            f"Provider '{provider.id}' requires the {template.required_header} "
            'option to be present in "headers"'
        )
    return url.replace(template.placeholder, str(value))


def prepare_profile_request(
    provider: ProviderConfig,
    transport: OAuth2Transport,
    access_token: str,
    results: Mapping[str, Any],
    *,
    quirks: ProviderQuirks,
) -> tuple[str, dict[str, str], str | None]:
    """Return the URL, headers and transport token for the profile GET."""
    if not provider.profile_url:
        raise ProviderConfigurationError(f"Provider '{provider.id}' has no profile_url")
    url = provider.profile_url
    headers = dict(provider.headers)
    token: str | None = access_token

    if transport.use_authorization_header_for_get:
        headers["Authorization"] = transport.build_auth_header(access_token)
        if quirks.profile_token_in_query:
            url = append_query_param(url, "access_token", access_token)
        if quirks.profile_client_id_header:
            headers["Client-ID"] = provider.client_id
        # Already in the header; the transport must not add it to the query
        token = None

    if quirks.profile_url_template is not None:
        url = render_profile_url(url, quirks.profile_url_template, provider, results)

    return url, headers, token


async def fetch_profile(
    provider: ProviderConfig,
    transport: OAuth2Transport,
    access_token: str,
    results: Mapping[str, Any] | None = None,
    *,
    quirks: ProviderQuirks | None = None,
) -> str:
    """Fetch the raw profile payload for `access_token`.

    Args:
        provider: Provider configuration.
        transport: OAuth 2 transport collaborator.
        access_token: Token from the handshake result.
        results: Raw token response, used to fill profile URL templates.
        quirks: Overrides the quirks entry looked up by provider id.

    Returns:
        The profile response body, undecoded.

    Raises:
        ProviderConfigurationError: Before any request, when the profile
            URL cannot be built.
        ProviderError: Transport failure.
    """
    quirks = quirks or quirks_for(provider.id)
    url, headers, token = prepare_profile_request(
        provider, transport, access_token, results or {}, quirks=quirks
    )

    request = promisify(transport.request, TransportReply)
    reply = await request("GET", url, headers, None, token)
    logger.debug("Profile fetched", extra={"provider": provider.id})
    return reply.body


__all__ = ["fetch_profile", "prepare_profile_request", "render_profile_url"]
