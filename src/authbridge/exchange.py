"""OAuth 2 code-for-token exchange.

Provider deviations are looked up in `authbridge.quirks` instead of inlined.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from authbridge.config import ProviderConfig, SignedClientSecret
from authbridge.contracts import (
    CredentialSigner,
    HandshakeResult,
    Logger,
    OAuth2Transport,
    ProviderConfigurationError,
    ProviderError,
    TokenResponseError,
    TransportReply,
)
from authbridge.promise import promisify
from authbridge.quirks import (
    ClientSecretStrategy,
    ProviderQuirks,
    TokenAuthorization,
    quirks_for,
)
from authbridge.signing import mint_client_secret

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
ACCESS_TOKEN_ERROR = "OAUTH_GET_ACCESS_TOKEN_ERROR"


def resolve_client_secret(
    provider: ProviderConfig,
    quirks: ProviderQuirks,
    signer: CredentialSigner | None,
    *,
    clock: Callable[[], float] = time.time,
) -> str:
    secret = provider.client_secret
    if quirks.client_secret is ClientSecretStrategy.SIGNED_JWT and isinstance(
        secret, SignedClientSecret
    ):
        if signer is None:
            raise ProviderConfigurationError(
                f"Provider '{provider.id}' needs a credential signer to mint its client secret"
            )
        return mint_client_secret(provider.client_id, secret, signer, clock=clock)
    return provider.static_client_secret


def build_token_request(
    code: str,
    provider: ProviderConfig,
    *,
    quirks: ProviderQuirks,
    signer: CredentialSigner | None = None,
    clock: Callable[[], float] = time.time,
) -> tuple[dict[str, str], dict[str, str]]:
    """Assemble the token request parameters and headers.

    Configured params and headers take precedence over derived defaults,
    except where a quirk forces a header.
    """
    params = dict(provider.params)
    headers = dict(provider.headers)

    credential_field = "refresh_token" if params.get("grant_type") == "refresh_token" else "code"
    params.setdefault(credential_field, code)
    params.setdefault("client_id", provider.client_id)
    params["client_secret"] = resolve_client_secret(provider, quirks, signer, clock=clock)
    if provider.callback_url is not None:
        params.setdefault("redirect_uri", provider.callback_url)

    headers.setdefault("Content-Type", FORM_CONTENT_TYPE)

    if quirks.token_client_id_header:
        headers["Client-ID"] = provider.client_id
    if quirks.token_authorization is TokenAuthorization.BASIC_CLIENT_CREDENTIALS:
        credentials = f"{provider.client_id}:{provider.static_client_secret}"
        headers["Authorization"] = "Basic " + base64.b64encode(credentials.encode()).decode()
    elif quirks.token_authorization is TokenAuthorization.BEARER_CODE:
        headers.setdefault("Authorization", f"Bearer {code}")

    return params, headers


def decode_token_response(body: str | None) -> dict[str, Any]:
    """Decode a token response as JSON, falling back to form encoding.

    Some providers answer with form-encoded bodies and a misleading
    content type, so the body itself decides.

    Raises:
        TokenResponseError: If neither decoding yields any fields.
    """
    text = body or ""
    try:
        decoded = json.loads(text)
    except ValueError:
        decoded = None
    if isinstance(decoded, dict):
        return decoded

    form = dict(parse_qsl(text, keep_blank_values=True))
    if not form:
        raise TokenResponseError(
            "invalid_token_response",
            "Token response is neither a JSON object nor form-encoded data",
        )
    return form


def extract_access_token(results: Mapping[str, Any], path: tuple[str, ...]) -> str | None:
    value: Any = results
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value if isinstance(value, str) and value else None


def _reported_body_and_response(error: Any, values: tuple[Any, ...]) -> tuple[Any, Any]:
    # Values passed with the error win; bundled transports also attach them to the error
    body = values[0] if values else None
    response = values[1] if len(values) > 1 else None
    if body is None:
        body = getattr(error, "body", None)
    if response is None:
        response = getattr(error, "response", None)
    return body, response


def parse_token_response(
    body: str | None, *, provider_id: str, quirks: ProviderQuirks
) -> HandshakeResult:
    results = decode_token_response(body)

    error = results.get("error")
    if isinstance(error, str) and error:
        raise ProviderError(error, results.get("error_description"))

    access_token = extract_access_token(results, quirks.access_token_path)
    if access_token is None:
        raise TokenResponseError(
            "invalid_token_response",
            f"No access token at '{'.'.join(quirks.access_token_path)}' "
            f"in response from provider '{provider_id}'",
        )
    refresh_token = results.get("refresh_token")
    return HandshakeResult(
        access_token=access_token,
        refresh_token=refresh_token if isinstance(refresh_token, str) else None,
        raw=results,
    )


async def exchange_access_token(
    code: str,
    provider: ProviderConfig,
    transport: OAuth2Transport,
    *,
    error_logger: Logger,
    signer: CredentialSigner | None = None,
    quirks: ProviderQuirks | None = None,
    clock: Callable[[], float] = time.time,
) -> HandshakeResult:
    """Exchange an authorization code (or refresh token) for an access token.

    Args:
        code: Authorization code, or refresh token when the provider params
            declare `grant_type=refresh_token`.
        provider: Provider configuration.
        transport: OAuth 2 transport collaborator.
        error_logger: Receives transport failures before they are raised.
        signer: Mints client secrets for providers that need one.
        quirks: Overrides the quirks entry looked up by provider id.
        clock: Time source for minted credentials.

    Returns:
        The normalized handshake result.

    Raises:
        ProviderConfigurationError: Missing token URL or signer.
        ProviderError: Transport failure or OAuth error response.
        TokenResponseError: Undecodable response or no access token.
    """
    if not provider.access_token_url:
        raise ProviderConfigurationError(f"Provider '{provider.id}' has no access_token_url")
    quirks = quirks or quirks_for(provider.id)

    params, headers = build_token_request(
        code, provider, quirks=quirks, signer=signer, clock=clock
    )
    post_data = urlencode(params)

    def log_failure(error: Any, values: tuple[Any, ...]) -> None:
        body, response = _reported_body_and_response(error, values)
        error_logger.error(ACCESS_TOKEN_ERROR, error, body, response)

    request = promisify(transport.request, TransportReply, on_error=log_failure)
    reply = await request("POST", provider.access_token_url, headers, post_data, None)

    logger.debug("Token exchange succeeded", extra={"provider": provider.id})
    return parse_token_response(reply.body, provider_id=provider.id, quirks=quirks)


__all__ = [
    "build_token_request",
    "decode_token_response",
    "exchange_access_token",
    "extract_access_token",
    "parse_token_response",
    "resolve_client_secret",
]
