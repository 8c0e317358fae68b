"""Callback-style OAuth 1.0a transport over httpx.

Requests are signed with authlib's `OAuth1Auth`. Results are reported through
callbacks as `(error, *values)` in fixed positions, so the client layer can
wrap each operation with `authbridge.promise.promisify`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from urllib.parse import parse_qsl

from authlib.integrations.httpx_client import OAuth1Auth
from authlib.oauth1 import SIGNATURE_HMAC_SHA1, SIGNATURE_PLAINTEXT, SIGNATURE_RSA_SHA1

from authbridge.config import HttpTransportConfig
from authbridge.contracts import Callback, ProviderConfigurationError, TokenResponseError
from authbridge.transports.base import CallbackArgs, CallbackTransport, ClientFactory

logger = logging.getLogger(__name__)

SUPPORTED_SIGNATURE_METHODS = (SIGNATURE_HMAC_SHA1, SIGNATURE_RSA_SHA1, SIGNATURE_PLAINTEXT)


def parse_token_response(body: str, token_key: str, secret_key: str) -> tuple[str, str, dict[str, str]]:
    """Split a form-encoded token response into token, secret and the rest."""
    results = dict(parse_qsl(body, keep_blank_values=True))
    token = results.pop(token_key, None)
    secret = results.pop(secret_key, None)
    if not token or secret is None:
        raise TokenResponseError(
            "invalid_token_response",
            f"Response is missing {token_key} or {secret_key}",
        )
    return token, secret, results


class OAuth1HttpTransport(CallbackTransport):
    """Signature-based transport bound to one provider's endpoints."""

    def __init__(
        self,
        request_token_url: str,
        access_token_url: str,
        consumer_key: str,
        consumer_secret: str,
        callback_url: str | None = None,
        signature_method: str = SIGNATURE_HMAC_SHA1,
        *,
        config: HttpTransportConfig | None = None,
        client_factory: ClientFactory | None = None,
    ):
        if signature_method not in SUPPORTED_SIGNATURE_METHODS:
            raise ProviderConfigurationError(
                f"Unsupported OAuth 1 signature method '{signature_method}'"
            )
        super().__init__(config, client_factory)
        self.request_token_url = request_token_url
        self.access_token_url = access_token_url
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.callback_url = callback_url
        self.signature_method = signature_method

    def _auth(
        self,
        token: str | None = None,
        token_secret: str | None = None,
        verifier: str | None = None,
        redirect_uri: str | None = None,
    ) -> OAuth1Auth:
        # RSA-SHA1 signs with the private key configured as the consumer secret
        if self.signature_method == SIGNATURE_RSA_SHA1:
            return OAuth1Auth(
                self.consumer_key,
                token=token,
                token_secret=token_secret,
                redirect_uri=redirect_uri,
                rsa_key=self.consumer_secret,
                verifier=verifier,
                signature_method=self.signature_method,
            )
        return OAuth1Auth(
            self.consumer_key,
            client_secret=self.consumer_secret,
            token=token,
            token_secret=token_secret,
            redirect_uri=redirect_uri,
            verifier=verifier,
            signature_method=self.signature_method,
        )

    def get(self, url: str, token: str, token_secret: str, callback: Callback) -> None:
        """Signed GET; calls `callback(error, body, response)`."""
        self._dispatch(self._get(url, token, token_secret), callback)

    def get_oauth_request_token(
        self, extra_params: Mapping[str, str] | None, callback: Callback
    ) -> None:
        """Calls `callback(error, oauth_token, oauth_token_secret, results)`."""
        self._dispatch(self._request_token(dict(extra_params or {})), callback)

    def get_oauth_access_token(
        self, token: str, token_secret: str, verifier: str, callback: Callback
    ) -> None:
        """Calls `callback(error, access_token, access_token_secret, results)`."""
        self._dispatch(self._access_token(token, token_secret, verifier), callback)

    async def _get(self, url: str, token: str, token_secret: str) -> CallbackArgs:
        error, response = await self._send(
            "GET", url, auth=self._auth(token=token, token_secret=token_secret)
        )
        text = response.text if response is not None else None
        return error, text, response

    async def _request_token(self, extra_params: dict[str, str]) -> CallbackArgs:
        error, response = await self._send(
            "POST",
            self.request_token_url,
            data=extra_params or None,
            auth=self._auth(redirect_uri=self.callback_url),
        )
        if error is not None or response is None:
            return (error,)
        token, secret, results = parse_token_response(
            response.text, "oauth_token", "oauth_token_secret"
        )
        return None, token, secret, results

    async def _access_token(self, token: str, token_secret: str, verifier: str) -> CallbackArgs:
        error, response = await self._send(
            "POST",
            self.access_token_url,
            auth=self._auth(token=token, token_secret=token_secret, verifier=verifier),
        )
        if error is not None or response is None:
            return (error,)
        access_token, access_secret, results = parse_token_response(
            response.text, "oauth_token", "oauth_token_secret"
        )
        logger.debug("OAuth 1 access token obtained", extra={"url": self.access_token_url})
        return None, access_token, access_secret, results


__all__ = ["OAuth1HttpTransport", "SUPPORTED_SIGNATURE_METHODS", "parse_token_response"]
