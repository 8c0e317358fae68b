"""Contracts and shared types for the authbridge protocol adapters.

The core never talks HTTP or signs anything itself. It drives three
collaborators, described here as protocols:

- an OAuth 2 transport with a single callback-style `request()`
- an OAuth 1 transport with three callback-style operations
- a credential signer and a logger

Results handed back to callers are plain dataclasses so they can be built
positionally from callback values by `authbridge.promise.promisify`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

Callback = Callable[..., None]


class AuthBridgeError(Exception):
    """Base class for all authbridge errors."""


class ProviderError(AuthBridgeError):
    """Error reported by a provider.

    Attributes:
        error: OAuth error code (e.g. 'invalid_grant').
        description: Human-readable description.
        status_code: HTTP status code, when one is known.
    """

    def __init__(
        self,
        error: str,
        description: str | None = None,
        status_code: int | None = None,
    ):
        self.error = error
        self.description = description
        self.status_code = status_code
        message = f"{error}: {description}" if description else error
        super().__init__(message)


class TransportError(ProviderError):
    """Network failure, non-2xx response, or error value reported by a transport.

    Attributes:
        body: Raw response body, when one was received.
        response: Transport response object, when one was received.
        reported_error: The non-exception error value a collaborator passed
            to its callback, kept as given.
    """

    def __init__(
        self,
        error: str,
        description: str | None = None,
        status_code: int | None = None,
        body: Any = None,
        response: Any = None,
        reported_error: Any = None,
    ):
        super().__init__(error, description, status_code)
        self.body = body
        self.response = response
        self.reported_error = reported_error


class TokenResponseError(ProviderError):
    """Token endpoint response that cannot be decoded or carries no token."""


class ProviderConfigurationError(AuthBridgeError, ValueError):
    """Provider configuration is invalid or lacks a value a quirk requires."""


class UnsupportedOperationError(AuthBridgeError):
    """Operation not available for the client's protocol family."""


@dataclass(frozen=True)
class HandshakeResult:
    """Normalized output of a token exchange.

    For OAuth 1 providers `refresh_token` carries the access token secret,
    in the same position the legacy callback reports it.
    """

    access_token: str
    refresh_token: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RequestToken:
    """Temporary credentials from an OAuth 1 request-token call."""

    oauth_token: str
    oauth_token_secret: str
    results: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProtectedResource:
    """Body and response of a signed OAuth 1 GET."""

    body: str
    response: Any = None


@dataclass(frozen=True)
class TransportReply:
    """Body and response of an OAuth 2 transport request."""

    body: str
    response: Any = None


@runtime_checkable
class OAuth2Transport(Protocol):
    """Callback-style HTTP collaborator for the modern family."""

    use_authorization_header_for_get: bool

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: str | None,
        access_token: str | None,
        callback: Callback,
    ) -> None:
        """Perform a request and call `callback(error, body, response)` once."""
        ...

    def build_auth_header(self, token: str) -> str:
        """Return the Authorization header value for `token`."""
        ...


@runtime_checkable
class OAuth1Transport(Protocol):
    """Callback-style signing collaborator for the legacy family."""

    def get(self, url: str, token: str, token_secret: str, callback: Callback) -> None:
        """Signed GET; calls `callback(error, body, response)`."""
        ...

    def get_oauth_request_token(
        self, extra_params: Mapping[str, str] | None, callback: Callback
    ) -> None:
        """Calls `callback(error, oauth_token, oauth_token_secret, results)`."""
        ...

    def get_oauth_access_token(
        self, token: str, token_secret: str, verifier: str, callback: Callback
    ) -> None:
        """Calls `callback(error, access_token, access_token_secret, results)`."""
        ...


class CredentialSigner(Protocol):
    """Synchronous, pure token signer."""

    def sign(
        self,
        claims: Mapping[str, Any],
        private_key: str,
        *,
        algorithm: str,
        key_id: str,
    ) -> str: ...


class Logger(Protocol):
    """Fire-and-forget error logger."""

    def error(self, code: str, *details: Any) -> None: ...


__all__ = [
    "AuthBridgeError",
    "Callback",
    "CredentialSigner",
    "HandshakeResult",
    "Logger",
    "OAuth1Transport",
    "OAuth2Transport",
    "ProtectedResource",
    "ProviderConfigurationError",
    "ProviderError",
    "RequestToken",
    "TokenResponseError",
    "TransportError",
    "TransportReply",
    "UnsupportedOperationError",
]
