"""Callback-style OAuth 2 transport over httpx."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from authbridge.config import HttpTransportConfig
from authbridge.contracts import Callback
from authbridge.transports.base import CallbackArgs, CallbackTransport, ClientFactory


def append_query_param(url: str, name: str, value: str) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


class OAuth2HttpTransport(CallbackTransport):
    """Bearer-token transport bound to one provider's endpoints.

    Attributes:
        client_id: OAuth client identifier.
        base_site: Scheme and host of the authorization server.
        authorize_path: Path of the authorization endpoint.
        access_token_path: Path of the token endpoint.
        use_authorization_header_for_get: Send the token as an
            Authorization header on GET requests instead of a query parameter.
    """

    def __init__(
        self,
        client_id: str,
        base_site: str,
        authorize_path: str,
        access_token_path: str,
        custom_headers: Mapping[str, str] | None = None,
        *,
        use_authorization_header_for_get: bool = True,
        config: HttpTransportConfig | None = None,
        client_factory: ClientFactory | None = None,
    ):
        super().__init__(config, client_factory)
        self.client_id = client_id
        self.base_site = base_site
        self.authorize_path = authorize_path
        self.access_token_path = access_token_path
        self.custom_headers = dict(custom_headers or {})
        self.use_authorization_header_for_get = use_authorization_header_for_get

    def build_auth_header(self, token: str) -> str:
        return f"{self.config.authorization_method} {token}"

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: str | None,
        access_token: str | None,
        callback: Callback,
    ) -> None:
        """Send `method url` and call `callback(error, body, response)`.

        A non-None `access_token` is appended as a query parameter.
        """
        if access_token is not None:
            url = append_query_param(url, self.config.access_token_name, access_token)
        merged = {**self.custom_headers, **headers}
        self._dispatch(self._perform(method, url, merged, body), callback)

    async def _perform(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | None,
    ) -> CallbackArgs:
        error, response = await self._send(method, url, headers=headers, content=body)
        text = response.text if response is not None else None
        return error, text, response


__all__ = ["OAuth2HttpTransport", "append_query_param"]
