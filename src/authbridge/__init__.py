"""authbridge - one client interface for OAuth 1.0a and OAuth 2 logins.

Third-party login providers speak two structurally different handshakes and
deviate from both in small, provider-specific ways. This package hides both
behind a single awaitable client.

## Key Components

- `create_client()`: picks the handshake family from `ProviderConfig.version`
- `OAuth1Client` / `OAuth2Client`: `get_request_token`,
  `exchange_code_for_token`, `fetch_profile`
- `authbridge.quirks`: the per-provider deviation table
- `authbridge.promise.promisify`: callback-to-awaitable adapter

## Quick Example

```python
from authbridge import ProviderConfig, create_client

provider = ProviderConfig.from_mapping(
    {
        "id": "github",
        "version": "2.0",
        "authorizationUrl": "https://github.com/login/oauth/authorize",
        "accessTokenUrl": "https://github.com/login/oauth/access_token",
        "profileUrl": "https://api.github.com/user",
        "clientId": "client-id",
        "clientSecret": "client-secret",
        "callbackUrl": "https://app.example/callback/github",
    }
)
client = create_client(provider)
result = await client.exchange_code_for_token(code)
profile = await client.fetch_profile(result)
```
"""

from .clients import OAuth1Client, OAuth2Client
from .config import HttpTransportConfig, ProtocolFamily, ProviderConfig, SignedClientSecret
from .contracts import (
    AuthBridgeError,
    HandshakeResult,
    ProtectedResource,
    ProviderConfigurationError,
    ProviderError,
    RequestToken,
    TokenResponseError,
    TransportError,
    UnsupportedOperationError,
)
from .factory import create_client
from .promise import promisify

__all__ = [
    "AuthBridgeError",
    "HandshakeResult",
    "HttpTransportConfig",
    "OAuth1Client",
    "OAuth2Client",
    "ProtectedResource",
    "ProtocolFamily",
    "ProviderConfig",
    "ProviderConfigurationError",
    "ProviderError",
    "RequestToken",
    "SignedClientSecret",
    "TokenResponseError",
    "TransportError",
    "UnsupportedOperationError",
    "create_client",
    "promisify",
]
