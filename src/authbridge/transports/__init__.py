"""Bundled httpx transports.

The core accepts any object matching the `OAuth1Transport` or
`OAuth2Transport` protocols; these are the implementations the client
factory builds when none is supplied.
"""

from .oauth1 import OAuth1HttpTransport
from .oauth2 import OAuth2HttpTransport

__all__ = ["OAuth1HttpTransport", "OAuth2HttpTransport"]
