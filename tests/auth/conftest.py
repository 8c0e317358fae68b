import pytest

from authbridge.config import ProviderConfig
from tests.auth.transport_testkit import make_provider


@pytest.fixture
def provider() -> ProviderConfig:
    return make_provider()


@pytest.fixture
def oauth1_provider() -> ProviderConfig:
    return ProviderConfig(
        id="twitter",
        version="1.0A",
        request_token_url="https://api.ex.test/oauth/request_token",
        access_token_url="https://api.ex.test/oauth/access_token",
        authorization_url="https://api.ex.test/oauth/authenticate",
        profile_url="https://api.ex.test/1.1/account/verify_credentials.json",
        client_id="consumer-key",
        client_secret="consumer-secret",
        callback_url="https://app.test/callback/twitter",
    )
