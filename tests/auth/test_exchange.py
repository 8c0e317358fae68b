import base64
from urllib.parse import parse_qsl, urlencode

import pytest

from authbridge.config import ProviderConfig
from authbridge.contracts import (
    ProviderConfigurationError,
    ProviderError,
    TokenResponseError,
    TransportError,
)
from authbridge.exchange import ACCESS_TOKEN_ERROR, decode_token_response, exchange_access_token
from tests.auth.transport_testkit import (
    CannedReply,
    CapturingSigner,
    FakeOAuth2Transport,
    RecordingLogger,
    make_provider,
)

TOKEN_BODY = '{"access_token": "at", "refresh_token": "rt", "token_type": "bearer"}'


async def _exchange(provider: ProviderConfig, transport: FakeOAuth2Transport, **kwargs):
    kwargs.setdefault("error_logger", RecordingLogger())
    return await exchange_access_token("abc", provider, transport, **kwargs)


@pytest.mark.asyncio
async def test_standard_provider_request_body(provider: ProviderConfig) -> None:
    transport = FakeOAuth2Transport(CannedReply(body=TOKEN_BODY))

    result = await _exchange(provider, transport)

    request = transport.last_request
    assert request.method == "POST"
    assert request.url == "https://ex.test/token"
    assert request.access_token is None
    assert request.body == urlencode(
        {
            "code": "abc",
            "client_id": "cid",
            "client_secret": "secret",
            "redirect_uri": "https://app.test/callback",
        }
    )
    assert request.headers == {"Content-Type": "application/x-www-form-urlencoded"}
    assert result.access_token == "at"
    assert result.refresh_token == "rt"
    assert result.raw["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_refresh_grant_uses_refresh_token_field() -> None:
    provider = make_provider(params={"grant_type": "refresh_token"})
    transport = FakeOAuth2Transport(CannedReply(body=TOKEN_BODY))

    await _exchange(provider, transport)

    body = dict(parse_qsl(transport.last_request.body or ""))
    assert body["refresh_token"] == "abc"
    assert "code" not in body
    assert body["grant_type"] == "refresh_token"


@pytest.mark.asyncio
async def test_configured_params_and_headers_take_precedence() -> None:
    provider = make_provider(
        params={"client_id": "other", "redirect_uri": "https://elsewhere.test", "code": "preset"},
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )
    transport = FakeOAuth2Transport(CannedReply(body=TOKEN_BODY))

    await _exchange(provider, transport)

    body = dict(parse_qsl(transport.last_request.body or ""))
    assert body["code"] == "preset"
    assert body["client_id"] == "other"
    assert body["redirect_uri"] == "https://elsewhere.test"
    assert transport.last_request.headers["Content-Type"] == "application/json"
    assert provider.headers == {"Content-Type": "application/json", "Accept": "application/json"}
    assert provider.params["code"] == "preset"


@pytest.mark.asyncio
async def test_twitch_sends_client_id_header() -> None:
    transport = FakeOAuth2Transport(CannedReply(body=TOKEN_BODY))

    await _exchange(make_provider("twitch"), transport)

    assert transport.last_request.headers["Client-ID"] == "cid"


@pytest.mark.asyncio
async def test_reddit_forces_basic_authorization() -> None:
    provider = make_provider("reddit", headers={"Authorization": "Bearer configured"})
    transport = FakeOAuth2Transport(CannedReply(body=TOKEN_BODY))

    await _exchange(provider, transport)

    expected = base64.b64encode(b"cid:secret").decode()
    assert transport.last_request.headers["Authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
@pytest.mark.parametrize("provider_id", ["okta", "identity-server4"])
async def test_bearer_code_providers(provider_id: str) -> None:
    transport = FakeOAuth2Transport(CannedReply(body=TOKEN_BODY))

    await _exchange(make_provider(provider_id), transport)

    assert transport.last_request.headers["Authorization"] == "Bearer abc"


@pytest.mark.asyncio
async def test_bearer_code_keeps_configured_authorization() -> None:
    provider = make_provider("okta", headers={"Authorization": "Basic configured"})
    transport = FakeOAuth2Transport(CannedReply(body=TOKEN_BODY))

    await _exchange(provider, transport)

    assert transport.last_request.headers["Authorization"] == "Basic configured"


@pytest.mark.asyncio
async def test_apple_client_secret_is_minted() -> None:
    provider = make_provider(
        "apple",
        client_secret={"keyId": "KEY", "teamId": "TEAM", "privateKey": "line1\\nline2"},
    )
    signer = CapturingSigner()
    transport = FakeOAuth2Transport(CannedReply(body=TOKEN_BODY))

    await _exchange(provider, transport, signer=signer, clock=lambda: 1_700_000_000.5)

    body = dict(parse_qsl(transport.last_request.body or ""))
    assert body["client_secret"] == "minted-secret"
    (call,) = signer.calls
    assert call["private_key"] == "line1\nline2"
    assert call["algorithm"] == "ES256"
    assert call["key_id"] == "KEY"
    assert call["claims"]["iss"] == "TEAM"
    assert call["claims"]["sub"] == "cid"
    assert call["claims"]["iat"] == 1_700_000_000


@pytest.mark.asyncio
async def test_signed_secret_without_quirk_is_rejected() -> None:
    provider = make_provider(
        client_secret={"keyId": "KEY", "teamId": "TEAM", "privateKey": "pem"},
    )
    transport = FakeOAuth2Transport()

    with pytest.raises(ProviderConfigurationError):
        await _exchange(provider, transport, signer=CapturingSigner())

    assert transport.requests == []


@pytest.mark.asyncio
async def test_form_encoded_response_fallback(provider: ProviderConfig) -> None:
    transport = FakeOAuth2Transport(
        CannedReply(body="access_token=form-at&refresh_token=form-rt&scope=read")
    )

    result = await _exchange(provider, transport)

    assert result.access_token == "form-at"
    assert result.refresh_token == "form-rt"
    assert result.raw == {
        "access_token": "form-at",
        "refresh_token": "form-rt",
        "scope": "read",
    }


@pytest.mark.asyncio
async def test_spotify_token_is_nested() -> None:
    transport = FakeOAuth2Transport(
        CannedReply(body='{"authed_user": {"access_token": "tok"}, "access_token": "bot"}')
    )

    result = await _exchange(make_provider("spotify"), transport)

    assert result.access_token == "tok"
    assert result.refresh_token is None


@pytest.mark.asyncio
async def test_transport_error_is_logged_and_raised(provider: ProviderConfig) -> None:
    error = TransportError("http_error", "denied", status_code=401, body="nope")
    transport = FakeOAuth2Transport(CannedReply(error=error))
    error_logger = RecordingLogger()

    with pytest.raises(TransportError) as excinfo:
        await _exchange(provider, transport, error_logger=error_logger)

    assert excinfo.value is error
    assert error_logger.entries == [(ACCESS_TOKEN_ERROR, (error, "nope", None))]
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_error_logged_with_body_and_response_from_callback(
    provider: ProviderConfig,
) -> None:
    error = RuntimeError("denied")
    response = {"statusCode": 401}
    transport = FakeOAuth2Transport(
        CannedReply(error=error, body="raw-error-body", response=response)
    )
    error_logger = RecordingLogger()

    with pytest.raises(RuntimeError, match="denied"):
        await _exchange(provider, transport, error_logger=error_logger)

    assert error_logger.entries == [
        (ACCESS_TOKEN_ERROR, (error, "raw-error-body", {"statusCode": 401}))
    ]


@pytest.mark.asyncio
async def test_non_exception_error_is_logged_as_reported(provider: ProviderConfig) -> None:
    reported = {"statusCode": 500, "data": "upstream down"}
    transport = FakeOAuth2Transport(CannedReply(error=reported, body="upstream down"))
    error_logger = RecordingLogger()

    with pytest.raises(TransportError) as excinfo:
        await _exchange(provider, transport, error_logger=error_logger)

    assert error_logger.entries == [(ACCESS_TOKEN_ERROR, (reported, "upstream down", None))]
    assert excinfo.value.reported_error is reported
    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "upstream down"


@pytest.mark.asyncio
async def test_oauth_error_response(provider: ProviderConfig) -> None:
    transport = FakeOAuth2Transport(
        CannedReply(body='{"error": "invalid_grant", "error_description": "expired"}')
    )

    with pytest.raises(ProviderError) as excinfo:
        await _exchange(provider, transport)

    assert excinfo.value.error == "invalid_grant"
    assert excinfo.value.description == "expired"


@pytest.mark.asyncio
async def test_missing_access_token(provider: ProviderConfig) -> None:
    transport = FakeOAuth2Transport(CannedReply(body='{"token_type": "bearer"}'))

    with pytest.raises(TokenResponseError):
        await _exchange(provider, transport)


@pytest.mark.asyncio
async def test_missing_token_url() -> None:
    provider = make_provider(access_token_url=None)

    with pytest.raises(ProviderConfigurationError):
        await _exchange(provider, FakeOAuth2Transport())


def test_decode_rejects_empty_body() -> None:
    with pytest.raises(TokenResponseError):
        decode_token_response("")


def test_decode_falls_back_for_non_object_json() -> None:
    assert decode_token_response("access_token=x") == {"access_token": "x"}
    assert decode_token_response('{"access_token": "y"}') == {"access_token": "y"}
