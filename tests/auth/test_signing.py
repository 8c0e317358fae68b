import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from joserfc import jwt
from joserfc.jwk import ECKey

from authbridge.config import SignedClientSecret
from authbridge.quirks import APPLE_AUDIENCE
from authbridge.signing import JoseCredentialSigner, mint_client_secret, normalize_private_key
from tests.auth.transport_testkit import CapturingSigner


@pytest.fixture(scope="module")
def ec_key_pair() -> tuple[str, bytes]:
    key = ec.generate_private_key(ec.SECP256R1())
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


def test_minted_claims() -> None:
    signer = CapturingSigner()
    descriptor = SignedClientSecret(key_id="KEY", team_id="TEAM", private_key="a\\nb")

    secret = mint_client_secret("com.example.web", descriptor, signer, clock=lambda: 1000.9)

    assert secret == "minted-secret"
    (call,) = signer.calls
    claims = call["claims"]
    assert claims["iss"] == "TEAM"
    assert claims["sub"] == "com.example.web"
    assert claims["aud"] == APPLE_AUDIENCE
    assert claims["iat"] == 1000
    assert claims["exp"] - claims["iat"] == 180 * 24 * 60 * 60
    assert call["private_key"] == "a\nb"


def test_normalize_private_key_leaves_real_newlines() -> None:
    assert normalize_private_key("x\ny") == "x\ny"
    assert normalize_private_key("x\\ny\\nz") == "x\ny\nz"


def test_jose_signer_produces_verifiable_es256_token(ec_key_pair: tuple[str, bytes]) -> None:
    private_pem, public_pem = ec_key_pair
    escaped = private_pem.replace("\n", "\\n")
    descriptor = SignedClientSecret(key_id="KEY123", team_id="TEAM", private_key=escaped)

    token = mint_client_secret("cid", descriptor, JoseCredentialSigner(), clock=lambda: 1_700_000_000)

    decoded = jwt.decode(token, ECKey.import_key(public_pem), algorithms=["ES256"])
    assert decoded.header["alg"] == "ES256"
    assert decoded.header["kid"] == "KEY123"
    claims = decoded.claims
    assert claims["iss"] == "TEAM"
    assert claims["sub"] == "cid"
    assert claims["aud"] == APPLE_AUDIENCE
    assert claims["exp"] == 1_700_000_000 + 86400 * 180
