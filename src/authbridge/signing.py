"""Client secrets minted as signed tokens.

Sign in with Apple does not accept a static client secret; each token request
carries a short-lived ES256 JWT signed with the developer's private key.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any

from joserfc import jwt
from joserfc.jwk import ECKey

from authbridge.config import SignedClientSecret
from authbridge.contracts import CredentialSigner
from authbridge.quirks import (
    APPLE_AUDIENCE,
    SIGNED_SECRET_ALGORITHM,
    SIGNED_SECRET_LIFETIME_SECONDS,
)


class JoseCredentialSigner:
    """CredentialSigner backed by joserfc.

    Only EC keys are accepted, matching the ES256 secrets providers ask for.
    """

    def sign(
        self,
        claims: Mapping[str, Any],
        private_key: str,
        *,
        algorithm: str,
        key_id: str,
    ) -> str:
        key = ECKey.import_key(private_key)
        return jwt.encode(
            {"alg": algorithm, "kid": key_id}, dict(claims), key, algorithms=[algorithm]
        )


def normalize_private_key(private_key: str) -> str:
    # Keys passed through environment variables often arrive with "\n" escaped
    return private_key.replace("\\n", "\n")


def mint_client_secret(
    client_id: str,
    descriptor: SignedClientSecret,
    signer: CredentialSigner,
    *,
    clock: Callable[[], float] = time.time,
) -> str:
    """Mint a client secret valid for 180 days from now."""
    issued_at = int(clock())
    claims = {
        "iss": descriptor.team_id,
        "iat": issued_at,
        "exp": issued_at + SIGNED_SECRET_LIFETIME_SECONDS,
        "aud": APPLE_AUDIENCE,
        "sub": client_id,
    }
    return signer.sign(
        claims,
        normalize_private_key(descriptor.private_key),
        algorithm=SIGNED_SECRET_ALGORITHM,
        key_id=descriptor.key_id,
    )


__all__ = ["JoseCredentialSigner", "mint_client_secret", "normalize_private_key"]
