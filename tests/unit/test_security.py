"""
Unit Tests for Bearer Credential Verification
"""

from datetime import timedelta

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from config.settings import get_settings
from core.exceptions import Unauthenticated
from security import create_access_token, decode_access_token, get_current_principal


def _sign(claims: dict) -> str:
    security = get_settings().security
    return jwt.encode(
        claims, security.secret_key.get_secret_value(), algorithm=security.jwt_algorithm
    )


class TestTokens:
    def test_round_trip(self):
        token = create_access_token("operator-7", scopes=["corpus:write"])
        data = decode_access_token(token)
        assert data.subject == "operator-7"
        assert data.scopes == ["corpus:write"]
        assert data.expires_at > data.issued_at

    def test_expired_token_rejected(self):
        token = create_access_token("operator-7", expires_delta=timedelta(seconds=-5))
        with pytest.raises(Unauthenticated):
            decode_access_token(token)

    def test_wrong_audience_rejected(self):
        security = get_settings().security
        token = _sign({"sub": "operator-7", "aud": "someone-else", "iss": security.jwt_issuer})
        with pytest.raises(Unauthenticated):
            decode_access_token(token)

    def test_foreign_signature_rejected(self):
        security = get_settings().security
        token = jwt.encode(
            {"sub": "operator-7", "aud": security.jwt_audience, "iss": security.jwt_issuer},
            "a-completely-different-signing-key",
            algorithm=security.jwt_algorithm,
        )
        with pytest.raises(Unauthenticated):
            decode_access_token(token)

    def test_missing_subject_rejected(self):
        security = get_settings().security
        token = _sign({"aud": security.jwt_audience, "iss": security.jwt_issuer})
        with pytest.raises(Unauthenticated):
            decode_access_token(token)


class TestPrincipalDependency:
    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(Unauthenticated):
            await get_current_principal(None)

    @pytest.mark.asyncio
    async def test_valid_credentials(self):
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=create_access_token("operator-7")
        )
        principal = await get_current_principal(credentials)
        assert principal.subject == "operator-7"
