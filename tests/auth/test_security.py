"""Tests for auth security functions."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from storefront.auth.permissions import UserRole
from storefront.auth.security import create_access_token, decode_access_token
from storefront.config import get_settings


class TestAccessToken:
    """Tests for access token creation and decoding."""

    def test_round_trip_claims(self) -> None:
        """Decoded token should carry the original claims."""
        user_id = uuid4()
        token = create_access_token(
            {"sub": str(user_id), "email": "a@b.com", "role": UserRole.ADMIN.value}
        )

        payload = decode_access_token(token)

        assert payload["sub"] == str(user_id)
        assert payload["role"] == "admin"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_expired_token_rejected(self) -> None:
        token = create_access_token(
            {"sub": str(uuid4())}, expires_delta=timedelta(seconds=-1)
        )

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_type_rejected(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )

        with pytest.raises(JWTError, match="token type"):
            decode_access_token(token)

    def test_missing_subject_rejected(self) -> None:
        token = create_access_token({"email": "a@b.com"})

        with pytest.raises(JWTError, match="sub"):
            decode_access_token(token)

    def test_tampered_token_rejected(self) -> None:
        token = create_access_token({"sub": str(uuid4())})

        with pytest.raises(JWTError):
            decode_access_token(token[:-2] + "xx")
