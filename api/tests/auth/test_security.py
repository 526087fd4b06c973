"""Tests for auth security functions."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from agora.auth.security import (
    create_access_token,
    decode_access_token,
    generate_oauth_state,
    states_match,
)


class TestAccessToken:
    """Tests for JWT access tokens."""

    def test_roundtrip(self, settings) -> None:
        user_id = str(uuid4())
        token = create_access_token(
            {"sub": user_id, "email": "ana@example.com", "role": "user"}, settings
        )

        payload = decode_access_token(token, settings)

        assert payload["sub"] == user_id
        assert payload["email"] == "ana@example.com"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_expired_token_rejected(self, settings) -> None:
        token = create_access_token(
            {"sub": str(uuid4())}, settings, expires_delta=timedelta(seconds=-1)
        )
        with pytest.raises(JWTError):
            decode_access_token(token, settings)

    def test_wrong_type_rejected(self, settings) -> None:
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )
        with pytest.raises(JWTError, match="expected 'access'"):
            decode_access_token(token, settings)

    def test_missing_sub_rejected(self, settings) -> None:
        token = create_access_token({"email": "ana@example.com"}, settings)
        with pytest.raises(JWTError, match="sub"):
            decode_access_token(token, settings)

    def test_wrong_key_rejected(self, settings) -> None:
        token = create_access_token({"sub": str(uuid4())}, settings)
        other = settings.model_copy(
            update={"auth_secret_key": "another-secret-key-of-32-characters!!"}
        )
        with pytest.raises(JWTError):
            decode_access_token(token, other)


class TestOAuthState:
    def test_states_are_random(self) -> None:
        assert generate_oauth_state() != generate_oauth_state()

    def test_states_match(self) -> None:
        state = generate_oauth_state()
        assert states_match(state, state) is True
        assert states_match(state, state + "x") is False

    @pytest.mark.parametrize("expected,received", [(None, "a"), ("a", None), ("", "")])
    def test_missing_state_never_matches(self, expected, received) -> None:
        assert states_match(expected, received) is False
