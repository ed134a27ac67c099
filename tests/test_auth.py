"""
Tests for authentication (login, refresh, bearer tokens).

These tests verify:
  - Login returns an access/refresh token pair
  - Wrong password, unknown user and deactivated user get the same 401
  - Refresh tokens mint new pairs; access tokens are not accepted as refresh
  - Protected endpoints reject missing, malformed and refresh tokens
  - Admin accounts are kept off the cardholder endpoints
"""

import pytest
from jose import JWTError

from bankcards.exceptions import InvalidCredentialsError
from bankcards.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_token_pair,
    decode_token,
)
from bankcards.services import auth_service, user_service


class TestTokens:

    def test_pair_carries_subject_and_type(self):
        pair = create_token_pair("user-1")
        assert decode_token(pair.access_token, ACCESS_TOKEN_TYPE) == "user-1"
        assert decode_token(pair.refresh_token, REFRESH_TOKEN_TYPE) == "user-1"

    def test_types_are_not_interchangeable(self):
        pair = create_token_pair("user-1")
        with pytest.raises(JWTError):
            decode_token(pair.access_token, REFRESH_TOKEN_TYPE)
        with pytest.raises(JWTError):
            decode_token(pair.refresh_token, ACCESS_TOKEN_TYPE)

    def test_garbage_token(self):
        with pytest.raises(JWTError):
            decode_token("not.a.token", ACCESS_TOKEN_TYPE)


class TestAuthService:

    async def test_login(self, db_session, cardholder):
        user, tokens = await auth_service.login(db_session, "ivan", "IvanPass123!")
        assert user.id == cardholder.id
        assert decode_token(tokens.access_token, ACCESS_TOKEN_TYPE) == str(cardholder.id)

    @pytest.mark.parametrize(
        "username, password",
        [("ivan", "wrong"), ("nobody", "IvanPass123!")],
    )
    async def test_bad_credentials(self, db_session, cardholder, username, password):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(db_session, username, password)

    async def test_deactivated_user(self, db_session, cardholder):
        await user_service.deactivate_user(db_session, cardholder.id)
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(db_session, "ivan", "IvanPass123!")

    async def test_refresh(self, db_session, cardholder):
        _, tokens = await auth_service.login(db_session, "ivan", "IvanPass123!")
        fresh = await auth_service.refresh(db_session, tokens.refresh_token)
        assert decode_token(fresh.access_token, ACCESS_TOKEN_TYPE) == str(cardholder.id)

    async def test_refresh_with_access_token(self, db_session, cardholder):
        _, tokens = await auth_service.login(db_session, "ivan", "IvanPass123!")
        with pytest.raises(InvalidCredentialsError):
            await auth_service.refresh(db_session, tokens.access_token)

    async def test_refresh_for_deactivated_user(self, db_session, cardholder):
        _, tokens = await auth_service.login(db_session, "ivan", "IvanPass123!")
        await user_service.deactivate_user(db_session, cardholder.id)
        with pytest.raises(InvalidCredentialsError):
            await auth_service.refresh(db_session, tokens.refresh_token)


class TestAuthEndpoints:

    async def test_login_and_refresh(self, client, cardholder):
        response = await client.post(
            "/auth/login", json={"username": "ivan", "password": "IvanPass123!"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"

        response = await client.post(
            "/auth/refresh", json={"refresh_token": data["refresh_token"]},
        )
        assert response.status_code == 200
        assert response.json()["access_token"]

    async def test_wrong_password(self, client, cardholder):
        response = await client.post(
            "/auth/login", json={"username": "ivan", "password": "nope"},
        )
        assert response.status_code == 401
        assert response.json() == {
            "detail": "Invalid username or password",
            "error_type": "invalid_credentials",
        }

    async def test_unknown_user_gets_same_error(self, client):
        response = await client.post(
            "/auth/login", json={"username": "ghost", "password": "nope"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    async def test_refresh_rejects_garbage(self, client):
        response = await client.post("/auth/refresh", json={"refresh_token": "garbage"})
        assert response.status_code == 401

    async def test_missing_token(self, client):
        response = await client.get("/cards")
        assert response.status_code == 401

    async def test_malformed_token(self, client):
        response = await client.get("/cards", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    async def test_refresh_token_is_not_an_access_token(self, client, cardholder):
        response = await client.post(
            "/auth/login", json={"username": "ivan", "password": "IvanPass123!"},
        )
        refresh_token = response.json()["refresh_token"]

        response = await client.get(
            "/cards", headers={"Authorization": f"Bearer {refresh_token}"},
        )
        assert response.status_code == 401

    async def test_admin_is_kept_off_cardholder_endpoints(self, client, admin_headers):
        for path in ("/cards", "/cards/balance"):
            response = await client.get(path, headers=admin_headers)
            assert response.status_code == 403
