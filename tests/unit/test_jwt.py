"""Unit tests for bearer token handling."""

import uuid
from datetime import timedelta

from growthlab.kernel.identity.jwt import JWTManager


class TestJWTManager:

    def test_round_trip_subject(self):
        manager = JWTManager(secret_key="k" * 32)
        user_id = uuid.uuid4()

        token, _ = manager.create_access_token(user_id, email="uma@example.com")
        payload = manager.verify_access_token(token)

        assert payload.sub == str(user_id)
        assert payload.email == "uma@example.com"

    def test_expired_token(self):
        manager = JWTManager(secret_key="k" * 32)
        token, _ = manager.create_access_token(uuid.uuid4(), expires_delta=timedelta(seconds=-10))
        assert manager.verify_access_token(token) is None

    def test_wrong_secret(self):
        token, _ = JWTManager(secret_key="a" * 32).create_access_token(uuid.uuid4())
        assert JWTManager(secret_key="b" * 32).verify_access_token(token) is None

    def test_garbage(self):
        assert JWTManager(secret_key="k" * 32).verify_access_token("not-a-token") is None
