"""
Session token codec and credential hashing.
"""

import jwt
import pytest
from flask import current_app

from pcs.services.credentials import burn_verification, hash_password, verify_password
from pcs.services.session_service import Actor, sign_token, verify_token

pytestmark = pytest.mark.unit


class TestTokenCodec:

    def test_roundtrip_claims(self):
        token = sign_token(3, "ENGINEER", "SOFTWARE")
        assert verify_token(token) == Actor(user_id=3, role="ENGINEER", team="SOFTWARE")

    def test_admin_without_team(self):
        actor = verify_token(sign_token(1, "ADMIN", None))
        assert actor.is_admin
        assert actor.team is None

    def test_exp_claim_written(self):
        token = sign_token(1, "ADMIN", None)
        payload = jwt.decode(token, options={"verify_signature": False})
        assert "exp" in payload

    def test_zero_lifetime_omits_exp(self):
        token = sign_token(1, "ADMIN", None, expires=0)
        payload = jwt.decode(token, options={"verify_signature": False})
        assert "exp" not in payload
        assert verify_token(token) is not None

    def test_expired_token_rejected(self):
        expired = jwt.encode(
            {"user_id": 1, "role": "ADMIN", "team": None, "exp": 1},
            current_app.config["SECRET_KEY"], algorithm="HS256",
        )
        assert verify_token(expired) is None

    @pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c", 12345])
    def test_malformed_returns_none(self, token):
        assert verify_token(token) is None

    def test_wrong_secret_rejected(self):
        token = sign_token(3, "ENGINEER", "SOFTWARE", secret="some-other-secret-value-32-bytes!")
        assert verify_token(token) is None

    def test_tampered_payload_rejected(self):
        header, payload, sig = sign_token(3, "ENGINEER", "SOFTWARE").split(".")
        forged = jwt.encode({"user_id": 3, "role": "ADMIN", "team": None}, "x" * 32, algorithm="HS256")
        assert verify_token(".".join([header, forged.split(".")[1], sig])) is None

    def test_unsigned_token_rejected(self):
        unsigned = jwt.encode({"user_id": 1, "role": "ADMIN", "team": None}, None, algorithm="none")
        assert verify_token(unsigned) is None

    @pytest.mark.parametrize("claims", [
        {"user_id": "1", "role": "ADMIN", "team": None},
        {"user_id": True, "role": "ADMIN", "team": None},
        {"user_id": 1, "role": "ROOT", "team": None},
        {"user_id": 1, "role": "LEAD", "team": None},
        {"user_id": 1, "role": "LEAD", "team": "MARKETING"},
    ])
    def test_invalid_claims_rejected(self, claims):
        token = jwt.encode(claims, current_app.config["SECRET_KEY"], algorithm="HS256")
        assert verify_token(token) is None


class TestCredentials:

    def test_hash_and_verify(self):
        hashed = hash_password("password123", rounds=4)
        assert hashed.startswith("$2")
        assert verify_password("password123", hashed)
        assert not verify_password("password124", hashed)

    def test_salted(self):
        assert hash_password("password123", rounds=4) != hash_password("password123", rounds=4)

    @pytest.mark.parametrize("stored", [None, "", "not-a-bcrypt-hash"])
    def test_bad_hash_is_mismatch(self, stored):
        assert verify_password("password123", stored) is False

    def test_burn_verification_does_not_raise(self):
        burn_verification("anything")
        burn_verification("")
