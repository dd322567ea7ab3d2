from datetime import timedelta

import pytest

from auth import create_access_token, hash_password, jwt_decode, jwt_encode, verify_password
from config import JWT_SECRET


def test_token_round_trip():
    token = create_access_token({"sub": "abc"})
    assert jwt_decode(token, JWT_SECRET)["sub"] == "abc"


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "abc"}, expires_delta=timedelta(seconds=-1))
    with pytest.raises(ValueError, match="expired"):
        jwt_decode(token, JWT_SECRET)


def test_tampered_token_is_rejected():
    token = jwt_encode({"sub": "abc"}, JWT_SECRET)
    with pytest.raises(ValueError):
        jwt_decode(token, "other-secret")
    with pytest.raises(ValueError):
        jwt_decode("not-a-token", JWT_SECRET)


def test_password_hashing():
    hashed = hash_password("secret123")
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)
