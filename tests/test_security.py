import pytest
import uuid
from jose import jwt

from identity.core.errors import InvalidToken
from identity.core.security import (
    TokenIssuer, generate_verification_code, get_password_hash, verify_password,
)


def test_password_hash_round_trip():
    hashed = get_password_hash("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed) is True
    assert verify_password("s3cret-pasS", hashed) is False
    assert verify_password("", hashed) is False


def test_password_hash_is_salted():
    """Same password hashes differently every time"""
    first = get_password_hash("password123")
    second = get_password_hash("password123")
    assert first != second
    assert first.startswith("$pbkdf2-sha256$")
    assert verify_password("password123", first)
    assert verify_password("password123", second)


def test_verify_password_malformed_hash_returns_false():
    assert verify_password("password123", "not-a-real-hash") is False


def test_token_round_trip():
    issuer = TokenIssuer("secret")
    user_id = uuid.uuid4()
    token = issuer.issue(user_id)
    assert isinstance(token, str)
    assert issuer.decode(token) == user_id


def test_token_has_no_expiry_by_default():
    token = TokenIssuer("secret").issue(uuid.uuid4())
    claims = jwt.get_unverified_claims(token)
    assert "exp" not in claims


def test_token_expiry_extension():
    issuer = TokenIssuer("secret", expires_minutes=-1)
    token = issuer.issue(uuid.uuid4())
    assert "exp" in jwt.get_unverified_claims(token)
    with pytest.raises(InvalidToken):
        issuer.decode(token)


def test_token_signed_with_other_secret_is_rejected():
    token = TokenIssuer("other-secret").issue(uuid.uuid4())
    with pytest.raises(InvalidToken):
        TokenIssuer("secret").decode(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_garbage_token_is_rejected(token):
    with pytest.raises(InvalidToken):
        TokenIssuer("secret").decode(token)


def test_token_without_user_id_is_rejected():
    token = jwt.encode({"sub": "someone"}, "secret", algorithm="HS256")
    with pytest.raises(InvalidToken):
        TokenIssuer("secret").decode(token)


def test_token_issuer_requires_secret():
    with pytest.raises(ValueError):
        TokenIssuer("")


def test_verification_codes_are_random():
    codes = {generate_verification_code() for _ in range(100)}
    assert len(codes) == 100
    assert all(len(code) == 22 for code in codes)
    assert len(generate_verification_code(size=32)) == 32
