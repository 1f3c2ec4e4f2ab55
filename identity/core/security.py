# identity/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
import uuid
from functools import lru_cache

import nanoid
from jose import jwt, JWTError
from passlib.context import CryptContext

from identity.core.config import settings
from identity.core.errors import InvalidToken

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Checks a password against a stored hash. Never raises on a mismatch or a malformed hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def generate_verification_code(size: Optional[int] = None) -> str:
    return nanoid.generate(size=size or settings.VERIFICATION_CODE_SIZE)


class TokenIssuer:
    """Signs and decodes the opaque identity token handed out on login.

    The signing secret is injected once and never changes for the lifetime
    of the issuer. Expiry is off unless ``expires_minutes`` is given.
    """

    def __init__(
            self,
            secret_key: str,
            algorithm: str = "HS256",
            expires_minutes: Optional[int] = None,
    ):
        if not secret_key:
            raise ValueError("Token issuer requires a non-empty secret key")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires_minutes = expires_minutes

    def issue(self, user_id: Union[uuid.UUID, str]) -> str:
        payload = {"id": str(user_id)}
        if self._expires_minutes is not None:
            payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=self._expires_minutes)
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> uuid.UUID:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as e:
            raise InvalidToken(str(e)) from e

        user_id = payload.get("id")
        if user_id is None:
            raise InvalidToken("Token has no subject")
        try:
            return uuid.UUID(user_id)
        except (ValueError, TypeError, AttributeError) as e:
            raise InvalidToken("Token subject is not a user id") from e


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
