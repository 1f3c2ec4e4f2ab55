# identity/core/errors.py
import enum
from typing import Any, Optional

from pydantic import BaseModel


class AccountError(str, enum.Enum):
    DUPLICATE_EMAIL = "DuplicateEmail"
    USER_NOT_FOUND = "UserNotFound"
    INVALID_CREDENTIALS = "InvalidCredentials"
    ACCOUNT_CREATION_FAILED = "AccountCreationFailed"
    LOGIN_FAILED = "LoginFailed"
    PROFILE_UPDATE_FAILED = "ProfileUpdateFailed"
    VERIFICATION_NOT_FOUND = "VerificationNotFound"
    VERIFICATION_FAILED = "VerificationFailed"

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self]


ERROR_MESSAGES = {
    AccountError.DUPLICATE_EMAIL: "There is user with that email already",
    AccountError.USER_NOT_FOUND: "User not Found",
    AccountError.INVALID_CREDENTIALS: "Wrong password",
    AccountError.ACCOUNT_CREATION_FAILED: "Couldn't create account",
    AccountError.LOGIN_FAILED: "Couldn't login",
    AccountError.PROFILE_UPDATE_FAILED: "Could not update profile.",
    AccountError.VERIFICATION_NOT_FOUND: "Verification not found.",
    AccountError.VERIFICATION_FAILED: "Could not verify email.",
}


class Result(BaseModel):
    """Uniform outcome of an account use case.

    Business-rule failures come back as ``ok=False`` with an ``error`` kind;
    they are never raised.
    """

    ok: bool
    error: Optional[AccountError] = None
    payload: Optional[Any] = None

    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def success(cls, payload: Any = None) -> "Result":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: AccountError) -> "Result":
        return cls(ok=False, error=error)

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None


class InvalidToken(Exception):
    pass


class NotificationError(Exception):
    """Verification message could not be delivered."""
