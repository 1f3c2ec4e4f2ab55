import asyncio
from typing import Optional, Set, Union
import uuid

from loguru import logger
from sqlalchemy.exc import IntegrityError

from identity.core.config import settings
from identity.core.errors import AccountError, Result
from identity.core.security import TokenIssuer, get_password_hash, verify_password
from identity.models.users import UserRole
from identity.repositories.users import UserRepository
from identity.repositories.verifications import VerificationRepository
from identity.services.notifier import Notifier

# strong references; the event loop only keeps weak ones
_background_tasks: Set[asyncio.Task] = set()

LOGIN_FIELDS = ("id", "password_hash")


def normalize_email(email: str) -> str:
    email = email.strip()
    if settings.EMAIL_CASE_SENSITIVE:
        return email
    return email.lower()


async def drain_background_tasks() -> None:
    """Wait for every in-flight verification notification in this process."""
    if _background_tasks:
        await asyncio.gather(*_background_tasks)


class AccountService:
    """
    Account creation, login, profile edits and email verification.

    Holds no state between calls apart from in-flight notifications. Every
    use case returns a Result; collaborator failures are logged here and
    reported as the generic error of that use case.
    """

    def __init__(
            self,
            users: UserRepository,
            verifications: VerificationRepository,
            notifier: Notifier,
            token_issuer: TokenIssuer,
    ):
        self.users = users
        self.verifications = verifications
        self.notifier = notifier
        self.token_issuer = token_issuer
        self._pending: Set[asyncio.Task] = set()

    async def create_account(
            self,
            email: str,
            password: str,
            role: Union[UserRole, str] = UserRole.CLIENT,
    ) -> Result:
        try:
            email = normalize_email(email)
            exists = await self.users.find_by_email(email)
            if exists:
                return Result.failure(AccountError.DUPLICATE_EMAIL)

            user = await self.users.save(
                self.users.create(
                    email=email,
                    password_hash=get_password_hash(password),
                    role=UserRole(role),
                    verified=False,
                )
            )
            verification = await self.verifications.save(self.verifications.create(user))
            await self.users.commit()
        except IntegrityError:
            # lost the race against a concurrent signup; the unique index decided
            logger.warning(f"Duplicate email on insert: {email}")
            await self._rollback()
            return Result.failure(AccountError.DUPLICATE_EMAIL)
        except Exception:
            logger.exception("Account creation failed")
            await self._rollback()
            return Result.failure(AccountError.ACCOUNT_CREATION_FAILED)

        logger.info(f"Created account {user.id} ({user.role.value})")
        self._dispatch_verification(user.email, verification.code)
        return Result.success()

    async def login(self, email: str, password: str) -> Result:
        try:
            user = await self.users.find_by_email(normalize_email(email), fields=LOGIN_FIELDS)
            if not user:
                return Result.failure(AccountError.USER_NOT_FOUND)

            if not verify_password(password, user.password_hash):
                return Result.failure(AccountError.INVALID_CREDENTIALS)

            token = self.token_issuer.issue(user.id)
        except Exception:
            logger.exception("Login failed")
            return Result.failure(AccountError.LOGIN_FAILED)

        return Result.success(payload=token)

    async def user_profile(self, user_id: Union[uuid.UUID, str]) -> Result:
        try:
            user = await self.users.find_by_id(user_id)
        except Exception:
            logger.exception(f"Could not load user {user_id}")
            return Result.failure(AccountError.USER_NOT_FOUND)

        if user is None:
            return Result.failure(AccountError.USER_NOT_FOUND)
        return Result.success(payload=user)

    async def edit_profile(
            self,
            user_id: Union[uuid.UUID, str],
            email: Optional[str] = None,
            password: Optional[str] = None,
    ) -> Result:
        verification = None
        try:
            user = await self.users.find_by_id(user_id)
            if user is None:
                return Result.failure(AccountError.USER_NOT_FOUND)

            if email:
                email = normalize_email(email)
                if email != user.email:
                    user.email = email
                    user.verified = False
                    await self.verifications.delete_by_user(user.id)
                    verification = await self.verifications.save(self.verifications.create(user))

            if password:
                user.password_hash = get_password_hash(password)

            await self.users.save(user)
            await self.users.commit()
        except Exception:
            logger.exception(f"Profile update failed for user {user_id}")
            await self._rollback()
            return Result.failure(AccountError.PROFILE_UPDATE_FAILED)

        if verification is not None:
            self._dispatch_verification(user.email, verification.code)
        return Result.success()

    async def verify_email(self, code: str) -> Result:
        try:
            verification = await self.verifications.find_by_code(code, include_user=True)
            if not verification:
                return Result.failure(AccountError.VERIFICATION_NOT_FOUND)

            user = verification.user
            user.verified = True
            await self.users.save(user)
            deleted = await self.verifications.delete_by_id(verification.id)
            if not deleted:
                # another request consumed this code first
                await self._rollback()
                return Result.failure(AccountError.VERIFICATION_NOT_FOUND)
            await self.users.commit()
        except Exception:
            logger.exception("Email verification failed")
            await self._rollback()
            return Result.failure(AccountError.VERIFICATION_FAILED)

        logger.info(f"User {user.id} verified {user.email}")
        return Result.success()

    async def wait_for_notifications(self) -> None:
        """Block until every notification dispatched by this service has finished."""
        if self._pending:
            await asyncio.gather(*self._pending)

    def _dispatch_verification(self, email: str, code: str) -> None:
        task = asyncio.create_task(self._send_verification(email, code))
        for registry in (_background_tasks, self._pending):
            registry.add(task)
            task.add_done_callback(registry.discard)

    async def _send_verification(self, email: str, code: str) -> None:
        try:
            await self.notifier.send_verification_email(email, code)
        except Exception as e:
            logger.error(f"Verification email to {email} failed: {e}")

    async def _rollback(self) -> None:
        try:
            await self.users.rollback()
        except Exception:
            logger.exception("Rollback failed")
