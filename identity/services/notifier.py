import asyncio
from typing import Protocol
from loguru import logger

from identity.core.config import settings
from identity.core.errors import NotificationError
from identity.services import email


class Notifier(Protocol):
    async def send_verification_email(self, email_to: str, code: str) -> None:
        ...


class EmailNotifier:
    """Sends the verification code over SMTP from the current process."""

    async def send_verification_email(self, email_to: str, code: str) -> None:
        sent = await email.send_verification_email(email_to, code)
        if not sent:
            raise NotificationError(f"Verification email to {email_to} was not sent")


class CeleryNotifier:
    """Hands the message to the notifications worker; retries happen there."""

    async def send_verification_email(self, email_to: str, code: str) -> None:
        from identity.tasks.notifications import send_verification_email_task

        # publishing talks to the broker synchronously
        result = await asyncio.to_thread(send_verification_email_task.delay, email_to, code)
        logger.debug(f"Queued verification email to {email_to} as task {result.id}")


def get_notifier() -> Notifier:
    if settings.NOTIFICATIONS_VIA_CELERY:
        return CeleryNotifier()
    return EmailNotifier()
