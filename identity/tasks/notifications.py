import asyncio

from identity.tasks.celery_app import celery_app
from loguru import logger

from identity.core.errors import NotificationError
from identity.services.email import send_verification_email


@celery_app.task(
    bind=True,
    name="identity.tasks.notifications.send_verification_email",
    autoretry_for=(NotificationError,),
    retry_backoff=True,
    max_retries=3,
)
def send_verification_email_task(self, email_to: str, code: str) -> bool:
    sent = asyncio.run(send_verification_email(email_to, code))
    if not sent:
        logger.warning(f"Verification email to {email_to} failed (attempt {self.request.retries + 1})")
        raise NotificationError(f"Verification email to {email_to} was not sent")
    return True
