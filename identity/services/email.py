from identity.core.config import settings
from loguru import logger
import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart


async def send_email_smtp(email_to: str, subject: str, body: str) -> bool:
    try:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
        message["To"] = email_to

        html_part = MIMEText(body, "html")
        message.attach(html_part)

        await aiosmtplib.send(
            message,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            start_tls=settings.SMTP_TLS,
            timeout=30,
        )

        logger.info(f"Email sent successfully to {email_to}")
        return True
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email to {email_to}: {str(e)}")
        return False


def render_verification_email(verification_code: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body style="margin: 0; padding: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif; background-color: #f5f5f5;">
        <table cellpadding="0" cellspacing="0" border="0" width="100%" style="background-color: #f5f5f5; padding: 20px 0;">
            <tr>
                <td align="center">
                    <table cellpadding="0" cellspacing="0" border="0" width="600" style="max-width: 600px; background-color: #ffffff; border-radius: 8px;">
                        <tr>
                            <td style="padding: 40px 30px;">
                                <h2 style="margin: 0 0 20px 0; color: #1F2937; font-size: 24px; text-align: center;">Verify your email</h2>
                                <p style="margin: 0 0 30px 0; color: #4B5563; font-size: 16px; line-height: 24px; text-align: center;">
                                    Use the code below to confirm that this address belongs to you.
                                </p>
                                <div style="background-color: #F3F4F6; border-radius: 8px; padding: 30px; text-align: center;">
                                    <div style="font-size: 24px; font-weight: 700; color: #6322FE; font-family: 'Courier New', monospace;">
                                        {verification_code}
                                    </div>
                                </div>
                                <p style="margin: 30px 0 0 0; color: #6B7280; font-size: 14px; text-align: center;">
                                    If you did not request this, just ignore this message.
                                </p>
                            </td>
                        </tr>
                    </table>
                </td>
            </tr>
        </table>
    </body>
    </html>
    """


async def send_verification_email(email_to: str, verification_code: str) -> bool:
    subject = f"Verify your email - {settings.EMAILS_FROM_NAME}"
    return await send_email_smtp(email_to, subject, render_verification_email(verification_code))
