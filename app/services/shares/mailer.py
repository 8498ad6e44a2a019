# app/services/shares/mailer.py
from pathlib import Path

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from loguru import logger
from pydantic import SecretStr

from app.core.settings import settings


class MailerService:
    """System e-mails (welcome, enquiry reply). Delivery failures are logged, never raised."""

    def __init__(self):
        base_dir = Path(__file__).resolve().parent.parent.parent  # -> app/
        template_dir = base_dir / "templates" / "emails"

        self.conf = ConnectionConfig(
            MAIL_USERNAME=settings.MAIL_USERNAME,
            MAIL_PASSWORD=SecretStr(settings.MAIL_PASSWORD),
            MAIL_FROM=settings.MAIL_FROM,
            MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
            MAIL_PORT=settings.MAIL_PORT,
            MAIL_SERVER=settings.MAIL_SERVER,
            MAIL_STARTTLS=settings.MAIL_TLS,
            MAIL_SSL_TLS=settings.MAIL_SSL,
            USE_CREDENTIALS=bool(settings.MAIL_USERNAME),
            VALIDATE_CERTS=True,
            SUPPRESS_SEND=1 if settings.MAIL_SUPPRESS_SEND else 0,
            TEMPLATE_FOLDER=template_dir,
        )
        self.fastmail = FastMail(self.conf)

    async def _send(
        self, subject: str, recipients: list[str], template_name: str, context: dict
    ) -> bool:
        message = MessageSchema(
            subject=subject,
            recipients=recipients,
            template_body=context,
            subtype=MessageType.html,
        )
        try:
            await self.fastmail.send_message(message, template_name=template_name)
            logger.info(f"📧 Sent '{subject}' to {', '.join(recipients)}")
            return True
        except Exception as e:
            logger.error(f"❌ Error sending '{subject}' to {', '.join(recipients)}: {e}")
            return False

    async def send_welcome_email(self, email: str, name: str, account_type: str) -> bool:
        return await self._send(
            subject="Welcome to EduList",
            recipients=[email],
            template_name="welcome.html",
            context={
                "name": name,
                "account_type": account_type,
                "frontend_url": settings.FRONTEND_URL,
            },
        )

    async def send_enquiry_reply_email(
        self,
        email: str,
        name: str,
        institute_name: str,
        enquiry_message: str,
        reply: str,
    ) -> bool:
        return await self._send(
            subject=f"Reply to your enquiry - {institute_name}",
            recipients=[email],
            template_name="enquiry_reply.html",
            context={
                "name": name,
                "institute_name": institute_name,
                "enquiry_message": enquiry_message,
                "reply": reply,
                "frontend_url": settings.FRONTEND_URL,
            },
        )
