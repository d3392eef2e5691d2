# shared/utils/email.py
"""
Envío de emails transaccionales por SMTP
"""
import smtplib
from email.message import EmailMessage
from typing import Optional

from shared.config.settings import Settings, get_settings
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class EmailSender:
    """Cliente SMTP con la configuración EMAIL_* de settings"""

    def __init__(self, settings: Optional[Settings] = None, timeout_seconds: int = 10):
        self.settings = settings or get_settings()
        self.timeout_seconds = timeout_seconds

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.EMAIL_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, to: str, subject: str, body: str) -> None:
        """
        Enviar un email de texto plano

        Raises:
            smtplib.SMTPException / OSError si el transporte falla
        """
        message = self._build_message(to, subject, body)

        with smtplib.SMTP(
            self.settings.EMAIL_HOST,
            self.settings.EMAIL_PORT,
            timeout=self.timeout_seconds
        ) as smtp:
            if self.settings.EMAIL_USERNAME and self.settings.EMAIL_PASSWORD:
                smtp.login(self.settings.EMAIL_USERNAME, self.settings.EMAIL_PASSWORD)
            smtp.send_message(message)

        logger.info(f"Email enviado a {to}: {subject}")


def get_email_sender() -> EmailSender:
    """Dependencia de FastAPI (reemplazable en tests)"""
    return EmailSender()
