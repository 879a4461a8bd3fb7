from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from activity_tracker.core.config import Settings, settings

logger = logging.getLogger(__name__)

SENDER_NAME = "Activity Tracker"


class EmailService:
    """Sends HTML mail over SMTP. Delivery errors propagate to the caller."""

    def __init__(self, config: Settings):
        self.config = config

    def _connect(self) -> smtplib.SMTP:
        if self.config.SMTP_USE_SSL:
            return smtplib.SMTP_SSL(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=20)
        return smtplib.SMTP(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=20)

    def send_email(self, to: str, subject: str, html_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((SENDER_NAME, self.config.SMTP_FROM))
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        with self._connect() as server:
            if not self.config.SMTP_USE_SSL:
                server.starttls()
            if self.config.SMTP_USER:
                server.login(self.config.SMTP_USER, self.config.SMTP_PASSWORD or "")
            server.send_message(msg)

        logger.info("Email sent", extra={"to": to, "subject": subject})


def get_email_service() -> EmailService:
    return EmailService(settings)


def password_reset_email(username: str, token: str) -> tuple[str, str]:
    subject = "Reset hasła - Activity Tracker"
    body = f"""
        <div style='font-family: Arial, sans-serif; padding: 20px; color: #333;'>
            <h2>Cześć {username}!</h2>
            <p>Otrzymaliśmy prośbę o zresetowanie hasła do Twojego konta.</p>
            <p>Twój kod resetujący to:</p>
            <div style='background-color: #f4f4f4; padding: 15px; border-radius: 5px; display: inline-block;'>
                <h2 style='margin: 0; letter-spacing: 3px; color: #007bff; word-break: break-all;'>{token}</h2>
            </div>
            <p>Skopiuj ten kod i wklej go w aplikacji, aby ustawić nowe hasło.</p>
            <hr style='border: 0; border-top: 1px solid #eee; margin: 20px 0;'>
            <small style='color: #888;'>Jeśli to nie Ty wysłałeś prośbę, zignoruj tę wiadomość.</small>
        </div>"""
    return subject, body
