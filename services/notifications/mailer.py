"""SMTP mailer for verification and password reset links.

Sends are scheduled as FastAPI background tasks; a failed delivery is
logged and never changes the outcome of the request that queued it.
"""

import smtplib
from email.message import EmailMessage
from urllib.parse import quote

from shared.utils import config, setup_logging

from .templates import password_reset_email, verification_email

logger = setup_logging("mailer")


class Mailer:
    """Deliver account e-mails through an SMTP relay."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        timeout: int = 20,
    ) -> None:
        self.host = host or config.get("smtp_host")
        self.port = port or int(config.get("smtp_port", 587))
        self.user = user or config.get("email_user")
        self.password = password or config.get("email_pass")
        self.timeout = timeout

    def verification_link(self, email: str, otp: str) -> str:
        return f"{config.get('server_address')}/verify/{quote(email)}/{otp}"

    def reset_link(self, email: str, otp: str) -> str:
        return f"{config.get('client_address')}/resetpass/{quote(email)}/{otp}"

    def send(self, to: str, subject: str, html: str, text: str) -> bool:
        """Send one message; returns False instead of raising on failure."""
        if not self.host or not self.user:
            logger.warning(f"SMTP not configured; mail to {to} not sent")
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.user
        msg["To"] = to
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.starttls()
                if self.password:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Mail delivery to {to} failed: {e}")
            return False

        logger.info(f"Sent '{subject}' to {to}")
        return True

    def send_verification(self, email: str, otp: str) -> bool:
        subject, html, text = verification_email(self.verification_link(email, otp))
        return self.send(email, subject, html, text)

    def send_password_reset(self, email: str, otp: str) -> bool:
        subject, html, text = password_reset_email(self.reset_link(email, otp))
        return self.send(email, subject, html, text)


mailer = Mailer()


def get_mailer() -> Mailer:
    """Dependency returning the process mailer."""
    return mailer
