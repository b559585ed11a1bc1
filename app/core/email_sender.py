"""Send OTP emails over SMTP. Transport errors surface as DeliveryFailed; nothing is retried."""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from app.core.errors import DeliveryFailed

logger = logging.getLogger(__name__)


class SmtpMailer:
    """SMTP credentials and endpoint, built once at startup. Opens a fresh STARTTLS connection per message."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        from_addr: Optional[str] = None,
        timeout: float = 10,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_addr = from_addr or user
        self.timeout = timeout

    def send(self, to_email: str, subject: str, body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_addr
        msg["To"] = to_email
        msg.attach(MIMEText(body, "plain"))
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.from_addr, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Failed to send email to %s: %s", to_email, e)
            raise DeliveryFailed(detail=str(e)) from e
        logger.info("Email sent to %s", to_email)


def send_otp_email(mailer, to_email: str, code: str, action: str, valid_minutes: int) -> None:
    purpose = "Registration" if action == "signup" else "Login"
    mailer.send(
        to_email,
        f"Your OTP for {purpose}",
        f"Your OTP is {code}. It is valid for {valid_minutes} minutes.",
    )
