"""Outbound email for realsauth (SMTP)."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from realsauth.config import Settings

logger = logging.getLogger(__name__)

OTP_SUBJECT = "OTP for your Reals TO Chat authentication"

OTP_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f5f7fa;">
  <div style="background: linear-gradient(135deg, #FF0050, #8A2BE2); color: white; padding: 30px 20px; text-align: center; border-radius: 8px 8px 0 0;">
    <h1 style="margin: 0; font-size: 28px;">Reals TO Chat</h1>
    <p style="margin: 10px 0 0 0;">Create. Connect. Chat.</p>
  </div>
  <div style="background-color: white; padding: 30px 20px; border-radius: 0 0 8px 8px; box-shadow: 0 4px 12px rgba(0, 0, 0, 0.1);">
    <h2 style="color: #333; margin-top: 0;">Verify Your Email Address</h2>
    <p>Hello {{NAME}},</p>
    <p>Thank you for registering with <strong>Reals TO Chat</strong>! To complete your registration, please use the following One-Time Password (OTP) to verify your email address:</p>
    <div style="background-color: #f8f9fa; border-radius: 8px; padding: 20px; text-align: center; margin: 25px 0;">
      <p style="margin: 0 0 15px 0; font-size: 16px;">Your OTP is:</p>
      <div style="font-size: 36px; font-weight: bold; color: #FF0050; letter-spacing: 8px; margin: 15px 0;">{{OTP}}</div>
      <p style="margin: 15px 0 0 0; font-size: 14px;">This OTP is valid for <strong>10 minutes</strong> only.</p>
    </div>
    <div style="background-color: #e3f2fd; border-left: 4px solid #2196f3; padding: 15px; margin: 20px 0;">
      <p style="margin: 0;"><strong>Security Tip:</strong> Never share this OTP with anyone. Our team will never ask for your OTP.</p>
    </div>
    <p>If you didn't request this verification, please ignore this email or contact our support team immediately.</p>
    <p>Thank you,<br>The Reals TO Chat Team</p>
  </div>
  <div style="padding: 20px; text-align: center; font-size: 14px; color: #6c757d;">
    <p style="margin: 0;">This email was sent to {{EMAIL}}. If you believe this was sent in error, please contact us.</p>
  </div>
</div>
"""


class MailDeliveryError(Exception):
    """The SMTP server could not be reached or refused the message."""


def render_otp_email(email: str, otp: str, name: Optional[str] = None) -> str:
    """Fill the OTP template; user-supplied values are HTML-escaped."""
    return (
        OTP_TEMPLATE.replace("{{NAME}}", escape(name or "User"))
        .replace("{{OTP}}", escape(otp))
        .replace("{{EMAIL}}", escape(email))
    )


class SmtpMailer:
    """Sends HTML email through an authenticated SMTP (STARTTLS) server."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        from_name: str = "Reals TO Chat",
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.mail_user,
            password=settings.mail_password,
            from_name=settings.mail_from_name,
            timeout=settings.smtp_timeout,
        )

    def send(self, to_email: str, subject: str, html_content: str) -> None:
        """Send one HTML email.

        Raises:
            MailDeliveryError: If the message could not be delivered
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f'"{self.from_name}" <{self.user}>'
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {type(e).__name__}: {e}")
            raise MailDeliveryError(str(e)) from e

        logger.info(f"Email sent to {to_email}")
