import smtplib
from unittest.mock import patch

import pytest

from realsauth.config import Settings
from realsauth.integrations.mailer import MailDeliveryError, SmtpMailer, render_otp_email


def _mailer(**overrides):
    fields = dict(host="smtp.example.com", port=587, user="noreply@example.com", password="app-password")
    fields.update(overrides)
    return SmtpMailer(**fields)


def test_render_otp_email_fills_placeholders():
    html = render_otp_email("ann@x.com", "123456", name="Ann")

    assert "Hello Ann," in html
    assert "123456" in html
    assert "ann@x.com" in html
    assert "{{" not in html


def test_render_otp_email_defaults_name_and_escapes_input():
    html = render_otp_email("ann@x.com", "123456")
    assert "Hello User," in html

    html = render_otp_email("ann@x.com", "123456", name="<script>x</script>")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_send_uses_starttls_login_and_timeout():
    with patch("realsauth.integrations.mailer.smtplib.SMTP") as smtp_cls:
        _mailer(timeout=7).send("ann@x.com", "Subject", "<p>hi</p>")

    smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=7)
    server = smtp_cls.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("noreply@example.com", "app-password")
    server.send_message.assert_called_once()

    msg = server.send_message.call_args[0][0]
    assert msg["To"] == "ann@x.com"
    assert msg["Subject"] == "Subject"
    assert "noreply@example.com" in msg["From"]


def test_send_skips_login_without_credentials():
    with patch("realsauth.integrations.mailer.smtplib.SMTP") as smtp_cls:
        _mailer(user="", password="").send("ann@x.com", "Subject", "<p>hi</p>")

    server = smtp_cls.return_value.__enter__.return_value
    server.login.assert_not_called()
    server.send_message.assert_called_once()


@pytest.mark.parametrize(
    "error",
    [smtplib.SMTPAuthenticationError(535, b"bad credentials"), ConnectionRefusedError("refused"), TimeoutError()],
)
def test_send_failures_become_mail_delivery_error(error):
    with patch("realsauth.integrations.mailer.smtplib.SMTP", side_effect=error):
        with pytest.raises(MailDeliveryError):
            _mailer().send("ann@x.com", "Subject", "<p>hi</p>")


def test_from_settings():
    mailer = SmtpMailer.from_settings(
        Settings(smtp_host="mail.local", smtp_port=2525, mail_user="u@x.com", mail_password="p", smtp_timeout=3)
    )

    assert (mailer.host, mailer.port, mailer.user, mailer.timeout) == ("mail.local", 2525, "u@x.com", 3)
    assert mailer.from_name == "Reals TO Chat"
