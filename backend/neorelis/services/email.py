"""Send emails (verification code, project membership) via SMTP."""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from pydantic import BaseModel

from neorelis.core.config import Settings, settings

logger = logging.getLogger(__name__)

# Avoid blocking the request forever if SMTP is slow or unreachable
SMTP_TIMEOUT_SECONDS = 15


class MailError(Exception):
    """Base class for mail transport failures."""


class MailConfigurationError(MailError):
    """A required SMTP setting is missing."""


class MailDeliveryError(MailError):
    """The SMTP server could not be reached or rejected the message."""


class MailMessage(BaseModel):
    to: str
    subject: str
    text: str
    html: str


class MailSink(Protocol):
    def send(self, message: MailMessage) -> None:
        ...


class SmtpMailSink:
    """
    Deliver MailMessage objects over SMTP.

    Settings are read at send time so a misconfigured deployment fails on the
    first email with the name of the missing setting, not at import.
    """

    def __init__(self, config: Settings = settings, timeout: int = SMTP_TIMEOUT_SECONDS):
        self._config = config
        self._timeout = timeout

    def _required(self, name: str) -> str:
        value = getattr(self._config, name, "")
        if not value:
            raise MailConfigurationError(f"Missing required mail setting: {name}")
        return value

    def _from_address(self) -> str:
        return self._config.SMTP_FROM_EMAIL or self._required("SMTP_USER")

    def send(self, message: MailMessage) -> None:
        host = self._required("SMTP_HOST")
        from_email = self._from_address()

        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = f"{self._config.SMTP_FROM_NAME} <{from_email}>"
        msg["To"] = message.to
        msg.attach(MIMEText(message.text, "plain"))
        msg.attach(MIMEText(message.html, "html"))

        try:
            with smtplib.SMTP(host, self._config.SMTP_PORT, timeout=self._timeout) as server:
                if self._config.SMTP_STARTTLS:
                    server.starttls()
                if self._config.SMTP_USER:
                    server.login(self._config.SMTP_USER, self._config.SMTP_PASSWORD)
                server.sendmail(from_email, [message.to], msg.as_string())
        except smtplib.SMTPAuthenticationError as e:
            logger.error("SMTP login failed for %s: %s", message.to, e)
            raise MailDeliveryError("SMTP authentication failed") from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error (timeout or network) for %s: %s", message.to, e)
            raise MailDeliveryError(f"Failed to send email to {message.to}") from e
        logger.info("Email %r sent to %s", message.subject, message.to)


def send_best_effort(sink: MailSink, message: MailMessage) -> bool:
    """Send without letting a failure reach the caller. Returns True if sent."""
    try:
        sink.send(message)
        return True
    except Exception:
        logger.exception("Best-effort email %r to %s failed", message.subject, message.to)
        return False


def build_verification_code_email(to_email: str, code: str, expire_minutes: int) -> MailMessage:
    text = (
        f"Your NeoReLiS verification code is {code}. "
        f"This code expires in {expire_minutes} minutes.\n\n"
        "If you didn't request this, you can ignore this email."
    )
    body = f"""
<p>Your NeoReLiS verification code is:</p>
<p style="font-size:24px;font-weight:700;letter-spacing:4px;">{code}</p>
<p>This code expires in {expire_minutes} minutes.</p>
<p style="font-size:14px;color:#737373;">If you didn't request this, you can ignore this email.</p>
"""
    return MailMessage(
        to=to_email,
        subject="Verify your NeoReLiS account",
        text=text,
        html=body,
    )


def build_project_member_added_email(
    to_email: str,
    member_name: str,
    project_title: str,
    role: str,
    added_by_name: str,
) -> MailMessage:
    dashboard_url = f"{settings.FRONTEND_BASE_URL.rstrip('/')}/dashboard/projects"
    text = f"""
Hi {member_name},

{added_by_name} added you to the project "{project_title}" as {role}.

Open your dashboard to get started:
{dashboard_url}

The NeoReLiS Team
"""
    body = f"""
<p>Hi {html.escape(member_name)},</p>
<p>{html.escape(added_by_name)} added you to the project
<strong>{html.escape(project_title)}</strong> as {html.escape(role)}.</p>
<p style="margin: 24px 0;">
  <a href="{dashboard_url}" style="display:inline-block;padding:12px 24px;background-color:#1d4ed8;color:white;text-decoration:none;border-radius:6px;">
    Open dashboard
  </a>
</p>
<p style="font-size:14px;color:#737373;">The NeoReLiS Team</p>
"""
    return MailMessage(
        to=to_email,
        subject=f'You were added to "{project_title}"',
        text=text,
        html=body,
    )
