# app/utils/mailer.py
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr

from app.core.config import settings

logger = logging.getLogger(__name__)


class MailError(Exception):
    pass


def _open_smtp() -> smtplib.SMTP:
    encryption = settings.mail_encryption.lower()
    if encryption == "ssl":
        server = smtplib.SMTP_SSL(
            settings.mail_host,
            settings.mail_port,
            timeout=settings.mail_timeout,
            context=ssl.create_default_context(),
        )
    else:
        server = smtplib.SMTP(
            settings.mail_host, settings.mail_port, timeout=settings.mail_timeout
        )
        if encryption == "tls":
            server.starttls(context=ssl.create_default_context())

    if settings.mail_username:
        server.login(settings.mail_username, settings.mail_password)
    return server


def send_email(to_addr: str, subject: str, html_body: str, text_body: str = "") -> None:
    """
    Send one email through the configured SMTP server.

    Raises:
        MailError: If the message could not be delivered to the server
    """
    msg = EmailMessage()
    msg["From"] = formataddr((settings.mail_from_name, settings.mail_from_address))
    msg["To"] = to_addr
    msg["Subject"] = subject
    msg.set_content(text_body or "Please view this message in an HTML capable client.")
    msg.add_alternative(html_body, subtype="html")

    try:
        server = _open_smtp()
        try:
            server.send_message(msg)
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email to {to_addr}: {e}")
        raise MailError(str(e)) from e

    logger.info(f"Email sent to {to_addr}: {subject}")


def render_otp_email(code: str, minutes: int, year: int) -> str:
    return f"""
<!DOCTYPE html>
<html>
  <body style="margin:0;padding:20px;font-family:Arial,sans-serif;background-color:#f5f5f5;">
    <table role="presentation" style="max-width:600px;width:100%;margin:0 auto;background:#ffffff;border-radius:16px;">
      <tr>
        <td style="background:#2563EB;padding:32px;text-align:center;color:#ffffff;">
          <h1 style="margin:0;font-size:28px;">{settings.app_name}</h1>
          <p style="margin:8px 0 0 0;">{settings.app_description}</p>
        </td>
      </tr>
      <tr>
        <td style="padding:32px;">
          <h2 style="margin:0 0 16px 0;color:#1f2937;">Verify your email</h2>
          <p style="color:#6b7280;">Enter the code below to continue:</p>
          <p style="font-size:36px;font-weight:700;letter-spacing:8px;color:#2563EB;text-align:center;font-family:'Courier New',monospace;">{code}</p>
          <p style="color:#9ca3af;font-size:14px;">This code expires in <strong>{minutes} minutes</strong>. Don't share it with anyone.</p>
        </td>
      </tr>
      <tr>
        <td style="padding:24px;background:#f9fafb;text-align:center;color:#9ca3af;font-size:12px;">
          Didn't request this code? You can safely ignore this email.<br>
          &copy; {year} {settings.app_name}. All rights reserved.
        </td>
      </tr>
    </table>
  </body>
</html>
"""
