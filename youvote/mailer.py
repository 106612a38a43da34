import logging
import smtplib
from email.message import EmailMessage

from . import config
from .errors import MailDeliveryError

logger = logging.getLogger(__name__)


def send_mail(to_addr: str, subject: str, body: str) -> bool:
    """
    Send a plain-text e-mail over SMTP (SSL).
    When SMTP is not configured the message is only logged. Returns True if it was sent.
    """
    if not (config.SMTP_HOST and config.SMTP_USER and config.SMTP_PASS):
        logger.info(f"Email (not sent - SMTP not configured) -> {to_addr}: {subject}")
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.MAIL_FROM
    msg["To"] = to_addr
    msg.set_content(body)

    try:
        with smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, timeout=10) as server:
            server.login(config.SMTP_USER, config.SMTP_PASS)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"send_mail to {to_addr} failed: {e}")
        raise MailDeliveryError("Could not send email, please try again later")
    return True


def send_verification_code(to_addr: str, first_name: str, last_name: str, code: str) -> bool:
    body = (
        f"Welcome to YouVote, {first_name} {last_name}!\n\n"
        "Thank you for registering on our platform. To complete your registration, "
        "please verify your email address by entering the following verification code in the app:\n\n"
        f"Verification Code: {code}\n\n"
        "If you did not request this code, please ignore this email.\n\n"
        "Best regards,\nThe YouVote Team"
    )
    return send_mail(to_addr, "Email Verification Code", body)


def send_login_credentials(to_addr: str, login_id: str, login_password: str) -> bool:
    body = f"Your login ID is:\n\n{login_id}\n\nand your password is:\n\n{login_password}\n\n"
    return send_mail(to_addr, "Login ID and Password", body)
