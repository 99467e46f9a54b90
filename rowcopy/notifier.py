"""Completion and failure notifications for copy runs."""
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import Any, Dict, List, Optional

from .logger import setup_logger

DEFAULT_SUBJECT = "Maintenance Alert"


class LogNotifier:
    """Notifier that only writes the message to the log."""

    def __init__(self, logger=None):
        self.logger = logger or setup_logger("notifier")

    def notify(self, subject: str, body: str) -> None:
        self.logger.info(f"{subject}: {body}")


class EmailNotifier:
    """Send maintenance emails to the developers through SMTP."""

    def __init__(self, config: Dict[str, Any], logger=None):
        """
        Initialize EmailNotifier.

        Args:
            config: Notification configuration (smtp_host, smtp_port, use_tls,
                username, password, sender, recipients)
            logger: Optional logger for delivery failures
        """
        self.config = config
        self.logger = logger or setup_logger("notifier")

    @property
    def recipients(self) -> List[str]:
        return list(self.config.get("recipients") or [])

    def build_message(self, subject: str, body: str) -> EmailMessage:
        """
        Build the email for a notification.

        Args:
            subject: Email subject
            body: Message body

        Returns:
            Email ready to be sent
        """
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.config.get("sender") or "rowcopy@localhost"
        message["To"] = ", ".join(self.recipients)
        message.set_content(f"{body}\n\nSent at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        return message

    def send(self, subject: str, body: str):
        """Send an email, raising on SMTP errors."""
        message = self.build_message(subject, body)
        host = self.config.get("smtp_host", "localhost")
        port = int(self.config.get("smtp_port", 25))

        with smtplib.SMTP(host, port, timeout=self.config.get("timeout", 30)) as smtp:
            if self.config.get("use_tls"):
                smtp.starttls()
            if self.config.get("username"):
                smtp.login(self.config["username"], self.config.get("password") or "")
            smtp.send_message(message)

    def notify(self, subject: str, body: str) -> None:
        """Send a notification; delivery failures are logged, never raised."""
        if not self.recipients:
            self.logger.warning("No notification recipients configured, skipping email.")
            return
        try:
            self.send(subject, body)
            self.logger.info(f"Notification sent to {', '.join(self.recipients)}")
        except (smtplib.SMTPException, OSError) as e:
            self.logger.error(f"Failed to send notification: {e}")


def safe_notify(notifier, subject: str, body: str, logger=None) -> None:
    """
    Deliver a notification without letting notifier errors escape.

    Args:
        notifier: Object with a ``notify(subject, body)`` method
        subject: Notification subject
        body: Notification body
        logger: Optional logger for notifier failures
    """
    try:
        notifier.notify(subject, body)
    except Exception as e:
        if logger is not None:
            try:
                logger.error(f"Notifier failed: {e}")
            except Exception:
                pass


def create_notifier(config: Optional[Dict[str, Any]], logger=None):
    """
    Create a notifier from the 'notifications' config section.

    Returns:
        EmailNotifier when enabled with an SMTP host, otherwise LogNotifier
    """
    config = config or {}
    if config.get("enabled", False) and config.get("smtp_host"):
        return EmailNotifier(config, logger=logger)
    return LogNotifier(logger=logger)
