"""Email sending over SMTP.

Sending is fire-and-forget: failures are logged, never raised::

    mailer = Mailer(EmailOptions(host="mail.example.com", sender="app@example.com"))
    mailer.send("someone@example.com", "Hello, world!", "Hello, this is an Email")
"""

import hmac
import smtplib
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from email.utils import formatdate
from typing import Any

from entity_store.modes import RunMode, make_logger

AUTH_METHODS = {
    "login": "LOGIN",
    "plain": "PLAIN",
    "cram_md5": "CRAM-MD5",
}


@dataclass
class EmailOptions:
    """SMTP connection and message settings."""

    host: str | None = None
    helo_domain: str | None = None
    username: str | None = None
    password: str | None = None
    sender: str | None = None
    port: int = 25
    auth_type: str = "login"
    bcc: list[str] = field(default_factory=list)
    sender_full: str | None = None
    subject_prefix: str | None = None
    newline: str = "\r\n"
    generator: Callable[["EmailOptions"], str] | None = None

    def __post_init__(self) -> None:
        if self.auth_type not in AUTH_METHODS:
            raise ValueError(f"Unknown auth type {self.auth_type!r}, expected one of: {', '.join(AUTH_METHODS)}")

    def message_id(self) -> str:
        if self.generator is not None:
            return self.generator(self)
        return f"<{int(time.time())}@{self.helo_domain or 'localhost'}>"


class Mailer:
    """Sends plain text emails through an SMTP server."""

    def __init__(self, options: EmailOptions, logger: Any = None, mode: RunMode = RunMode.LIVE) -> None:
        self.options = options
        self.logger = logger if logger is not None else make_logger(mode)

    def compose(self, recipient: str, subject: str, body: str) -> tuple[str, str]:
        """Build the message text.

        Returns:
            Tuple of (subject as sent, full message)
        """
        options = self.options
        sender = options.sender_full or f"{options.sender} <{options.sender}>"
        subject = " ".join(part for part in (options.subject_prefix, subject) if part).strip()

        message = options.newline.join(
            [
                f"From: {sender}",
                f"To: <{recipient}>",
                f"Date: {formatdate(localtime=True)}",
                f"Subject: {subject}",
                f"Message-Id: {options.message_id()}",
                "",
                body,
            ]
        )
        return subject, message

    def authenticator(self) -> Callable[[bytes | None], str]:
        """Build the callback answering the server's authentication challenges.

        The server is asked to challenge first, so LOGIN gets one call for the
        username and one for the password.
        """
        username, password = self.options.username or "", self.options.password or ""
        auth_type = self.options.auth_type
        answered = 0

        def respond(challenge: bytes | None = None) -> str:
            nonlocal answered
            answered += 1
            if auth_type == "plain":
                return f"\0{username}\0{password}"
            if auth_type == "cram_md5":
                digest = hmac.new(password.encode("utf-8"), challenge or b"", "md5").hexdigest()
                return f"{username} {digest}"
            return username if answered == 1 else password

        return respond

    def _login(self, smtp: smtplib.SMTP) -> None:
        smtp.ehlo_or_helo_if_needed()
        smtp.auth(AUTH_METHODS[self.options.auth_type], self.authenticator(), initial_response_ok=False)

    def send(self, recipient: str, subject: str, body: str) -> bool:
        """Send an email to recipient (and the configured bcc addresses).

        Returns:
            True if the server accepted the message, False if sending failed
        """
        subject, message = self.compose(recipient, subject, body)
        options = self.options

        try:
            with smtplib.SMTP(options.host, options.port, local_hostname=options.helo_domain) as smtp:
                if options.username:
                    self._login(smtp)
                smtp.sendmail(options.sender, [recipient, *options.bcc], message.encode("utf-8"))
        except (smtplib.SMTPException, OSError, UnicodeError) as e:
            self.logger.error("Failed to send email", recipient=recipient, error=repr(e))
            return False

        self.logger.info("Email sent", recipient=recipient, subject=subject)
        return True
