"""
SMTP Mailer

Delivers MailMessage objects through an SMTP relay as multipart
(plain text + HTML alternative) emails.

Error Handling:
    - smtplib.SMTPException / OSError are wrapped in TransientInfraError
      so notification tasks retry them
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage

from talk_proposals.application.ports.mailer import MailMessage
from talk_proposals.domain.shared.exceptions import TransientInfraError

logger = logging.getLogger(__name__)


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int = 25,
        from_addr: str = "noreply@talk-proposals.local",
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.from_addr = from_addr
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def build(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self.from_addr
        msg["To"] = message.to
        msg.set_content(message.text_body)
        if message.html_body:
            msg.add_alternative(message.html_body, subtype="html")
        return msg

    def send(self, message: MailMessage) -> None:
        msg = self.build(message)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.username:
                    server.login(self.username, self.password or "")
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{message.subject}' to {message.to}: {e}")
            raise TransientInfraError("Mail relay unavailable", original_error=e) from e

        logger.info(f"Sent '{message.subject}' to {message.to}")
