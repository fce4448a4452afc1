"""
Mailer Port

Transport delivering one notification message to one recipient.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    text_body: str
    html_body: str | None = None


class MailerProtocol(Protocol):
    def send(self, message: MailMessage) -> None:
        """
        Raises:
            TransientInfraError: If the mail relay is unavailable
        """
        ...
