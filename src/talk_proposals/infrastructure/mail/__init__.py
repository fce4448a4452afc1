"""Mail transport adapters."""

from talk_proposals.infrastructure.mail.smtp_mailer import SmtpMailer

__all__ = ["SmtpMailer"]
