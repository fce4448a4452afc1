"""
Notification Mail Content

Builds the plain text and HTML bodies of the three proposal
notifications. Kept free of transport concerns; SmtpMailer only
delivers MailMessage objects.
"""

from datetime import datetime
from html import escape

from talk_proposals.application.ports.mailer import MailMessage
from talk_proposals.domain.proposals.entities import (
    Proposal,
    ProposalStatus,
    Review,
    User,
)

FOOTER = "This is an automated notification from the Talk Proposals system."
DESCRIPTION_PREVIEW_LENGTH = 200


def _format_date(value: datetime) -> str:
    return value.strftime("%B %d, %Y at %I:%M %p")


def _truncate(text: str, limit: int = DESCRIPTION_PREVIEW_LENGTH) -> str:
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def _render(heading: str, intro: str, details: list[tuple[str, str]], closing: str) -> tuple[str, str]:
    """Render the same content as plain text and as a minimal HTML page."""
    text_lines = [heading, "", intro, "", "Proposal Details"]
    text_lines += [f"{label}: {value}" for label, value in details]
    text_lines += ["", closing, "", FOOTER]

    rows = "".join(
        f"<tr><th align=\"left\">{escape(label)}</th><td>{escape(value)}</td></tr>"
        for label, value in details
    )
    html = (
        f"<html><body><h2>{escape(heading)}</h2><p>{escape(intro)}</p>"
        f"<h3>Proposal Details</h3><table>{rows}</table>"
        f"<p>{escape(closing)}</p><p><small>{escape(FOOTER)}</small></p></body></html>"
    )
    return "\n".join(text_lines), html


def build_submitted_message(proposal: Proposal, admin: User) -> MailMessage:
    details = [
        ("Title", proposal.title),
        ("Description", _truncate(proposal.description)),
    ]
    if proposal.user:
        details.append(("Submitted by", f"{proposal.user.name} ({proposal.user.email})"))
    details += [
        ("Status", proposal.status.label()),
        ("Submitted at", _format_date(proposal.created_at)),
    ]
    if proposal.tags:
        details.append(("Tags", ", ".join(tag.name for tag in proposal.tags)))

    text, html = _render(
        "New Proposal Submitted",
        "A new proposal has been submitted and requires your review.",
        details,
        "Action Required: Please review this proposal in the admin dashboard.",
    )
    return MailMessage(
        to=admin.email,
        subject=f"New Proposal Submitted: {proposal.title}",
        text_body=text,
        html_body=html,
    )


def build_status_changed_message(
    proposal: Proposal,
    speaker: User,
    old_status: ProposalStatus,
    new_status: ProposalStatus,
) -> MailMessage:
    if new_status == ProposalStatus.APPROVED:
        closing = "Congratulations! Your proposal has been approved."
    elif new_status == ProposalStatus.REJECTED:
        closing = (
            "Notice: Your proposal has been rejected. Please review the feedback "
            "and consider submitting a new proposal."
        )
    else:
        closing = f"Status Update: Your proposal status has been updated to {new_status.label()}."

    text, html = _render(
        "Proposal Status Updated",
        "Your proposal status has been changed.",
        [
            ("Title", proposal.title),
            ("Status Changed", f"{old_status.label()} → {new_status.label()}"),
            ("Updated at", _format_date(proposal.updated_at)),
        ],
        closing,
    )
    return MailMessage(
        to=speaker.email,
        subject=f"Proposal Status Updated: {proposal.title}",
        text_body=text,
        html_body=html,
    )


def build_reviewed_message(proposal: Proposal, speaker: User, review: Review) -> MailMessage:
    details = [("Title", proposal.title)]
    if review.reviewer:
        details.append(("Reviewed by", review.reviewer.name))
    details += [
        ("Rating", review.rating.label()),
        ("Reviewed at", _format_date(review.created_at)),
    ]
    if review.comment:
        details.append(("Reviewer Comment", review.comment))

    text, html = _render(
        "Your Proposal Has Been Reviewed",
        "A reviewer has submitted feedback on your proposal.",
        details,
        "Next Steps: You can view the full review details in your proposal dashboard.",
    )
    return MailMessage(
        to=speaker.email,
        subject=f"Your Proposal Has Been Reviewed: {proposal.title}",
        text_body=text,
        html_body=html,
    )
