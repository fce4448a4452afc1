"""
Tests for the notification jobs (recipient resolution, counts, failures).
"""

import pytest

from talk_proposals.application.jobs import (
    NotifyProposalReviewedJob,
    NotifyProposalSubmittedJob,
    NotifyStatusChangedJob,
)
from talk_proposals.domain.proposals.entities import User, UserRole
from talk_proposals.domain.shared.exceptions import TransientInfraError
from tests.fakes import FakeMailer


@pytest.fixture
def proposal(container, speaker):
    return container.proposal_service.submit(speaker, "Async Python", "Event loops")


def test_submitted_notifies_every_admin(container, proposal, admin, mailer):
    with container.uow_factory() as uow:
        uow.users.add(User(name="Second Admin", email="sec@example.com", role=UserRole.ADMIN))
        uow.commit()

    sent = NotifyProposalSubmittedJob(container.uow_factory, mailer).run(proposal.id)

    assert sent == 2
    assert sorted(m.to for m in mailer.sent) == ["ada@example.com", "sec@example.com"]
    assert mailer.sent[0].subject == "New Proposal Submitted: Async Python"


def test_submitted_without_admins_sends_nothing(container, proposal, mailer, caplog):
    sent = NotifyProposalSubmittedJob(container.uow_factory, mailer).run(proposal.id)

    assert sent == 0
    assert mailer.sent == []
    assert "No admin users found" in caplog.text


def test_submitted_for_deleted_proposal(container, admin, mailer):
    assert NotifyProposalSubmittedJob(container.uow_factory, mailer).run(999) == 0


def test_status_changed_notifies_speaker(container, proposal, mailer):
    sent = NotifyStatusChangedJob(container.uow_factory, mailer).run(
        proposal.id, "pending", "approved"
    )

    assert sent == 1
    message = mailer.sent[0]
    assert message.to == "sam@example.com"
    assert message.subject == "Proposal Status Updated: Async Python"
    assert "Pending → Approved" in message.text_body
    assert "Congratulations" in message.text_body


def test_reviewed_notifies_speaker(container, proposal, reviewer, mailer):
    review = container.review_service.create(reviewer, proposal.id, 10, "Great talk")

    sent = NotifyProposalReviewedJob(container.uow_factory, mailer).run(proposal.id, review.id)

    assert sent == 1
    message = mailer.sent[0]
    assert message.to == "sam@example.com"
    assert "10 - Outstanding" in message.text_body
    assert "Reviewed by: Rita Reviewer" in message.text_body
    assert "Great talk" in message.text_body


def test_reviewed_with_missing_review(container, proposal, mailer):
    assert NotifyProposalReviewedJob(container.uow_factory, mailer).run(proposal.id, 77) == 0
    assert mailer.sent == []


def test_transport_failure_propagates(container, proposal, admin):
    mailer = FakeMailer(fail=True)

    with pytest.raises(TransientInfraError):
        NotifyProposalSubmittedJob(container.uow_factory, mailer).run(proposal.id)
