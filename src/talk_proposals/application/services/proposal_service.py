"""
Proposal Use Cases

Responsibility:
    Orchestrates the speaker-facing proposal workflow: submit, update,
    delete, view, list, top-rated listing and attachment download.

Architecture Notes:
    - Part of Application Layer (Services)
    - Every mutation runs in one unit of work
    - Order after a successful mutation: commit -> invalidate caches ->
      publish domain event (listeners enqueue background jobs)
    - Any file written during a failed request is deleted before the
      error propagates

Contains:
    - UploadedFile: Raw attachment passed from the API Layer
    - ProposalService: Use cases

Does NOT contain:
    - HTTP concerns (request-level extension/MIME/size checks live in the API Layer)
    - Status moderation (AdminProposalService)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from talk_proposals.application.events.bus import EventBus
from talk_proposals.application.models import JobName, Page, StoredFile, TopRatedProposal
from talk_proposals.application.ports.job_queue import JobQueueProtocol
from talk_proposals.application.ports.search_index import SearchIndexProtocol
from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol
from talk_proposals.application.services.file_upload_service import FileUploadService
from talk_proposals.application.services.proposal_cache import (
    ProposalCache,
    top_rated_key,
)
from talk_proposals.domain.proposals.entities import (
    Proposal,
    ProposalStatus,
    User,
    utc_now,
)
from talk_proposals.domain.proposals.events import ProposalSubmitted
from talk_proposals.domain.proposals.repositories import ALL_RELATIONS, ProposalFilter
from talk_proposals.domain.shared.exceptions import (
    AuthorizationError,
    ProposalFileNotFoundError,
    ProposalNotFoundError,
    TransientInfraError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100
MAX_TOP_RATED_LIMIT = 50


@dataclass(frozen=True)
class UploadedFile:
    content: bytes
    filename: str


def normalize_tag_names(names: list[str]) -> list[str]:
    """Strip blanks and duplicates, keep first-seen order (names are case-sensitive)."""
    seen: list[str] = []
    for name in names:
        name = str(name).strip()
        if name and name not in seen:
            seen.append(name)
    return seen


class ProposalService:
    """
    Speaker-facing proposal use cases.

    Attributes:
        uow_factory: Callable returning a new unit of work
        files: Attachment guard and blob store wrapper
        cache: Cache invalidation layer
        events: Domain event bus
        job_queue: Background job producer (jobs dispatched outside events)
        search_index: Full-text index (None disables index-backed search)
        top_rated_min_rating: Minimum average rating of a top-rated proposal
        top_rated_cache_ttl: TTL (seconds) of cached top-rated listings
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWorkProtocol],
        files: FileUploadService,
        cache: ProposalCache,
        events: EventBus,
        job_queue: JobQueueProtocol,
        search_index: SearchIndexProtocol | None = None,
        top_rated_min_rating: float = 4.0,
        top_rated_cache_ttl: int = 900,
    ) -> None:
        self.uow_factory = uow_factory
        self.files = files
        self.cache = cache
        self.events = events
        self.job_queue = job_queue
        self.search_index = search_index
        self.top_rated_min_rating = top_rated_min_rating
        self.top_rated_cache_ttl = top_rated_cache_ttl

    # ========================================================================
    # COMMANDS
    # ========================================================================

    def submit(
        self,
        owner: User,
        title: str,
        description: str,
        tags: list[str] | None = None,
        file: UploadedFile | None = None,
    ) -> Proposal:
        """
        Create a pending proposal.

        Process Flow:
            1. Validate (signature + quota) and store the attachment
            2. Insert proposal (status=pending), first-or-create tags, sync
            3. Commit
            4. Invalidate proposal, user and top-rated caches (and tags)
            5. Publish ProposalSubmitted

        Raises:
            DomainValidationError: Attachment is not a PDF or exceeds quota
            PersistenceError: Transaction failed (stored file is deleted)
        """
        tag_names = normalize_tag_names(tags or [])
        file_path = None
        if file is not None:
            file_path = self.files.store_and_validate(file.content, file.filename, owner.id)

        try:
            with self.uow_factory() as uow:
                proposal = uow.proposals.add(
                    Proposal(
                        user_id=owner.id,
                        title=title,
                        description=description,
                        file_path=file_path,
                        status=ProposalStatus.PENDING,
                    )
                )
                if tag_names:
                    tag_ids = [uow.tags.first_or_create(name).id for name in tag_names]
                    uow.proposals.sync_tags(proposal.id, tag_ids)
                proposal = uow.proposals.get(proposal.id, with_relations=ALL_RELATIONS)
                uow.commit()
        except Exception:
            if file_path:
                logger.warning(f"Submission failed, removing stored file {file_path}")
                self.files.delete(file_path)
            raise

        logger.info(f"Proposal {proposal.id} submitted by user {owner.id}")

        self.cache.forget_proposal(proposal.id, owner.id)
        if tag_names:
            self.cache.forget_tags()

        self.events.publish(
            ProposalSubmitted(proposal=proposal, file_path=file_path, owner_id=owner.id)
        )
        return proposal

    def update(
        self,
        actor: User,
        proposal_id: int,
        title: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
        file: UploadedFile | None = None,
    ) -> Proposal:
        """
        Update proposal fields, tags and attachment.

        Tag semantics:
            - tags=None leaves tags untouched
            - tags=[] clears every tag
            - otherwise the full tag set is replaced

        A new attachment replaces the old one: the new file is validated
        (excluding this proposal's current file from the quota) and stored,
        the old file is deleted after commit, and a file processing job is
        queued. A search reindex job is queued when anything changed.

        Raises:
            ProposalNotFoundError: Unknown proposal
            AuthorizationError: Actor is neither owner nor admin
        """
        new_file_path = None
        old_file_path = None

        with self.uow_factory() as uow:
            proposal = self._get_or_fail(uow, proposal_id)
        self._ensure_can_modify(actor, proposal)

        if file is not None:
            self.files.validate_domain_rules(
                file.content, proposal.user_id, exclude_proposal_id=proposal.id
            )
            new_file_path = self.files.store(file.content, file.filename)

        with self.uow_factory() as uow:
            try:
                proposal = self._get_or_fail(uow, proposal_id)
                changed = False
                if title is not None and title != proposal.title:
                    proposal.title = title
                    changed = True
                if description is not None and description != proposal.description:
                    proposal.description = description
                    changed = True
                if new_file_path is not None:
                    old_file_path = proposal.file_path
                    proposal.file_path = new_file_path
                    changed = True

                if changed:
                    proposal.updated_at = utc_now()
                    uow.proposals.update(proposal)

                if tags is not None:
                    tag_ids = [
                        uow.tags.first_or_create(name).id
                        for name in normalize_tag_names(tags)
                    ]
                    uow.proposals.sync_tags(proposal.id, tag_ids)
                    changed = True

                proposal = uow.proposals.get(proposal.id, with_relations=ALL_RELATIONS)
                uow.commit()
            except Exception:
                if new_file_path:
                    logger.warning(f"Update failed, removing stored file {new_file_path}")
                    self.files.delete(new_file_path)
                raise

        if old_file_path:
            self._delete_file_best_effort(old_file_path)

        self.cache.forget_proposal(proposal.id, proposal.user_id)
        if tags is not None:
            self.cache.forget_tags()

        if new_file_path:
            self._enqueue(
                JobName.PROCESS_PROPOSAL_FILE,
                {
                    "proposal_id": proposal.id,
                    "file_path": new_file_path,
                    "owner_id": proposal.user_id,
                },
            )
        if changed:
            self._enqueue(JobName.REINDEX_PROPOSAL, {"proposal_id": proposal.id})

        logger.info(f"Proposal {proposal.id} updated by user {actor.id}")
        return proposal

    def delete(self, actor: User, proposal_id: int) -> None:
        """
        Delete proposal row (reviews and tag links cascade), then its file.

        File removal is best-effort: a failure is logged and the row
        deletion stands.

        Raises:
            ProposalNotFoundError: Unknown proposal
            AuthorizationError: Actor is neither owner nor admin
        """
        with self.uow_factory() as uow:
            proposal = self._get_or_fail(uow, proposal_id)
            self._ensure_can_modify(actor, proposal)
            uow.proposals.delete(proposal.id)
            uow.commit()

        if proposal.file_path:
            self._delete_file_best_effort(proposal.file_path)

        self.cache.forget_proposal(proposal.id, proposal.user_id)
        self._enqueue(JobName.REMOVE_PROPOSAL_FROM_INDEX, {"proposal_id": proposal.id})
        logger.info(f"Proposal {proposal.id} deleted by user {actor.id}")

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get(self, actor: User, proposal_id: int) -> Proposal:
        """
        Raises:
            ProposalNotFoundError: Unknown proposal
            AuthorizationError: Speaker viewing another speaker's proposal
        """
        with self.uow_factory() as uow:
            proposal = self._get_or_fail(uow, proposal_id, with_relations=ALL_RELATIONS)
        self._ensure_can_view(actor, proposal)
        return proposal

    def list(
        self,
        actor: User,
        search: str | None = None,
        status: str | None = None,
        tag_ids: list[int] | None = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> Page[Proposal]:
        """
        Paginated listing, newest first (index-ranked when searching the index).

        Speakers (non-admin) only see their own proposals. `search` goes
        through the search index when one is configured, otherwise it
        is a case-insensitive title match.
        """
        page, per_page = self._validate_pagination(page, per_page)
        criteria = ProposalFilter(
            user_id=actor.id if actor.is_speaker else None,
            status=ProposalStatus.parse(status) if status else None,
            tag_ids=list(tag_ids or []),
        )

        search = (search or "").strip() or None
        if search and self.search_index is not None:
            filters = {"user_id": criteria.user_id, "tag_ids": criteria.tag_ids}
            if criteria.status:
                filters["status"] = criteria.status.value
            try:
                criteria.ids = self.search_index.query(search, filters)
            except TransientInfraError as e:
                logger.warning(f"Search index unavailable, falling back to title match: {e}")
                criteria.title_contains = search
        elif search:
            criteria.title_contains = search

        with self.uow_factory() as uow:
            items, total = uow.proposals.list(
                criteria, page=page, per_page=per_page, with_relations=("user", "tags")
            )
        return Page(items=items, total=total, page=page, per_page=per_page)

    def list_for_review(self, actor: User, **filters) -> Page[Proposal]:
        """
        Listing for reviewers (every speaker's proposals).

        Raises:
            AuthorizationError: Actor is not a reviewer
        """
        if not actor.is_reviewer:
            raise AuthorizationError("Only reviewers can access the review listing")
        return self.list(actor, **filters)

    def top_rated(self, limit: int = 10) -> list[TopRatedProposal]:
        """
        Approved proposals with average rating >= threshold, cached per limit.

        Raises:
            ValidationError: limit outside 1..50
        """
        if limit < 1 or limit > MAX_TOP_RATED_LIMIT:
            raise ValidationError(
                f"The limit must be between 1 and {MAX_TOP_RATED_LIMIT}", field_name="limit"
            )

        def compute() -> list[dict]:
            with self.uow_factory() as uow:
                rows = uow.proposals.top_rated(self.top_rated_min_rating, limit)
            return [
                {
                    "proposal": row.proposal.to_dict(),
                    "average_rating": row.average_rating,
                    "reviews_count": row.reviews_count,
                }
                for row in rows
            ]

        rows = self.cache.remember(top_rated_key(limit), self.top_rated_cache_ttl, compute)
        return [TopRatedProposal(**row) for row in rows]

    def open_file(self, actor: User, proposal_id: int) -> StoredFile:
        """
        Raises:
            ProposalNotFoundError: Unknown proposal
            AuthorizationError: Speaker reading another speaker's file
            ProposalFileNotFoundError: Proposal has no file or it is gone
        """
        proposal = self.get(actor, proposal_id)
        if not proposal.file_path:
            raise ProposalFileNotFoundError.no_attachment(proposal.id)
        content = self.files.read(proposal.file_path)
        return StoredFile(content=content, filename=Path(proposal.file_path).name)

    # ========================================================================
    # HELPERS
    # ========================================================================

    @staticmethod
    def _get_or_fail(
        uow: UnitOfWorkProtocol, proposal_id: int, with_relations=()
    ) -> Proposal:
        proposal = uow.proposals.get(proposal_id, with_relations=with_relations)
        if proposal is None:
            raise ProposalNotFoundError(resource_id=proposal_id)
        return proposal

    @staticmethod
    def _ensure_can_view(actor: User, proposal: Proposal) -> None:
        if actor.is_admin or actor.is_reviewer or proposal.is_owned_by(actor):
            return
        raise AuthorizationError()

    @staticmethod
    def _ensure_can_modify(actor: User, proposal: Proposal) -> None:
        if actor.is_admin or proposal.is_owned_by(actor):
            return
        raise AuthorizationError()

    @staticmethod
    def _validate_pagination(page: int, per_page: int) -> tuple[int, int]:
        if page < 1:
            raise ValidationError("The page must be at least 1", field_name="page")
        if per_page < 1 or per_page > MAX_PER_PAGE:
            raise ValidationError(
                f"The per page must be between 1 and {MAX_PER_PAGE}", field_name="per_page"
            )
        return page, per_page

    def _delete_file_best_effort(self, path: str) -> None:
        try:
            self.files.delete(path)
        except Exception as e:
            logger.warning(f"Could not delete proposal file {path}: {e}")

    def _enqueue(self, job: JobName, payload: dict) -> None:
        # Runs after commit: a broker outage must not fail the request
        try:
            self.job_queue.enqueue(job, payload)
        except Exception:
            logger.exception(f"Could not enqueue {job.value} with {payload}")
