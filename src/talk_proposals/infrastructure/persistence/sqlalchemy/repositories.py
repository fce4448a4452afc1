"""
SQLAlchemy Core repositories.

Each repository works on the Connection owned by the current unit of
work and never commits by itself. Relations are loaded in batches
(one query per named include) to avoid N+1 queries on listings.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import and_, case, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from talk_proposals.domain.proposals.entities import (
    Proposal,
    ProposalStatus,
    Review,
    Tag,
    User,
    UserRole,
)
from talk_proposals.domain.proposals.repositories import ProposalFilter, RatedProposal
from talk_proposals.domain.shared.exceptions import DuplicateReviewError, ValidationError
from talk_proposals.infrastructure.persistence.sqlalchemy.tables import (
    proposal_tag,
    proposals,
    reviews,
    tags,
    users,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Row

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """LIKE pattern matching text anywhere, with wildcards in text taken literally."""
    for char in (LIKE_ESCAPE, "%", "_"):
        text = text.replace(char, LIKE_ESCAPE + char)
    return f"%{text}%"


KNOWN_RELATIONS = {"user", "tags", "reviews"}


def _user_from_row(row: Row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        role=UserRole(row.role),
        created_at=row.created_at,
    )


def _proposal_from_row(row: Row) -> Proposal:
    return Proposal(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        file_path=row.file_path,
        status=ProposalStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyUserRepository:
    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    def add(self, user: User) -> User:
        result = self.connection.execute(
            insert(users).values(
                name=user.name,
                email=user.email,
                role=user.role.value,
                created_at=user.created_at,
            )
        )
        user.id = result.inserted_primary_key[0]
        return user

    def get(self, user_id: int) -> User | None:
        row = self.connection.execute(select(users).where(users.c.id == user_id)).first()
        return _user_from_row(row) if row else None

    def get_many(self, user_ids: Iterable[int]) -> dict[int, User]:
        ids = set(user_ids)
        if not ids:
            return {}
        rows = self.connection.execute(select(users).where(users.c.id.in_(ids)))
        return {row.id: _user_from_row(row) for row in rows}

    def list_by_role(self, role: UserRole) -> list[User]:
        rows = self.connection.execute(
            select(users).where(users.c.role == role.value).order_by(users.c.id)
        )
        return [_user_from_row(row) for row in rows]


class SqlAlchemyTagRepository:
    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    def first_or_create(self, name: str) -> Tag:
        row = self.connection.execute(select(tags).where(tags.c.name == name)).first()
        if row:
            return Tag(id=row.id, name=row.name)
        result = self.connection.execute(insert(tags).values(name=name))
        logger.debug(f"Created tag '{name}'")
        return Tag(id=result.inserted_primary_key[0], name=name)

    def list(self, search: str | None = None) -> list[Tag]:
        stmt = select(tags).order_by(tags.c.name)
        if search:
            stmt = stmt.where(tags.c.name.ilike(contains_pattern(search), escape=LIKE_ESCAPE))
        return [Tag(id=row.id, name=row.name) for row in self.connection.execute(stmt)]


class SqlAlchemyReviewRepository:
    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    def add(self, review: Review) -> Review:
        try:
            # Savepoint keeps the outer transaction usable after a unique violation
            with self.connection.begin_nested():
                result = self.connection.execute(
                    insert(reviews).values(
                        proposal_id=review.proposal_id,
                        reviewer_id=review.reviewer_id,
                        rating=review.rating.value,
                        comment=review.comment,
                        created_at=review.created_at,
                    )
                )
        except IntegrityError as e:
            logger.info(
                f"Rejected duplicate review of proposal {review.proposal_id} "
                f"by reviewer {review.reviewer_id}: {e.orig}"
            )
            raise DuplicateReviewError() from e
        review.id = result.inserted_primary_key[0]
        return review

    def get(self, review_id: int) -> Review | None:
        rows = self._select_with_reviewer(reviews.c.id == review_id)
        return rows[0] if rows else None

    def exists_for(self, proposal_id: int, reviewer_id: int) -> bool:
        stmt = select(reviews.c.id).where(
            and_(reviews.c.proposal_id == proposal_id, reviews.c.reviewer_id == reviewer_id)
        )
        return self.connection.execute(stmt).first() is not None

    def list_for_proposal(self, proposal_id: int) -> list[Review]:
        return self._select_with_reviewer(reviews.c.proposal_id == proposal_id)

    def list_for_proposals(self, proposal_ids: Iterable[int]) -> dict[int, list[Review]]:
        grouped: dict[int, list[Review]] = defaultdict(list)
        ids = set(proposal_ids)
        if ids:
            for review in self._select_with_reviewer(reviews.c.proposal_id.in_(ids)):
                grouped[review.proposal_id].append(review)
        return grouped

    def _select_with_reviewer(self, condition) -> list[Review]:
        stmt = (
            select(
                reviews,
                users.c.name.label("reviewer_name"),
                users.c.email.label("reviewer_email"),
                users.c.role.label("reviewer_role"),
            )
            .join(users, users.c.id == reviews.c.reviewer_id)
            .where(condition)
            .order_by(reviews.c.created_at.desc(), reviews.c.id.desc())
        )
        return [
            Review(
                id=row.id,
                proposal_id=row.proposal_id,
                reviewer_id=row.reviewer_id,
                rating=row.rating,
                comment=row.comment,
                created_at=row.created_at,
                reviewer=User(
                    id=row.reviewer_id,
                    name=row.reviewer_name,
                    email=row.reviewer_email,
                    role=UserRole(row.reviewer_role),
                ),
            )
            for row in self.connection.execute(stmt)
        ]


class SqlAlchemyProposalRepository:
    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    # ------------------------------------------------------------------ writes

    def add(self, proposal: Proposal) -> Proposal:
        result = self.connection.execute(
            insert(proposals).values(
                user_id=proposal.user_id,
                title=proposal.title,
                description=proposal.description,
                file_path=proposal.file_path,
                status=proposal.status.value,
                created_at=proposal.created_at,
                updated_at=proposal.updated_at,
            )
        )
        proposal.id = result.inserted_primary_key[0]
        return proposal

    def update(self, proposal: Proposal) -> None:
        self.connection.execute(
            update(proposals)
            .where(proposals.c.id == proposal.id)
            .values(
                title=proposal.title,
                description=proposal.description,
                file_path=proposal.file_path,
                status=proposal.status.value,
                updated_at=proposal.updated_at,
            )
        )

    def delete(self, proposal_id: int) -> None:
        self.connection.execute(delete(proposals).where(proposals.c.id == proposal_id))

    def sync_tags(self, proposal_id: int, tag_ids: list[int]) -> None:
        self.connection.execute(
            delete(proposal_tag).where(proposal_tag.c.proposal_id == proposal_id)
        )
        unique_ids = list(dict.fromkeys(tag_ids))
        if unique_ids:
            self.connection.execute(
                insert(proposal_tag),
                [{"proposal_id": proposal_id, "tag_id": tag_id} for tag_id in unique_ids],
            )

    # ------------------------------------------------------------------- reads

    def get(self, proposal_id: int, with_relations: Iterable[str] = ()) -> Proposal | None:
        row = self.connection.execute(
            select(proposals).where(proposals.c.id == proposal_id)
        ).first()
        if row is None:
            return None
        proposal = _proposal_from_row(row)
        self._load_relations([proposal], with_relations)
        return proposal

    def list(
        self,
        criteria: ProposalFilter,
        page: int = 1,
        per_page: int = 15,
        with_relations: Iterable[str] = (),
    ) -> tuple[list[Proposal], int]:
        if criteria.ids is not None and not criteria.ids:
            return [], 0

        conditions = []
        if criteria.user_id is not None:
            conditions.append(proposals.c.user_id == criteria.user_id)
        if criteria.status is not None:
            conditions.append(proposals.c.status == criteria.status.value)
        if criteria.title_contains:
            pattern = contains_pattern(criteria.title_contains)
            conditions.append(proposals.c.title.ilike(pattern, escape=LIKE_ESCAPE))
        if criteria.ids is not None:
            conditions.append(proposals.c.id.in_(criteria.ids))
        if criteria.tag_ids:
            tagged = select(proposal_tag.c.proposal_id).where(
                proposal_tag.c.tag_id.in_(criteria.tag_ids)
            )
            conditions.append(proposals.c.id.in_(tagged))

        where = and_(*conditions) if conditions else None

        count_stmt = select(func.count()).select_from(proposals)
        if criteria.ids:
            # Keep the ranking of the search index
            rank = case(
                {proposal_id: position for position, proposal_id in enumerate(criteria.ids)},
                value=proposals.c.id,
            )
            stmt = select(proposals).order_by(rank)
        else:
            stmt = select(proposals).order_by(
                proposals.c.created_at.desc(), proposals.c.id.desc()
            )
        if where is not None:
            count_stmt = count_stmt.where(where)
            stmt = stmt.where(where)

        total = self.connection.execute(count_stmt).scalar_one()
        rows = self.connection.execute(stmt.limit(per_page).offset((page - 1) * per_page))
        items = [_proposal_from_row(row) for row in rows]
        self._load_relations(items, with_relations)
        return items, total

    def file_paths_for_user(
        self, user_id: int, exclude_proposal_id: int | None = None
    ) -> list[str]:
        stmt = select(proposals.c.file_path).where(
            and_(proposals.c.user_id == user_id, proposals.c.file_path.is_not(None))
        )
        if exclude_proposal_id is not None:
            stmt = stmt.where(proposals.c.id != exclude_proposal_id)
        return [row.file_path for row in self.connection.execute(stmt)]

    def top_rated(self, min_rating: float, limit: int) -> list[RatedProposal]:
        average = func.avg(reviews.c.rating)
        count = func.count(reviews.c.id)
        stmt = (
            select(proposals, average.label("average_rating"), count.label("reviews_count"))
            .join(reviews, reviews.c.proposal_id == proposals.c.id)
            .where(proposals.c.status == ProposalStatus.APPROVED.value)
            .group_by(proposals.c.id)
            .having(and_(count > 0, average >= min_rating))
            .order_by(average.desc(), count.desc(), proposals.c.id)
            .limit(limit)
        )
        rows = list(self.connection.execute(stmt))
        items = [_proposal_from_row(row) for row in rows]
        self._load_relations(items, ("user", "tags"))
        return [
            RatedProposal(
                proposal=proposal,
                average_rating=round(float(row.average_rating), 2),
                reviews_count=row.reviews_count,
            )
            for proposal, row in zip(items, rows)
        ]

    def all_ids(self) -> list[int]:
        return [
            row.id
            for row in self.connection.execute(select(proposals.c.id).order_by(proposals.c.id))
        ]

    # --------------------------------------------------------------- relations

    def _load_relations(self, items: list[Proposal], with_relations: Iterable[str]) -> None:
        relations = set(with_relations)
        unknown = relations - KNOWN_RELATIONS
        if unknown:
            raise ValidationError(f"Unknown relation(s): {', '.join(sorted(unknown))}")
        if not items or not relations:
            return

        ids = [p.id for p in items]
        if "user" in relations:
            owners = SqlAlchemyUserRepository(self.connection).get_many(p.user_id for p in items)
            for proposal in items:
                proposal.user = owners.get(proposal.user_id)

        if "tags" in relations:
            stmt = (
                select(proposal_tag.c.proposal_id, tags.c.id, tags.c.name)
                .join(tags, tags.c.id == proposal_tag.c.tag_id)
                .where(proposal_tag.c.proposal_id.in_(ids))
                .order_by(tags.c.name)
            )
            grouped: dict[int, list[Tag]] = defaultdict(list)
            for row in self.connection.execute(stmt):
                grouped[row.proposal_id].append(Tag(id=row.id, name=row.name))
            for proposal in items:
                proposal.tags = grouped.get(proposal.id, [])

        if "reviews" in relations:
            grouped_reviews = SqlAlchemyReviewRepository(self.connection).list_for_proposals(ids)
            for proposal in items:
                proposal.reviews = grouped_reviews.get(proposal.id, [])
