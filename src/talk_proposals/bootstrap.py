"""
Composition Root

Builds every collaborator once per process and wires them together:
engine and unit of work, Redis cache, search index and rate limiter, file storage,
mailer, Celery job queue, event bus with its listeners, and the
application services.

Used by:
    - api.dependencies (FastAPI request handlers)
    - application.tasks (Celery workers)
    - scripts/ (command line tools)

Tests call build_container() with overrides (in-memory SQLite, fake
cache, recording job queue) instead of touching get_container().
"""

import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional

from redis import Redis
from sqlalchemy.engine import Engine

from talk_proposals.application.events.bus import EventBus
from talk_proposals.application.events.listeners import register_listeners
from talk_proposals.application.ports import (
    CacheProtocol,
    FileStorageProtocol,
    JobQueueProtocol,
    MailerProtocol,
    RateLimiterProtocol,
    SearchIndexProtocol,
)
from talk_proposals.application.services import (
    AdminProposalService,
    FileUploadService,
    ProposalCache,
    ProposalService,
    ReviewService,
    TagService,
)
from talk_proposals.config import Settings
from talk_proposals.infrastructure.file_storage import LocalFileStorage
from talk_proposals.infrastructure.mail import SmtpMailer
from talk_proposals.infrastructure.persistence.redis import (
    RedisCache,
    RedisRateLimiter,
    get_redis_client,
)
from talk_proposals.infrastructure.persistence.sqlalchemy import (
    SqlAlchemyUnitOfWork,
    create_schema,
    make_engine,
)
from talk_proposals.infrastructure.search import RedisSearchIndex

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    engine: Engine
    uow_factory: Callable[[], SqlAlchemyUnitOfWork]
    cache: CacheProtocol
    proposal_cache: ProposalCache
    storage: FileStorageProtocol
    file_service: FileUploadService
    search_index: SearchIndexProtocol
    mailer: MailerProtocol
    job_queue: JobQueueProtocol
    rate_limiter: RateLimiterProtocol
    event_bus: EventBus
    proposal_service: ProposalService
    admin_proposal_service: AdminProposalService
    review_service: ReviewService
    tag_service: TagService


def _redis(settings: Settings, db: int) -> Redis:
    # Lazy client: the first command opens the connection, so startup never blocks on Redis
    return get_redis_client(
        host=settings.redis_host, port=settings.redis_port, db=db, verify=False
    )


def _default_job_queue() -> JobQueueProtocol:
    # Imported lazily: the Celery app reads its own settings on import
    from talk_proposals.application.tasks.celery_app import celery_app
    from talk_proposals.infrastructure.queue import CeleryJobQueue

    return CeleryJobQueue(celery_app)


def build_container(settings: Optional[Settings] = None, **overrides: Any) -> Container:
    """
    Wire the application.

    Args:
        settings: Configuration (default: Settings.from_env())
        **overrides: Replace a collaborator by name: engine, cache, storage,
            search_index, mailer, job_queue, rate_limiter

    Returns:
        Fully wired Container
    """
    settings = settings or Settings.from_env()

    engine = overrides.get("engine")
    if engine is None:
        engine = make_engine(settings.database_url)
    create_schema(engine)
    uow_factory = partial(SqlAlchemyUnitOfWork, engine)

    cache = overrides.get("cache")
    if cache is None:
        cache = RedisCache(_redis(settings, settings.redis_cache_db))

    search_index = overrides.get("search_index")
    if search_index is None:
        search_index = RedisSearchIndex(_redis(settings, settings.redis_search_db))

    storage = overrides.get("storage")
    if storage is None:
        storage = LocalFileStorage(settings.storage_dir)

    mailer = overrides.get("mailer")
    if mailer is None:
        mailer = SmtpMailer(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_addr=settings.mail_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )

    job_queue = overrides.get("job_queue")
    if job_queue is None:
        job_queue = _default_job_queue()

    rate_limiter = overrides.get("rate_limiter")
    if rate_limiter is None:
        rate_limiter = RedisRateLimiter(_redis(settings, settings.redis_cache_db))

    proposal_cache = ProposalCache(cache)
    file_service = FileUploadService(storage, uow_factory, settings.file_quota_bytes)
    event_bus = register_listeners(EventBus(), job_queue)

    proposal_service = ProposalService(
        uow_factory=uow_factory,
        files=file_service,
        cache=proposal_cache,
        events=event_bus,
        job_queue=job_queue,
        search_index=search_index if settings.search_enabled else None,
        top_rated_min_rating=settings.top_rated_min_rating,
        top_rated_cache_ttl=settings.top_rated_cache_ttl,
    )

    logger.info(
        f"Container built (database={engine.url.get_backend_name()}, "
        f"search_enabled={settings.search_enabled})"
    )
    return Container(
        settings=settings,
        engine=engine,
        uow_factory=uow_factory,
        cache=cache,
        proposal_cache=proposal_cache,
        storage=storage,
        file_service=file_service,
        search_index=search_index,
        mailer=mailer,
        job_queue=job_queue,
        rate_limiter=rate_limiter,
        event_bus=event_bus,
        proposal_service=proposal_service,
        admin_proposal_service=AdminProposalService(
            uow_factory, proposal_cache, event_bus, proposal_service
        ),
        review_service=ReviewService(uow_factory, proposal_cache, event_bus),
        tag_service=TagService(uow_factory, proposal_cache, settings.tags_cache_ttl),
    )


_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Process-wide container (thread-safe lazy singleton)."""
    global _container

    if _container is None:
        with _container_lock:
            if _container is None:
                _container = build_container()
    return _container


def set_container(container: Optional[Container]) -> None:
    """Replace (or reset with None) the process-wide container."""
    global _container

    with _container_lock:
        _container = container
