"""
Application Configuration

Reads runtime configuration from environment variables (optionally loaded
from a .env file) into a single immutable Settings object.

Responsibility:
    - Centralize every tunable of the proposal workflow
    - Provide sane defaults for local development
    - Convert raw environment strings to typed values

Architecture Notes:
    - Shared by API, Celery workers and scripts
    - No framework imports (safe to import from any layer)
    - Built once per process by bootstrap.get_container()

Business Rules:
    - Per-user file quota: 100MB (FILE_QUOTA_PER_USER_MB)
    - Top-rated threshold: average rating >= 4.0 (TOP_RATED_MIN_RATING)
    - Background jobs: 3 attempts with 5s backoff (JOB_MAX_ATTEMPTS, JOB_BACKOFF_SECONDS)
    - Top-rated cache TTL: 15 minutes (TOP_RATED_CACHE_TTL)
    - Rate limits per user: 60 requests/minute, 10 submissions/hour, 20 uploads/hour
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

BYTES_PER_MB = 1024 * 1024


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """
    Typed view over the environment.

    Attributes:
        database_url: SQLAlchemy URL of the relational store
        redis_host: Redis hostname shared by cache and search index
        redis_port: Redis port
        redis_cache_db: Redis database number used for read caches
        redis_search_db: Redis database number used for search documents
        celery_broker_url: Celery broker URL
        celery_result_backend: Celery result backend URL
        storage_dir: Root directory of the proposal file disk
        file_quota_per_user_mb: Max total size of attached files per user
        max_upload_size_mb: Request-level size limit of a single upload
        top_rated_min_rating: Minimum average rating of a top-rated proposal
        top_rated_default_limit: Default number of top-rated proposals
        top_rated_cache_ttl: TTL (seconds) of cached top-rated listings
        tags_cache_ttl: TTL (seconds) of the cached tag listing
        job_max_attempts: Total attempts of a background job (first run included)
        job_backoff_seconds: Delay between two attempts of a background job
        smtp_host: SMTP relay hostname
        smtp_port: SMTP relay port
        smtp_username: SMTP login (optional)
        smtp_password: SMTP password (optional)
        smtp_use_tls: Upgrade SMTP connection with STARTTLS
        mail_from: Sender address of notification emails
        search_enabled: Use the search index for full-text listing queries
        rate_limit_enabled: Throttle API requests per user
        rate_limit_per_minute: API requests per user per minute
        rate_limit_proposals_per_hour: Proposal submissions per user per hour
        rate_limit_uploads_per_hour: File uploads per user per hour
    """

    database_url: str = "sqlite:///./talk_proposals.db"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_cache_db: int = 2
    redis_search_db: int = 3
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    storage_dir: str = "/tmp/talk_proposals/storage"
    file_quota_per_user_mb: int = 100
    max_upload_size_mb: int = 4
    top_rated_min_rating: float = 4.0
    top_rated_default_limit: int = 10
    top_rated_cache_ttl: int = 900
    tags_cache_ttl: int = 3600
    job_max_attempts: int = 3
    job_backoff_seconds: int = 5
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = False
    mail_from: str = "noreply@talk-proposals.local"
    search_enabled: bool = False
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60
    rate_limit_proposals_per_hour: int = 10
    rate_limit_uploads_per_hour: int = 20

    @property
    def file_quota_bytes(self) -> int:
        return self.file_quota_per_user_mb * BYTES_PER_MB

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * BYTES_PER_MB

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Returns:
            Settings with every unset variable falling back to its default

        Examples:
            >>> os.environ["FILE_QUOTA_PER_USER_MB"] = "50"
            >>> Settings.from_env().file_quota_bytes
            52428800
        """
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            redis_host=os.getenv("REDIS_HOST", cls.redis_host),
            redis_port=int(os.getenv("REDIS_PORT", str(cls.redis_port))),
            redis_cache_db=int(os.getenv("REDIS_CACHE_DB", str(cls.redis_cache_db))),
            redis_search_db=int(
                os.getenv("REDIS_SEARCH_DB", str(cls.redis_search_db))
            ),
            celery_broker_url=os.getenv("CELERY_BROKER_URL", cls.celery_broker_url),
            celery_result_backend=os.getenv(
                "CELERY_RESULT_BACKEND", cls.celery_result_backend
            ),
            storage_dir=os.getenv("STORAGE_DIR", cls.storage_dir),
            file_quota_per_user_mb=int(
                os.getenv("FILE_QUOTA_PER_USER_MB", str(cls.file_quota_per_user_mb))
            ),
            max_upload_size_mb=int(
                os.getenv("MAX_UPLOAD_SIZE_MB", str(cls.max_upload_size_mb))
            ),
            top_rated_min_rating=float(
                os.getenv("TOP_RATED_MIN_RATING", str(cls.top_rated_min_rating))
            ),
            top_rated_default_limit=int(
                os.getenv("TOP_RATED_DEFAULT_LIMIT", str(cls.top_rated_default_limit))
            ),
            top_rated_cache_ttl=int(
                os.getenv("TOP_RATED_CACHE_TTL", str(cls.top_rated_cache_ttl))
            ),
            tags_cache_ttl=int(os.getenv("TAGS_CACHE_TTL", str(cls.tags_cache_ttl))),
            job_max_attempts=int(
                os.getenv("JOB_MAX_ATTEMPTS", str(cls.job_max_attempts))
            ),
            job_backoff_seconds=int(
                os.getenv("JOB_BACKOFF_SECONDS", str(cls.job_backoff_seconds))
            ),
            smtp_host=os.getenv("SMTP_HOST", cls.smtp_host),
            smtp_port=int(os.getenv("SMTP_PORT", str(cls.smtp_port))),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            smtp_use_tls=_env_bool("SMTP_USE_TLS"),
            mail_from=os.getenv("MAIL_FROM", cls.mail_from),
            search_enabled=_env_bool("SEARCH_ENABLED"),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", "true"),
            rate_limit_per_minute=int(
                os.getenv("RATE_LIMIT_PER_MINUTE", str(cls.rate_limit_per_minute))
            ),
            rate_limit_proposals_per_hour=int(
                os.getenv(
                    "RATE_LIMIT_PROPOSALS_PER_HOUR", str(cls.rate_limit_proposals_per_hour)
                )
            ),
            rate_limit_uploads_per_hour=int(
                os.getenv("RATE_LIMIT_UPLOADS_PER_HOUR", str(cls.rate_limit_uploads_per_hour))
            ),
        )
