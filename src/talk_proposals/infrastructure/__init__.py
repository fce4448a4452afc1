"""
Infrastructure Layer

Adapters implementing the application ports:
    - persistence.sqlalchemy: repositories and unit of work
    - persistence.redis: connection pools and read cache
    - search: Redis-backed search index
    - file_storage: local disk blob store
    - mail: SMTP mailer
    - queue: Celery job queue
"""
