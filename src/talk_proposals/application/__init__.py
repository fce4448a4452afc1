"""
Application Layer

Use cases, ports, the domain event bus with its listeners, background
job executors and their Celery tasks.
"""
