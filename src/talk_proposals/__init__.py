"""
Talk Proposals - conference talk proposal API.

Speakers submit proposals with a PDF attachment, reviewers rate them,
admins moderate their status. Notifications, search indexing and file
post-processing run as Celery background jobs.
"""

__version__ = "0.1.0"
