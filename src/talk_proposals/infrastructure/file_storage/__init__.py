"""
File Storage Module

Exports:
    - LocalFileStorage: Local disk blob store for proposal attachments
"""

from .local_file_storage import LocalFileStorage

__all__ = ["LocalFileStorage"]
