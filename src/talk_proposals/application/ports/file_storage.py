"""
File Storage Port

Blob store holding proposal PDF attachments. Paths are relative to the
storage root (e.g. "proposals/3f2a...c1.pdf").
"""

from typing import Protocol


class FileStorageProtocol(Protocol):
    def store(self, content: bytes, filename: str) -> str:
        """
        Write content under a unique name derived from filename.

        Returns:
            Storage-relative path of the written file

        Raises:
            TransientInfraError: If the disk is unavailable
        """
        ...

    def exists(self, path: str) -> bool:
        ...

    def delete(self, path: str) -> bool:
        """Returns False (and logs a warning) when the file is already gone."""
        ...

    def size(self, path: str) -> int:
        """
        Raises:
            ProposalFileNotFoundError: If the file does not exist
        """
        ...

    def read(self, path: str) -> bytes:
        """
        Raises:
            ProposalFileNotFoundError: If the file does not exist
        """
        ...

    def read_head(self, path: str, length: int) -> bytes:
        """First `length` bytes of the file (signature checks)."""
        ...
