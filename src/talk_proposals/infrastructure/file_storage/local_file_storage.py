"""
Local File Storage

Blob store for proposal attachments on the local file system.

Storage Structure:
    Base directory: /tmp/talk_proposals/storage (from env: STORAGE_DIR)
    Attachments:    {base_dir}/proposals/{uuid4 hex}{original suffix}

Paths returned to callers are relative to the base directory
("proposals/5b0e...a7b.pdf") so the database never stores absolute paths.

Error Handling:
    - Missing file on size()/read(): ProposalFileNotFoundError
    - Missing file on delete(): warning + False
    - OSError on write/delete: TransientInfraError
    - Paths escaping the base directory: ProposalFileNotFoundError
"""

import logging
import os
from pathlib import Path
from uuid import uuid4

from talk_proposals.domain.shared.exceptions import (
    ProposalFileNotFoundError,
    TransientInfraError,
)

logger = logging.getLogger(__name__)

PROPOSALS_SUBDIR = "proposals"


class LocalFileStorage:
    """
    File system implementation of FileStorageProtocol.

    Examples:
        >>> storage = LocalFileStorage("/tmp/talk_proposals/storage")
        >>> path = storage.store(b"%PDF-1.4 ...", "my talk.pdf")
        >>> storage.size(path)
        12
        >>> storage.delete(path)
        True
    """

    def __init__(self, base_dir: str | None = None) -> None:
        self.base_dir = Path(
            base_dir or os.getenv("STORAGE_DIR", "/tmp/talk_proposals/storage")
        ).resolve()

    def store(self, content: bytes, filename: str) -> str:
        suffix = Path(filename).suffix.lower() or ".pdf"
        relative = f"{PROPOSALS_SUBDIR}/{uuid4().hex}{suffix}"
        target = self._resolve(relative)
        try:
            self._ensure_directory_exists(target.parent)
            self._atomic_write_file(target, content)
        except OSError as e:
            logger.error(f"Failed to write {relative}: {e}")
            raise TransientInfraError(f"Could not store file {filename}", original_error=e) from e
        logger.debug(f"Stored {len(content)} bytes at {relative}")
        return relative

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except ProposalFileNotFoundError:
            return False

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            logger.warning(f"Attempted to delete non-existent file: {path}")
            return False
        try:
            target.unlink()
        except FileNotFoundError:
            logger.warning(f"File disappeared before deletion: {path}")
            return False
        except OSError as e:
            raise TransientInfraError(f"Could not delete file {path}", original_error=e) from e
        logger.info(f"Deleted file {path}")
        return True

    def size(self, path: str) -> int:
        target = self._resolve(path)
        if not target.is_file():
            raise ProposalFileNotFoundError(path)
        return target.stat().st_size

    def read(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise ProposalFileNotFoundError(path)
        return target.read_bytes()

    def read_head(self, path: str, length: int) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise ProposalFileNotFoundError(path)
        with target.open("rb") as f:
            return f.read(length)

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _resolve(self, path: str) -> Path:
        """Absolute path of a storage-relative path, refusing traversal outside base_dir."""
        target = (self.base_dir / path).resolve()
        if target != self.base_dir and self.base_dir not in target.parents:
            raise ProposalFileNotFoundError(path)
        return target

    def _ensure_directory_exists(self, dir_path: Path) -> None:
        if dir_path.exists():
            return
        dir_path.mkdir(parents=True, exist_ok=True)
        self._set_permissions(dir_path, 0o755)
        logger.debug(f"Created directory: {dir_path}")

    def _set_permissions(self, path: Path, mode: int) -> None:
        try:
            os.chmod(path, mode)
        except (OSError, NotImplementedError):
            # Windows may not support chmod for all modes
            logger.debug(f"Could not set permissions on {path}")

    def _atomic_write_file(self, file_path: Path, data: bytes) -> None:
        """Write to {file_path}.tmp, then rename, so readers never see a partial file."""
        tmp_path = file_path.with_suffix(file_path.suffix + ".tmp")
        try:
            tmp_path.write_bytes(data)
            self._set_permissions(tmp_path, 0o644)
            tmp_path.replace(file_path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
