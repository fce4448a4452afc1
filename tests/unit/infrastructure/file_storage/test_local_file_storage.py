"""
Tests for LocalFileStorage.
"""

from pathlib import Path

import pytest

from talk_proposals.domain.shared.exceptions import (
    ProposalFileNotFoundError,
    TransientInfraError,
)
from talk_proposals.infrastructure.file_storage import LocalFileStorage


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "disk"))


def test_store_returns_relative_unique_paths(storage):
    first = storage.store(b"%PDF-1", "My Talk.PDF")
    second = storage.store(b"%PDF-2", "My Talk.PDF")

    assert first != second
    assert first.startswith("proposals/") and first.endswith(".pdf")
    assert storage.read(first) == b"%PDF-1"
    assert storage.size(second) == 6
    assert storage.read_head(first, 4) == b"%PDF"


def test_no_temp_files_left_behind(storage):
    storage.store(b"%PDF-1", "a.pdf")

    assert [p.suffix for p in (storage.base_dir / "proposals").iterdir()] == [".pdf"]


def test_failed_rename_removes_temp_file(storage, monkeypatch):
    def broken_replace(self, target):
        raise OSError("rename failed")

    monkeypatch.setattr(Path, "replace", broken_replace)

    with pytest.raises(TransientInfraError):
        storage.store(b"%PDF-1", "a.pdf")

    assert list((storage.base_dir / "proposals").iterdir()) == []


def test_delete(storage):
    path = storage.store(b"%PDF", "a.pdf")

    assert storage.delete(path) is True
    assert storage.exists(path) is False
    assert storage.delete(path) is False


def test_missing_file_reads_raise(storage):
    with pytest.raises(ProposalFileNotFoundError):
        storage.read("proposals/none.pdf")
    with pytest.raises(ProposalFileNotFoundError):
        storage.size("proposals/none.pdf")


def test_path_traversal_is_refused(storage, tmp_path):
    outside = tmp_path / "secret.txt"
    outside.write_text("secret")

    assert storage.exists("../secret.txt") is False
    with pytest.raises(ProposalFileNotFoundError):
        storage.read("../secret.txt")
    with pytest.raises(ProposalFileNotFoundError):
        storage.delete("../secret.txt")
    assert outside.exists()
