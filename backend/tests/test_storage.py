"""Local-disk file storage."""

from __future__ import annotations

import re

import pytest

from talent.core.exceptions import FileStorageError
from talent.resumes.files import FileType
from talent.resumes.storage import LocalFileStorage

CONTENT = b"%PDF-1.4\n" + b"1" * 1500


@pytest.fixture
def local_storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(str(tmp_path), "http://files.test/")


def test_upload_download_and_delete(local_storage, tmp_path) -> None:
    result = local_storage.upload_file(CONTENT, "cv.pdf", len(CONTENT), FileType.PDF, 7)

    assert re.fullmatch(r"7/[0-9a-f-]{36}\.pdf", result.storage_key)
    assert (tmp_path / result.storage_key).read_bytes() == CONTENT
    assert result.size == len(CONTENT)
    assert result.access_url.startswith(f"http://files.test/{result.storage_key}?expires=")

    assert local_storage.file_exists(result.storage_key)
    assert local_storage.download_file(result.storage_key) == CONTENT

    metadata = local_storage.get_file_metadata(result.storage_key)
    assert metadata.file_size == len(CONTENT)
    assert metadata.content_type == "application/pdf"

    local_storage.delete_file(result.storage_key)
    assert not local_storage.file_exists(result.storage_key)
    with pytest.raises(FileStorageError):
        local_storage.delete_file(result.storage_key)


def test_size_mismatch_is_rejected(local_storage) -> None:
    with pytest.raises(FileStorageError):
        local_storage.upload_file(CONTENT, "cv.pdf", len(CONTENT) + 1, FileType.PDF, 7)


def test_keys_cannot_escape_the_root(local_storage) -> None:
    with pytest.raises(FileStorageError):
        local_storage.download_file("../../etc/passwd")
    assert not local_storage.file_exists("../outside.pdf")


def test_access_url_requires_positive_ttl(local_storage) -> None:
    with pytest.raises(FileStorageError):
        local_storage.generate_access_url("7/some.pdf", 0)


def test_missing_file_raises(local_storage) -> None:
    with pytest.raises(FileStorageError):
        local_storage.download_file("7/missing.pdf")
    with pytest.raises(FileStorageError):
        local_storage.get_file_metadata("7/missing.pdf")
