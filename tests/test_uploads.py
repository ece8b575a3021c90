from __future__ import annotations

import logging
import re
from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from errors import ErrorKind, FileTooLarge, InvalidFileType, MissingFile
from uploads import GridFSStorage, IncomingFile, LocalDiskStorage, ResumeIntake, generate_filename


PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _file(name="cv.pdf", content_type=PDF, data=b"%PDF-1.4 resume"):
    return IncomingFile("resumeFile", name, content_type, data)


def test_accept_stores_under_generated_name(tmp_path):
    intake = ResumeIntake(LocalDiskStorage(str(tmp_path / "resumes")))
    path = intake.accept(_file())
    assert re.search(r"resumeFile-\d+-\d+\.pdf$", path)
    with open(path, "rb") as fh:
        assert fh.read() == b"%PDF-1.4 resume"


def test_missing_file_is_rejected():
    intake = ResumeIntake(MagicMock())
    with pytest.raises(MissingFile) as exc_info:
        intake.accept(None)
    assert exc_info.value.kind is ErrorKind.MISSING_FILE
    assert exc_info.value.to_body() == {
        "message": "Resume file is required.",
        "errors": [{"field": "resumeFile", "message": "Resume file is required."}],
    }


def test_wrong_type_is_rejected_before_storage():
    storage = MagicMock()
    intake = ResumeIntake(storage)
    with pytest.raises(InvalidFileType):
        intake.accept(_file("cv.png", "image/png"))
    storage.store.assert_not_called()


def test_size_limit_is_inclusive():
    storage = MagicMock()
    storage.store.return_value = "stored"
    intake = ResumeIntake(storage, max_bytes=5 * 1024 * 1024)
    assert intake.accept(_file(data=b"x" * (5 * 1024 * 1024))) == "stored"
    with pytest.raises(FileTooLarge) as exc_info:
        intake.accept(_file(data=b"x" * (5 * 1024 * 1024 + 1)))
    assert exc_info.value.message == "File is too large. Max size is 5MB."
    assert storage.store.call_count == 1


def test_extension_falls_back_to_mime_type():
    assert generate_filename("resumeFile", "resume", DOCX).endswith(".docx")
    assert generate_filename("resumeFile", "Resume.DOC", "application/msword").endswith(".DOC")


def test_generated_names_do_not_collide():
    names = {generate_filename("resumeFile", "cv.pdf", PDF) for _ in range(200)}
    assert len(names) == 200



def test_local_delete_removes_file_and_tolerates_missing(tmp_path):
    storage = LocalDiskStorage(str(tmp_path))
    path = storage.store(b"data", "resumeFile-1-2.pdf", PDF)
    storage.delete(path)
    assert list(tmp_path.iterdir()) == []
    storage.delete(path)


def test_gridfs_delete_uses_file_id():
    fs = MagicMock()
    file_id = ObjectId()
    GridFSStorage(fs).delete(f"gridfs://{file_id}")
    fs.delete.assert_called_once_with(file_id)


def test_discard_logs_when_storage_cannot_delete(caplog):
    storage = MagicMock()
    storage.delete.side_effect = PermissionError("read-only")
    with caplog.at_level(logging.ERROR, logger="uploads"):
        ResumeIntake(storage).discard("uploads/resumes/resumeFile-1-2.pdf")
    assert "could not remove orphaned resume" in caplog.text

def test_gridfs_storage_returns_handle():
    fs = MagicMock()
    fs.put.return_value = "65a1b2c3"
    path = GridFSStorage(fs).store(b"data", "resumeFile-1-2.pdf", PDF)
    assert path == "gridfs://65a1b2c3"
    fs.put.assert_called_once_with(b"data", filename="resumeFile-1-2.pdf", contentType=PDF)
