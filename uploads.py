"""
Resume intake for career applications.

Files are checked (presence, MIME type, size) before anything is written, then
stored under a generated name by a pluggable storage backend. The returned
path is opaque to the rest of the application.
"""

import logging
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional, Protocol

from bson import ObjectId
from pymongo.errors import PyMongoError

from errors import FileTooLarge, InvalidFileType, MissingFile


logger = logging.getLogger(__name__)

RESUME_FIELD = "resumeFile"
GRIDFS_SCHEME = "gridfs://"

RESUME_TYPES = {
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}


@dataclass(frozen=True)
class IncomingFile:
    field_name: str
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class FileStorage(Protocol):
    def store(self, data: bytes, filename: str, content_type: str) -> str:
        ...

    def delete(self, path: str) -> None:
        ...


class LocalDiskStorage:
    """Writes files into a directory on the local filesystem.

    Not suitable for hosts with an ephemeral disk; use ``GridFSStorage`` there.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def store(self, data: bytes, filename: str, content_type: str) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / filename
        # "x" mode: never overwrite an existing upload
        with open(path, "xb") as fh:
            fh.write(data)
        return str(path)

    def delete(self, path: str) -> None:
        Path(path).unlink(missing_ok=True)


class GridFSStorage:
    """Stores files in MongoDB GridFS; returns ``gridfs://<file id>``."""

    def __init__(self, fs):
        self.fs = fs

    def store(self, data: bytes, filename: str, content_type: str) -> str:
        file_id = self.fs.put(data, filename=filename, contentType=content_type)
        return f"{GRIDFS_SCHEME}{file_id}"

    def delete(self, path: str) -> None:
        self.fs.delete(ObjectId(path[len(GRIDFS_SCHEME):]))


def generate_filename(field_name: str, original_name: str, content_type: str) -> str:
    ext = os.path.splitext(original_name or "")[1]
    if not ext:
        ext = RESUME_TYPES.get(content_type, "")
    stamp = int(time.time() * 1000)
    return f"{field_name}-{stamp}-{secrets.randbelow(10**9)}{ext}"


class ResumeIntake:
    def __init__(
        self,
        storage: FileStorage,
        max_bytes: int = 5 * 1024 * 1024,
        allowed_types: Optional[FrozenSet[str]] = None,
        field_name: str = RESUME_FIELD,
    ):
        self.storage = storage
        self.max_bytes = max_bytes
        self.allowed_types = allowed_types or frozenset(RESUME_TYPES)
        self.field_name = field_name

    def require(self, upload: Optional[IncomingFile]) -> IncomingFile:
        if upload is None or not upload.filename:
            raise MissingFile("Resume file is required.", self.field_name)
        return upload

    def check(self, upload: IncomingFile) -> None:
        if upload.content_type not in self.allowed_types:
            raise InvalidFileType("Invalid file type. Only PDF, DOC, and DOCX are allowed.", self.field_name)
        if upload.size > self.max_bytes:
            raise FileTooLarge(
                f"File is too large. Max size is {self.max_bytes // (1024 * 1024)}MB.", self.field_name
            )

    def accept(self, upload: Optional[IncomingFile]) -> str:
        """Check the upload and store it; returns the storage path."""
        upload = self.require(upload)
        self.check(upload)
        filename = generate_filename(self.field_name, upload.filename, upload.content_type)
        path = self.storage.store(upload.data, filename, upload.content_type)
        logger.info("resume stored", extra={"stage": "file_accepted", "form": "career"})
        return path

    def discard(self, path: str) -> None:
        """Remove a stored upload whose submission was not recorded."""
        try:
            self.storage.delete(path)
        except (OSError, PyMongoError) as e:
            logger.error(
                "could not remove orphaned resume %s", path,
                extra={"stage": "file_discarded", "form": "career", "error": type(e).__name__},
            )
            return
        logger.info("orphaned resume removed", extra={"stage": "file_discarded", "form": "career"})
