"""Document storage — writes uploaded files under the upload directory.

Learn: Uploads are streamed to disk in chunks in a worker thread
(run_in_threadpool) so a 100 MB file never blocks the event loop or
sits in memory. The size limit is enforced while copying; a file that
crosses it is deleted and the upload rejected.
"""

import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from starlette.concurrency import run_in_threadpool

from intraportal.config import settings

CHUNK_SIZE = 1024 * 1024


class UploadRejected(Exception):
    """Raised when an upload violates the type or size constraints."""


@dataclass(frozen=True)
class StoredFile:
    path: str
    original_name: str
    extension: str
    size: int


class DocumentStorage:
    def __init__(
        self,
        root: str | None = None,
        max_bytes: int | None = None,
        allowed_extensions: list[str] | None = None,
    ):
        self.root = Path(root or settings.upload_dir)
        self.max_bytes = max_bytes or settings.upload_max_bytes
        self.allowed_extensions = {
            ext.lower() for ext in (allowed_extensions or settings.upload_allowed_extensions)
        }

    def check_name(self, filename: str) -> str:
        """Return the lowercased extension, or raise if it isn't allowed."""
        extension = Path(filename).suffix.lower()
        if extension not in self.allowed_extensions:
            raise UploadRejected("Invalid file type")
        return extension

    async def save(self, source: BinaryIO, filename: str) -> StoredFile:
        extension = self.check_name(filename)
        target = self.root / f"{uuid.uuid4().hex}{extension}"
        size = await run_in_threadpool(self._copy, source, target)
        return StoredFile(
            path=str(target),
            original_name=filename,
            extension=extension,
            size=size,
        )

    async def delete(self, path: str) -> None:
        await run_in_threadpool(_unlink_quietly, Path(path))

    def _copy(self, source: BinaryIO, target: Path) -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        try:
            with open(target, "wb") as out:
                while chunk := source.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise UploadRejected(
                            f"File exceeds the {self.max_bytes} byte limit"
                        )
                    out.write(chunk)
        except BaseException:
            _unlink_quietly(target)
            raise
        return written


def _unlink_quietly(path: Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
