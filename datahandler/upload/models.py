"""Data model shared by the upload components."""

from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadStrategy(str, Enum):
    """How a file is transferred to object storage."""

    SINGLE = "single"
    MULTIPART = "multipart"


class UploadState(str, Enum):
    """States of a single upload driven by the orchestrator."""

    IDLE = "idle"
    STRATEGY_CHOSEN = "strategy_chosen"
    SINGLE_IN_FLIGHT = "single_in_flight"
    MULTIPART_IN_FLIGHT = "multipart_in_flight"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadTarget:
    """Dataset object group the uploaded bytes are attached to."""

    object_group_id: str


@dataclass(frozen=True)
class FileDescriptor:
    """Metadata of the source file, captured once at upload start."""

    name: str
    size: int
    extension: str
    content_type: str
    created: datetime

    @classmethod
    def from_stat(cls, path: Path, stat_result: os.stat_result) -> FileDescriptor:
        """Build a descriptor from a path and its ``os.stat`` result.

        Args:
            path: Path of the source file.
            stat_result: Result of stat on the open file.

        Returns:
            The file descriptor, timestamped now in UTC.
        """
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size=stat_result.st_size,
            extension=path.suffix,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            created=datetime.now(timezone.utc),
        )

    @classmethod
    def from_path(cls, path: str | Path) -> FileDescriptor:
        """Build a descriptor by stat-ing ``path``.

        Raises:
            OSError: If the file cannot be stat-ed.
        """
        path = Path(path)
        return cls.from_stat(path, path.stat())


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of the source file, one multipart part."""

    part_number: int
    data: bytes
    offset: int

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PresignedLink:
    """Short-lived URL accepting a single PUT."""

    url: str
    part_number: int | None = None
    object_id: str | None = None


@dataclass(frozen=True)
class CompletedPart:
    """A part stored by object storage, referenced at finalize time."""

    part_number: int
    etag: str


@dataclass(frozen=True)
class ProgressEvent:
    """Progress of one file upload after a part (or the whole file) landed."""

    file_name: str
    bytes_uploaded: int
    total_bytes: int
    part_number: int | None = None

    @property
    def percentage(self) -> float:
        if self.total_bytes == 0:
            return 100.0
        return self.bytes_uploaded / self.total_bytes * 100.0


@dataclass
class UploadSession:
    """Transient state of one upload attempt.

    A session is bound to exactly one strategy. Completed parts are keyed by
    part number and only ordered when the upload is finalized.
    """

    target: UploadTarget
    descriptor: FileDescriptor
    strategy: UploadStrategy
    object_id: str | None = None
    completed_parts: dict[int, CompletedPart] = field(default_factory=dict)
    bytes_uploaded: int = 0

    def record_part(self, part: CompletedPart, size: int) -> None:
        """Store a completed part and account for its bytes.

        Raises:
            ValueError: If the session is single-shot or the part is a duplicate.
        """
        if self.strategy is not UploadStrategy.MULTIPART:
            raise ValueError("Parts can only be recorded on a multipart session")
        if part.part_number in self.completed_parts:
            raise ValueError(f"Part {part.part_number} was already recorded")
        self.completed_parts[part.part_number] = part
        self.bytes_uploaded += size

    def ordered_parts(self) -> list[CompletedPart]:
        """Return the completed parts sorted by part number."""
        return [self.completed_parts[n] for n in sorted(self.completed_parts)]


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a successful upload."""

    file_name: str
    size: int
    strategy: UploadStrategy
    object_id: str | None = None
    parts: tuple[CompletedPart, ...] = ()
