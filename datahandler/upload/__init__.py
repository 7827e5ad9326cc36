"""Single-shot and multipart uploads through presigned links."""

from .chunk_reader import ChunkReader
from .link_provider import LinkProvider
from .models import (
    Chunk,
    CompletedPart,
    FileDescriptor,
    PresignedLink,
    ProgressEvent,
    UploadResult,
    UploadSession,
    UploadState,
    UploadStrategy,
    UploadTarget,
)
from .orchestrator import UploadOrchestrator
from .part_uploader import PartUploader
from .progress import LoggingProgress, TqdmProgress
from .strategy import select_strategy

__all__ = [
    "Chunk",
    "ChunkReader",
    "CompletedPart",
    "FileDescriptor",
    "LinkProvider",
    "LoggingProgress",
    "PartUploader",
    "PresignedLink",
    "ProgressEvent",
    "TqdmProgress",
    "UploadOrchestrator",
    "UploadResult",
    "UploadSession",
    "UploadState",
    "UploadStrategy",
    "UploadTarget",
    "select_strategy",
]
