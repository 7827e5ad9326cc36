"""Client library for uploading files through presigned links."""

from .exceptions import (
    BackendError,
    ConfigError,
    DatahandlerError,
    FileReadError,
    FinalizeError,
    LinkRequestError,
    PartUploadError,
    UploadCancelledError,
    UploadError,
)
from .uploader import upload_files

__version__ = "0.3.0"

__all__ = [
    "upload_files",
    "DatahandlerError",
    "ConfigError",
    "BackendError",
    "UploadError",
    "FileReadError",
    "LinkRequestError",
    "PartUploadError",
    "FinalizeError",
    "UploadCancelledError",
]
