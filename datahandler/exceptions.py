"""Exceptions raised by the datahandler client."""

from __future__ import annotations


class DatahandlerError(Exception):
    """Base class for all datahandler errors."""


class ConfigError(DatahandlerError):
    """Raised when the client configuration is missing or invalid."""


class BackendError(DatahandlerError):
    """Raised when a dataset bookkeeping call to the backend fails.

    Attributes:
        status_code: HTTP status of the failed call, if a response arrived.
        detail: Error detail reported by the backend, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human readable description of the failed call.
            status_code: HTTP status returned by the backend.
            detail: Error detail extracted from the response body.
        """
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class UploadError(DatahandlerError):
    """Base class for errors that abort a single file upload."""


class FileReadError(UploadError):
    """The source file could not be opened, inspected or read."""


class LinkRequestError(UploadError):
    """The load service did not hand out a presigned link or upload id."""


class PartUploadError(UploadError):
    """A PUT against a presigned link did not succeed.

    Raised for non-200 responses, transport failures, and 200 responses of a
    multipart part that carry no entity tag.

    Attributes:
        status_code: HTTP status of the PUT, None for transport failures.
        part_number: Part being uploaded, None for single-shot uploads.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        part_number: int | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Description including the observed status line.
            status_code: HTTP status returned by object storage.
            part_number: Number of the part that failed.
        """
        super().__init__(message)
        self.status_code = status_code
        self.part_number = part_number


class FinalizeError(UploadError):
    """The load service rejected or failed the multipart finalize call."""


class UploadCancelledError(UploadError):
    """The caller cancelled the upload before it completed."""
