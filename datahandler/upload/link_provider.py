"""Interface to the service handing out presigned upload links."""

from __future__ import annotations

from abc import ABC, abstractmethod

from datahandler.upload.models import (
    CompletedPart,
    FileDescriptor,
    PresignedLink,
    UploadTarget,
)


class LinkProvider(ABC):
    """Issues presigned links and commits multipart uploads.

    Implementations must:
      - Raise ``LinkRequestError`` when a link or upload id cannot be obtained.
      - Raise ``FinalizeError`` when a multipart upload cannot be committed.
      - Never retry on their own; the caller treats every failure as terminal.
    """

    @abstractmethod
    def request_single_upload_link(
        self, descriptor: FileDescriptor, target: UploadTarget
    ) -> PresignedLink:
        """Return a link accepting the whole file in one PUT."""
        ...

    @abstractmethod
    def init_multipart_upload(
        self, descriptor: FileDescriptor, target: UploadTarget
    ) -> str:
        """Open a multipart upload and return its object id."""
        ...

    @abstractmethod
    def request_part_upload_link(
        self, object_id: str, part_number: int, content_length: int
    ) -> PresignedLink:
        """Return a link accepting part ``part_number`` of ``content_length`` bytes."""
        ...

    @abstractmethod
    def finalize_multipart_upload(
        self, object_id: str, parts: list[CompletedPart]
    ) -> None:
        """Commit the object from ``parts``, ordered by part number."""
        ...

    def abort_multipart_upload(self, object_id: str) -> None:
        """Discard an unfinished multipart upload.

        Optional: providers without a cleanup call leave the default.
        """
        raise NotImplementedError(
            f"{type(self).__name__} cannot abort multipart uploads"
        )
