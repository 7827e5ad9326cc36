"""Link provider backed by the load service REST API."""

from __future__ import annotations

import logging
from typing import Any

import requests

from datahandler.backend.client import BackendClient
from datahandler.backend.http_errors import describe_request_error
from datahandler.exceptions import FinalizeError, LinkRequestError
from datahandler.upload.link_provider import LinkProvider
from datahandler.upload.models import (
    CompletedPart,
    FileDescriptor,
    PresignedLink,
    UploadTarget,
)

logger = logging.getLogger(__name__)

UPLOAD_LINK_PATH = "/load/upload_link"
INIT_MULTIPART_PATH = "/load/multipart/init"
PART_LINK_PATH = "/load/multipart/part_link"
FINISH_MULTIPART_PATH = "/load/multipart/finish"
ABORT_MULTIPART_PATH = "/load/multipart/abort"


class LoadServiceLinkProvider(LinkProvider):
    """Request presigned links from the load service."""

    def __init__(self, client: BackendClient) -> None:
        """Initialize the provider.

        Args:
            client: Authenticated backend client.
        """
        self._client = client

    @staticmethod
    def _create_object_request(
        descriptor: FileDescriptor, target: UploadTarget
    ) -> dict[str, Any]:
        return {
            "create_dataset_object_request": {
                "filename": descriptor.name,
                "filetype": descriptor.extension,
                "content_len": descriptor.size,
                "created": descriptor.created.isoformat(),
            },
            "dataset_object_group_id": target.object_group_id,
        }

    def _call(self, path: str, payload: dict[str, Any], what: str) -> dict:
        try:
            return self._client.post(path, payload)
        except requests.RequestException as e:
            raise LinkRequestError(
                f"Failed to {what}: {describe_request_error(e)}"
            ) from e
        except ValueError as e:
            raise LinkRequestError(f"Failed to {what}: invalid response: {e}") from e

    @staticmethod
    def _require(body: dict, key: str, what: str) -> str:
        value = body.get(key)
        if not value:
            raise LinkRequestError(f"Failed to {what}: response has no {key!r}")
        return str(value)

    def request_single_upload_link(
        self, descriptor: FileDescriptor, target: UploadTarget
    ) -> PresignedLink:
        """Get a link accepting the whole file.

        Raises:
            LinkRequestError: If the load service does not return a link.
        """
        what = f"get upload link for {descriptor.name}"
        body = self._call(
            UPLOAD_LINK_PATH, self._create_object_request(descriptor, target), what
        )
        return PresignedLink(
            url=self._require(body, "link", what),
            object_id=body.get("dataset_object_id"),
        )

    def init_multipart_upload(
        self, descriptor: FileDescriptor, target: UploadTarget
    ) -> str:
        """Open a multipart upload for ``descriptor``.

        Raises:
            LinkRequestError: If no dataset object id is returned.
        """
        what = f"init multipart upload for {descriptor.name}"
        body = self._call(
            INIT_MULTIPART_PATH, self._create_object_request(descriptor, target), what
        )
        return self._require(body, "dataset_object_id", what)

    def request_part_upload_link(
        self, object_id: str, part_number: int, content_length: int
    ) -> PresignedLink:
        """Get a link for one part of an open multipart upload.

        Raises:
            LinkRequestError: If the load service does not return a link.
        """
        what = f"get link for part {part_number} of {object_id}"
        body = self._call(
            PART_LINK_PATH,
            {
                "dataset_object_id": object_id,
                "upload_part": part_number,
                "content_len": content_length,
            },
            what,
        )
        return PresignedLink(
            url=self._require(body, "upload_link", what),
            part_number=part_number,
            object_id=object_id,
        )

    def finalize_multipart_upload(
        self, object_id: str, parts: list[CompletedPart]
    ) -> None:
        """Commit a multipart upload.

        Raises:
            FinalizeError: If the load service rejects the call.
        """
        payload = {
            "dataset_object_id": object_id,
            "completed_upload_parts": [
                {"etag": part.etag, "partnumber": part.part_number} for part in parts
            ],
        }
        try:
            self._client.post(FINISH_MULTIPART_PATH, payload)
        except requests.RequestException as e:
            raise FinalizeError(
                f"Failed to finish multipart upload {object_id}: "
                f"{describe_request_error(e)}"
            ) from e
        except ValueError as e:
            raise FinalizeError(
                f"Failed to finish multipart upload {object_id}: invalid response: {e}"
            ) from e

    def abort_multipart_upload(self, object_id: str) -> None:
        """Discard an unfinished multipart upload.

        Raises:
            LinkRequestError: If the load service rejects the call.
        """
        self._call(
            ABORT_MULTIPART_PATH,
            {"dataset_object_id": object_id},
            f"abort multipart upload {object_id}",
        )
