"""HTTP PUT of file data against presigned links."""

from __future__ import annotations

import logging

import requests

from datahandler.const import HTTP_TIMEOUT_SECONDS
from datahandler.exceptions import PartUploadError
from datahandler.upload.models import CompletedPart, PresignedLink

logger = logging.getLogger(__name__)

ETAG_HEADER = "ETag"


class PartUploader:
    """Send one buffer per presigned link to object storage.

    Each call issues exactly one PUT with the buffer as body and no headers
    beyond what requests adds. Only HTTP 200 counts as success; nothing is
    retried.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the uploader.

        Args:
            session: HTTP session to send PUTs with. A private session is
                created when omitted.
            timeout: Timeout for each PUT, in seconds.
        """
        self._session = session or requests.Session()
        self._timeout = timeout

    def _put(self, link: PresignedLink, data: bytes) -> requests.Response:
        """PUT ``data`` to the link URL.

        Raises:
            PartUploadError: On transport errors or any status other than 200.
        """
        try:
            response = self._session.put(link.url, data=data, timeout=self._timeout)
        except requests.RequestException as e:
            raise PartUploadError(
                f"PUT of {_describe(link)} failed: {e}",
                part_number=link.part_number,
            ) from e

        logger.debug(
            "PUT %s: status=%d bytes=%d",
            _describe(link),
            response.status_code,
            len(data),
        )
        if response.status_code != 200:
            raise PartUploadError(
                f"PUT of {_describe(link)} failed: "
                f"{response.status_code} {response.reason or ''}".rstrip(),
                status_code=response.status_code,
                part_number=link.part_number,
            )
        return response

    def upload_part(self, link: PresignedLink, data: bytes) -> CompletedPart:
        """Upload one multipart part and return its completed descriptor.

        Args:
            link: Presigned link for the part. ``link.part_number`` must be set.
            data: Exact bytes of the part.

        Returns:
            The part number paired with the entity tag, quotes stripped.

        Raises:
            PartUploadError: If the PUT fails or the response has no entity tag.
            ValueError: If the link carries no part number.
        """
        if link.part_number is None:
            raise ValueError("A multipart link must carry a part number")

        response = self._put(link, data)
        etag = _strip_etag(response.headers.get(ETAG_HEADER))
        if not etag:
            raise PartUploadError(
                f"PUT of {_describe(link)} returned 200 without an entity tag",
                status_code=response.status_code,
                part_number=link.part_number,
            )
        return CompletedPart(part_number=link.part_number, etag=etag)

    def upload_whole(self, link: PresignedLink, data: bytes) -> str | None:
        """Upload a whole file in one PUT.

        Returns:
            The entity tag of the object when storage reports one.

        Raises:
            PartUploadError: If the PUT fails.
        """
        response = self._put(link, data)
        return _strip_etag(response.headers.get(ETAG_HEADER))

    def close(self) -> None:
        self._session.close()


def _strip_etag(value: str | None) -> str | None:
    if value is None:
        return None
    return value.replace('"', "").strip() or None


def _describe(link: PresignedLink) -> str:
    if link.part_number is None:
        return "file"
    return f"part {link.part_number}"
