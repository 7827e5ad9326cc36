"""Drive a file upload through presigned links.

The orchestrator picks the transfer strategy from the file size and then
either PUTs the whole file through one presigned link, or opens a multipart
upload, sends the file part by part, and finalizes it with the collected
entity tags. Parts are sent strictly one after another: the link for part
N + 1 is only requested once part N is stored.

Failures are terminal. Nothing is retried, and unless ``abort_on_failure``
is set an unfinished multipart upload is left behind on the backend.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO

from datahandler.const import CHUNK_SIZE, MIN_MULTIPART_UPLOAD_SIZE
from datahandler.exceptions import (
    FileReadError,
    LinkRequestError,
    UploadCancelledError,
)
from datahandler.upload.chunk_reader import ChunkReader
from datahandler.upload.link_provider import LinkProvider
from datahandler.upload.models import (
    FileDescriptor,
    PresignedLink,
    ProgressEvent,
    UploadResult,
    UploadSession,
    UploadState,
    UploadStrategy,
    UploadTarget,
)
from datahandler.upload.part_uploader import PartUploader
from datahandler.upload.progress import ProgressCallback, notify
from datahandler.upload.strategy import select_strategy

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """Upload files one at a time using a single or multipart transfer.

    An orchestrator can be reused for several files, one after another. Every
    call to ``upload`` starts a fresh session, so object ids and completed
    parts of an earlier attempt are never reused.
    """

    def __init__(
        self,
        link_provider: LinkProvider,
        part_uploader: PartUploader | None = None,
        *,
        chunk_size: int = CHUNK_SIZE,
        multipart_threshold: int = MIN_MULTIPART_UPLOAD_SIZE,
        progress_callbacks: Iterable[ProgressCallback] = (),
        abort_on_failure: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            link_provider: Source of presigned links and finalize calls.
            part_uploader: Sends the PUTs. A default uploader is created when
                omitted.
            chunk_size: Size of multipart parts, in bytes.
            multipart_threshold: Files larger than this are sent in parts.
            progress_callbacks: Observers receiving a ``ProgressEvent`` after
                each stored part or file.
            abort_on_failure: Ask the link provider to discard an unfinished
                multipart upload when the upload fails.
            cancel_event: When set by the caller, the upload stops before the
                next network call and fails without finalizing.

        Raises:
            ValueError: If ``chunk_size`` is not positive.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._link_provider = link_provider
        self._part_uploader = part_uploader or PartUploader()
        self._chunk_size = chunk_size
        self._multipart_threshold = multipart_threshold
        self._progress_callbacks = tuple(progress_callbacks)
        self._abort_on_failure = abort_on_failure
        self._cancel_event = cancel_event

        self._state = UploadState.IDLE
        self._session: UploadSession | None = None

    @property
    def state(self) -> UploadState:
        """State of the current (or last) upload."""
        return self._state

    @property
    def session(self) -> UploadSession | None:
        """Session of the current (or last) upload, None before strategy choice."""
        return self._session

    def upload(self, path: str | Path, target: UploadTarget) -> UploadResult:
        """Upload the file at ``path`` and attach it to ``target``.

        Args:
            path: Local file to upload.
            target: Object group the file belongs to.

        Returns:
            Summary of the stored object.

        Raises:
            FileReadError: If the file cannot be opened, stat-ed or read.
            LinkRequestError: If the link provider does not issue a link.
            PartUploadError: If a PUT fails or lacks its entity tag.
            FinalizeError: If the multipart upload cannot be committed.
            UploadCancelledError: If ``cancel_event`` was set.
        """
        path = Path(path)
        self._state = UploadState.IDLE
        self._session = None

        try:
            result = self._run(path, target)
        except Exception as e:
            self._fail(path, e)
            raise

        self._transition(UploadState.DONE)
        logger.info(
            "Upload of %s done: %d bytes, strategy=%s",
            result.file_name,
            result.size,
            result.strategy.value,
        )
        return result

    def _run(self, path: Path, target: UploadTarget) -> UploadResult:
        try:
            fileobj = path.open("rb")
        except OSError as e:
            raise FileReadError(f"Cannot open {path}: {e}") from e

        with fileobj:
            try:
                stat_result = os.fstat(fileobj.fileno())
            except OSError as e:
                raise FileReadError(f"Cannot stat {path}: {e}") from e

            descriptor = FileDescriptor.from_stat(path, stat_result)
            strategy = select_strategy(descriptor.size, self._multipart_threshold)
            self._session = UploadSession(
                target=target, descriptor=descriptor, strategy=strategy
            )
            self._transition(UploadState.STRATEGY_CHOSEN)
            logger.info(
                "Uploading %s (%d bytes) as %s upload",
                descriptor.name,
                descriptor.size,
                strategy.value,
            )

            if strategy is UploadStrategy.MULTIPART:
                return self._upload_multipart(fileobj, self._session)
            return self._upload_single(fileobj, self._session)

    def _upload_single(
        self, fileobj: BinaryIO, session: UploadSession
    ) -> UploadResult:
        self._transition(UploadState.SINGLE_IN_FLIGHT)
        descriptor = session.descriptor

        self._check_cancelled()
        link = self._link_provider.request_single_upload_link(
            descriptor, session.target
        )
        session.object_id = link.object_id

        data = self._read_whole(fileobj, descriptor)

        self._check_cancelled()
        etag = self._part_uploader.upload_whole(link, data)
        session.bytes_uploaded = len(data)
        logger.debug("Stored %s in one PUT, etag=%s", descriptor.name, etag)

        self._report_progress(session, part_number=None)
        return UploadResult(
            file_name=descriptor.name,
            size=descriptor.size,
            strategy=UploadStrategy.SINGLE,
            object_id=session.object_id,
        )

    def _read_whole(self, fileobj: BinaryIO, descriptor: FileDescriptor) -> bytes:
        """Read the file into memory, never buffering past its announced size.

        Raises:
            FileReadError: If the file no longer has the size it was announced
                with.
        """
        buffer = bytearray()
        for chunk in ChunkReader(fileobj, self._chunk_size):
            buffer += chunk.data
            if len(buffer) > descriptor.size:
                raise FileReadError(
                    f"{descriptor.name} grew during upload: read more than "
                    f"{descriptor.size} bytes"
                )
        if len(buffer) != descriptor.size:
            raise FileReadError(
                f"{descriptor.name} changed size during upload: read "
                f"{len(buffer)} of {descriptor.size} bytes"
            )
        return bytes(buffer)

    def _upload_multipart(
        self, fileobj: BinaryIO, session: UploadSession
    ) -> UploadResult:
        self._transition(UploadState.MULTIPART_IN_FLIGHT)
        descriptor = session.descriptor

        self._check_cancelled()
        object_id = self._link_provider.init_multipart_upload(
            descriptor, session.target
        )
        session.object_id = object_id
        logger.info("Opened multipart upload %s for %s", object_id, descriptor.name)

        self._report_progress(session, part_number=None)

        for chunk in ChunkReader(fileobj, self._chunk_size):
            self._check_cancelled()
            link = self._link_provider.request_part_upload_link(
                object_id, chunk.part_number, chunk.size
            )
            link = _bind_part_number(link, chunk.part_number)

            part = self._part_uploader.upload_part(link, chunk.data)
            session.record_part(part, chunk.size)
            logger.debug(
                "Stored part %d of %s: %d/%d bytes",
                part.part_number,
                descriptor.name,
                session.bytes_uploaded,
                descriptor.size,
            )
            self._report_progress(session, part_number=part.part_number)

        if session.bytes_uploaded != descriptor.size:
            raise FileReadError(
                f"{descriptor.name} changed size during upload: read "
                f"{session.bytes_uploaded} of {descriptor.size} bytes"
            )

        self._check_cancelled()
        self._transition(UploadState.FINALIZING)
        parts = session.ordered_parts()
        logger.info(
            "Finalizing multipart upload %s with %d parts", object_id, len(parts)
        )
        self._link_provider.finalize_multipart_upload(object_id, parts)

        return UploadResult(
            file_name=descriptor.name,
            size=descriptor.size,
            strategy=UploadStrategy.MULTIPART,
            object_id=object_id,
            parts=tuple(parts),
        )

    def _report_progress(
        self, session: UploadSession, part_number: int | None
    ) -> None:
        notify(
            self._progress_callbacks,
            ProgressEvent(
                file_name=session.descriptor.name,
                bytes_uploaded=session.bytes_uploaded,
                total_bytes=session.descriptor.size,
                part_number=part_number,
            ),
        )

    def _check_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise UploadCancelledError("Upload cancelled by caller")

    def _transition(self, state: UploadState) -> None:
        logger.debug("Upload state %s -> %s", self._state.value, state.value)
        self._state = state

    def _fail(self, path: Path, error: Exception) -> None:
        self._transition(UploadState.FAILED)
        logger.error("Upload of %s failed: %s", path, error)

        session = self._session
        if (
            not self._abort_on_failure
            or session is None
            or session.strategy is not UploadStrategy.MULTIPART
            or session.object_id is None
        ):
            return

        try:
            self._link_provider.abort_multipart_upload(session.object_id)
            logger.info("Aborted multipart upload %s", session.object_id)
        except Exception:
            logger.warning(
                "Could not abort multipart upload %s",
                session.object_id,
                exc_info=True,
            )


def _bind_part_number(link: PresignedLink, part_number: int) -> PresignedLink:
    """Return ``link`` tagged with ``part_number``.

    Raises:
        LinkRequestError: If the link was issued for another part.
    """
    if link.part_number is None:
        return replace(link, part_number=part_number)
    if link.part_number != part_number:
        raise LinkRequestError(
            f"Requested a link for part {part_number}, got one for part "
            f"{link.part_number}"
        )
    return link
