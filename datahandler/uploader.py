"""Upload a batch of files into a dataset version."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from pathlib import Path

from datahandler.backend.client import BackendClient
from datahandler.backend.dataset_service import DatasetService
from datahandler.backend.load_service import LoadServiceLinkProvider
from datahandler.config import DatahandlerConfig
from datahandler.upload.models import UploadResult, UploadTarget
from datahandler.upload.orchestrator import UploadOrchestrator
from datahandler.upload.part_uploader import PartUploader
from datahandler.upload.progress import ProgressCallback

logger = logging.getLogger(__name__)


def upload_files(
    config: DatahandlerConfig,
    paths: Sequence[str | Path],
    dataset_id: str,
    dataset_version_id: str,
    progress_callbacks: Iterable[ProgressCallback] = (),
    abort_on_failure: bool = False,
    cancel_event: threading.Event | None = None,
) -> list[UploadResult]:
    """Upload files and publish them as the current dataset version.

    Creates one object group for the batch, uploads the files one after the
    other, then marks the dataset version available and makes it the
    current version of the dataset. Files larger than
    ``config.multipart_threshold`` are sent as multipart uploads.

    Args:
        config: Resolved client configuration.
        paths: Files to upload, in order.
        dataset_id: Dataset the files belong to.
        dataset_version_id: Version the files are attached to.
        progress_callbacks: Observers receiving upload progress events.
        abort_on_failure: Discard unfinished multipart uploads on failure.
        cancel_event: Event the caller sets to stop the batch.

    Returns:
        One result per uploaded file.

    Raises:
        ConfigError: If the endpoint or token is missing.
        BackendError: If a dataset bookkeeping call fails.
        UploadError: If a file upload fails. Later files are not uploaded and
            the dataset version is not published.
    """
    with BackendClient(config) as client:
        datasets = DatasetService(client)
        group_id = datasets.create_object_group(dataset_id, dataset_version_id)
        target = UploadTarget(object_group_id=group_id)

        part_uploader = PartUploader(timeout=config.http_timeout)
        try:
            orchestrator = UploadOrchestrator(
                LoadServiceLinkProvider(client),
                part_uploader,
                chunk_size=config.chunk_size,
                multipart_threshold=config.multipart_threshold,
                progress_callbacks=progress_callbacks,
                abort_on_failure=abort_on_failure,
                cancel_event=cancel_event,
            )
            results = [orchestrator.upload(path, target) for path in paths]
        finally:
            part_uploader.close()

        datasets.update_dataset_version_status(dataset_version_id)
        datasets.update_current_dataset_version(dataset_id, dataset_version_id)

    logger.info(
        "Uploaded %d files to dataset %s version %s",
        len(results),
        dataset_id,
        dataset_version_id,
    )
    return results
