"""Choose between single-shot and multipart upload."""

from datahandler.const import MIN_MULTIPART_UPLOAD_SIZE
from datahandler.upload.models import UploadStrategy


def select_strategy(
    size: int, threshold: int = MIN_MULTIPART_UPLOAD_SIZE
) -> UploadStrategy:
    """Return the upload strategy for a file of ``size`` bytes.

    Files strictly larger than ``threshold`` are uploaded in parts; a file of
    exactly ``threshold`` bytes still goes up in a single PUT.

    Args:
        size: Size of the file in bytes.
        threshold: Largest size accepted for a single-shot upload.

    Returns:
        The upload strategy to use.
    """
    if size > threshold:
        return UploadStrategy.MULTIPART
    return UploadStrategy.SINGLE
