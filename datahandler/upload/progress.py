"""Progress observers for file uploads."""

from __future__ import annotations

import logging
from collections.abc import Callable

from tqdm import tqdm

from datahandler.upload.models import ProgressEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


def notify(callbacks: tuple[ProgressCallback, ...], event: ProgressEvent) -> None:
    """Deliver ``event`` to every callback.

    A failing callback is logged and skipped so progress display can never
    abort an upload.
    """
    for callback in callbacks:
        try:
            callback(event)
        except Exception:
            logger.warning(
                "Progress callback %r failed for %s",
                callback,
                event.file_name,
                exc_info=True,
            )


class TqdmProgress:
    """Render upload progress of one or more files as tqdm byte bars."""

    def __init__(self, disable: bool = False) -> None:
        """Initialize the progress display.

        Args:
            disable: Suppress all output, e.g. when stderr is not a terminal.
        """
        self._disable = disable
        self._bars: dict[str, tqdm] = {}

    def __call__(self, event: ProgressEvent) -> None:
        bar = self._bars.get(event.file_name)
        if bar is None:
            bar = tqdm(
                total=event.total_bytes,
                desc=f"Uploading {event.file_name}",
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                disable=self._disable,
            )
            self._bars[event.file_name] = bar
        bar.update(event.bytes_uploaded - bar.n)
        if event.bytes_uploaded >= event.total_bytes:
            bar.close()
            del self._bars[event.file_name]

    def close(self) -> None:
        for bar in self._bars.values():
            bar.close()
        self._bars.clear()


class LoggingProgress:
    """Log upload progress at INFO level."""

    def __call__(self, event: ProgressEvent) -> None:
        logger.info(
            "Percentage of bytes uploaded for %s: %.2f%%",
            event.file_name,
            event.percentage,
        )

    def close(self) -> None:
        """No resources to release."""
