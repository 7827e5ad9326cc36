"""Sequential fixed-size reads of a source file."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import BinaryIO

from datahandler.exceptions import FileReadError
from datahandler.upload.models import Chunk

logger = logging.getLogger(__name__)


class ChunkReader:
    """Yield numbered chunks of an open binary file.

    The reader is lazy and single-use: it reads one chunk at a time from the
    current position of ``fileobj`` and numbers chunks from 1. Every chunk
    holds exactly ``chunk_size`` bytes except the last one, which keeps its
    true length.
    """

    def __init__(self, fileobj: BinaryIO, chunk_size: int) -> None:
        """Initialize the reader.

        Args:
            fileobj: Open binary file, positioned at the first byte to read.
            chunk_size: Number of bytes per chunk.

        Raises:
            ValueError: If ``chunk_size`` is not positive.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._fileobj = fileobj
        self._chunk_size = chunk_size
        self._started = False
        self.bytes_read = 0
        self.chunks_read = 0

    def __iter__(self) -> Iterator[Chunk]:
        if self._started:
            raise RuntimeError("ChunkReader can only be iterated once")
        self._started = True
        return self._read_chunks()

    def _read_chunks(self) -> Iterator[Chunk]:
        while True:
            data = self._read_full(self._chunk_size)
            if not data:
                return

            self.chunks_read += 1
            chunk = Chunk(
                part_number=self.chunks_read, data=data, offset=self.bytes_read
            )
            self.bytes_read += len(data)
            logger.debug(
                "Read chunk %d: offset=%d size=%d",
                chunk.part_number,
                chunk.offset,
                chunk.size,
            )
            yield chunk

            if len(data) < self._chunk_size:
                return

    def _read_full(self, size: int) -> bytes:
        """Read up to ``size`` bytes, looping over short reads until EOF.

        Raises:
            FileReadError: If the underlying read fails.
        """
        buffer = bytearray()
        while len(buffer) < size:
            try:
                data = self._fileobj.read(size - len(buffer))
            except OSError as e:
                raise FileReadError(
                    f"Failed to read chunk {self.chunks_read + 1}: {e}"
                ) from e
            if not data:
                break
            buffer += data
        return bytes(buffer)
