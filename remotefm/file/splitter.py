"""
File Splitter

Design Decision: Chunk Size
===========================

Options Considered:
| Size    | Pros                          | Cons                           |
|---------|-------------------------------|--------------------------------|
| 16KB    | Fast cancellation             | Many messages per file         |
| 64KB    | Fits one frame of the link    | -                              |
| 256KB   | Lower overhead                | Slower cancel, bursty progress |

Decision: 64KB (65,536 bytes)
- A chunk is the unit of cancellation: an upload notices a cancel
  only between two chunks
- Progress events stay frequent on slow links
- Overridable per handler (see Config.chunk_size)

Splitting Strategy: Sequential
- Uploads read the file front to back, one chunk at a time
- Downloads write chunks at their offset as they arrive
- The chunk sequence is lazy and can only be consumed once
"""

from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiofiles.os

# Chunk size: 64KB
CHUNK_SIZE = 64 * 1024  # 65,536 bytes


@dataclass(frozen=True)
class FileChunk:
    """An ordered slice of file bytes."""
    offset: int
    data: bytes


class FileSplit:
    """
    Reads a file as a sequence of chunks, or writes incoming chunks to a file.

    Instances are created with open_read() or open_write(); both raise
    OSError when the file can't be opened.
    """

    def __init__(self, path: Path, file_obj, file_size: int = 0,
                 chunk_size: int = CHUNK_SIZE, writable: bool = False):
        self.path = Path(path)
        self.file_size = file_size
        self.chunk_size = chunk_size
        self.writable = writable
        self._file = file_obj
        self._consumed = False
        self._closed = False

    @classmethod
    async def open_read(cls, path: Path, chunk_size: int = CHUNK_SIZE) -> 'FileSplit':
        """Open a file for chunked reading."""
        path = Path(path)
        file_obj = await aiofiles.open(path, 'rb')
        try:
            stat = await aiofiles.os.stat(path)
        except OSError:
            await file_obj.close()
            raise
        return cls(path, file_obj, file_size=stat.st_size, chunk_size=chunk_size)

    @classmethod
    async def open_write(cls, path: Path, exclusive: bool = False) -> 'FileSplit':
        """
        Open a file for chunk writing.

        Args:
            path: Local file to write
            exclusive: Fail with FileExistsError if the file already exists
        """
        path = Path(path)
        file_obj = await aiofiles.open(path, 'xb' if exclusive else 'wb')
        return cls(path, file_obj, writable=True)

    @property
    def closed(self) -> bool:
        return self._closed

    def get_chunk_count(self) -> int:
        """Number of chunks the file splits into."""
        if self.file_size == 0:
            return 1
        return (self.file_size + self.chunk_size - 1) // self.chunk_size

    async def chunks(self) -> AsyncIterator[FileChunk]:
        """
        Yield the file as consecutive chunks.

        The sequence is lazy and can be iterated only once. An empty file
        yields a single empty chunk so the peer still creates the file.
        """
        if self.writable:
            raise RuntimeError("file was opened for writing")
        if self._consumed:
            raise RuntimeError("chunk sequence already consumed")
        self._consumed = True

        offset = 0
        while True:
            data = await self._file.read(self.chunk_size)
            if not data and offset > 0:
                break
            yield FileChunk(offset=offset, data=data)
            if not data:
                break
            offset += len(data)

    async def write_chunk(self, chunk: FileChunk):
        """Write a chunk at its offset."""
        if not self.writable:
            raise RuntimeError("file was opened for reading")
        await self._file.seek(chunk.offset)
        await self._file.write(chunk.data)
        await self._file.flush()

    async def close(self):
        """Close the underlying file (safe to call twice)."""
        if self._closed:
            return
        self._closed = True
        await self._file.close()


async def delete_file(path: Path) -> bool:
    """
    Remove a local file, ignoring a file that is already gone.

    Returns:
        True if a file was removed
    """
    try:
        await aiofiles.os.remove(path)
        return True
    except FileNotFoundError:
        return False
