"""
Upload Worker

Streams local files to the peer, one task per upload.

Design Decision: Admission Control
==================================

Options Considered:
1. Start streaming every requested upload at once
   - Saturates the single link, starves control messages

2. Queue uploads and stream them one at a time
   - Fair, but one large file blocks everything behind it

3. Fixed pool of upload slots (counting semaphore)
   - Bounded number of concurrent streams
   - Further uploads wait for a slot, they never fail for lack of one

Decision: Semaphore with 2 slots
- Slot is held from the first chunk until the last chunk was sent,
  the upload was canceled, or it failed
- `async with` releases it exactly once on every exit path

Cancellation is cooperative: before each chunk is sent the worker checks
that its transfer is still registered. A cancel therefore takes effect
after at most one more chunk transmission.
"""

import asyncio
import logging
from contextlib import aclosing
from pathlib import Path
from typing import Awaitable, Callable

from .models import (
    Transfer, TransferType,
    STATUS_CANCELED, STATUS_ERROR_READING,
)
from .registry import TransferRegistry
from ..file.splitter import FileSplit, CHUNK_SIZE
from ..protocol.messages import TransferChunk
from ..protocol.processor import MessageChannel

logger = logging.getLogger(__name__)

# Maximum number of uploads streaming at the same time
MAX_CONCURRENT_UPLOADS = 2

# Callback types
TransferCallback = Callable[[Transfer], None]
CancelCallback = Callable[[int], Awaitable[bool]]


class UploadWorker:
    """
    Runs uploads under a global limit of concurrent streams.

    Args:
        registry: Active transfers
        channel: Outbound link to the peer
        notify: Called with the transfer after every state change
        cancel: Sends a cancellation for a transfer id to the peer
        max_concurrent: Number of upload slots
        chunk_size: Bytes per chunk
    """

    def __init__(self, registry: TransferRegistry, channel: MessageChannel,
                 notify: TransferCallback, cancel: CancelCallback,
                 max_concurrent: int = MAX_CONCURRENT_UPLOADS,
                 chunk_size: int = CHUNK_SIZE):
        self.registry = registry
        self.channel = channel
        self.max_concurrent = max_concurrent
        self.chunk_size = chunk_size
        self._notify = notify
        self._cancel = cancel
        self._slots = asyncio.Semaphore(max_concurrent)
        self._active = 0

        # Statistics
        self.chunks_sent = 0
        self.bytes_uploaded = 0
        self.peak_active = 0

    @property
    def active_uploads(self) -> int:
        """Uploads currently holding a slot."""
        return self._active

    async def upload(self, local_path: Path, remote_path: str = '') -> Transfer:
        """
        Upload one file.

        Never raises for I/O or link failures; the outcome is reflected
        in the returned transfer's status.
        """
        transfer = Transfer(
            id=await self.registry.generate_unique_id(),
            type=TransferType.UPLOAD,
            local_path=Path(local_path),
            remote_path=remote_path,
        )

        try:
            transfer.file_split = await FileSplit.open_read(
                transfer.local_path, self.chunk_size
            )
        except OSError as e:
            logger.error(f"Cannot read {transfer.local_path}: {e}")
            transfer.status = STATUS_ERROR_READING
            self._notify(transfer)
            return transfer

        transfer.size = transfer.file_split.file_size
        if await self.registry.add(transfer) is None:
            logger.info(f"Upload of {transfer.local_path} dropped, file manager closed")
            await transfer.file_split.close()
            transfer.status = STATUS_CANCELED
            return transfer

        self._notify(transfer)
        logger.info(f"Upload {transfer.id} queued: {transfer.local_path} "
                    f"({transfer.size:,} bytes)")

        async with self._slots:
            self._active += 1
            self.peak_active = max(self.peak_active, self._active)
            try:
                # Canceled while waiting for a slot
                if not await self.registry.contains(transfer.id):
                    transfer.status = STATUS_CANCELED
                    self._notify(transfer)
                    logger.info(f"Upload {transfer.id} canceled before streaming")
                    return transfer
                await self._stream(transfer)
            finally:
                self._active -= 1

        return transfer

    async def _stream(self, transfer: Transfer):
        """Send all chunks of a registered upload, one at a time."""
        try:
            async with aclosing(transfer.file_split.chunks()) as chunks:
                async for chunk in chunks:
                    transfer.advance(len(chunk.data))
                    transfer.status = transfer.progress_status("Uploading")
                    self._notify(transfer)

                    if not await self.registry.contains(transfer.id):
                        transfer.status = STATUS_CANCELED
                        self._notify(transfer)
                        logger.info(f"Upload {transfer.id} canceled")
                        return

                    # Awaited: at most one chunk of this transfer in flight
                    await self.channel.send(TransferChunk(
                        id=transfer.id,
                        chunk=chunk,
                        file_path=transfer.remote_path,
                        file_size=transfer.size,
                    ))
                    self.chunks_sent += 1
                    self.bytes_uploaded += len(chunk.data)

        except Exception as e:
            if not await self.registry.contains(transfer.id):
                # Canceled while the read or send was failing
                logger.debug(f"Upload {transfer.id} stopped after cancel: {e}")
                return

            logger.error(f"Upload {transfer.id} failed: {e}")
            transfer.status = STATUS_ERROR_READING
            self._notify(transfer)
            await self._cancel(transfer.id)
            return

        logger.debug(f"Upload {transfer.id}: all {transfer.size:,} bytes sent")

    def get_stats(self) -> dict:
        """Get uploader statistics."""
        return {
            'chunks_sent': self.chunks_sent,
            'bytes_uploaded': self.bytes_uploaded,
            'active_uploads': self._active,
            'max_concurrent': self.max_concurrent,
        }
