"""
File Manager Handler - Main Controller

Handles the interaction with the files and directories of one remote
client:
- Downloads and uploads, many at once over the same link
- Directory listings, drives, rename and delete
- Starting remote processes (delegated to ProcessManagerHandler)

Transfer lifecycle:
```
Pending -> Downloading/Uploading...(n%) -> Completed | Canceled | error
```
Downloads have no worker of their own: they advance when chunks arrive
through execute(). Uploads run as one task each (see UploadWorker).
Every terminal state removes the transfer from the registry.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Callable, List, Optional, Set

from .config import Config
from .events import (
    ExecutionContext,
    DRIVES_CHANGED, DIRECTORY_CHANGED, TRANSFER_UPDATED,
)
from .file.splitter import FileSplit, CHUNK_SIZE, delete_file
from .protocol.messages import (
    FileType, ProcessAction, Drive, FileSystemEntry,
    TransferRequest, TransferChunk, TransferCancel, TransferComplete,
    DrivesRequest, DrivesResponse, DirectoryRequest, DirectoryResponse,
    PathRename, PathDelete, StatusMessage, INBOUND_MESSAGES,
)
from .protocol.processor import MessageChannel, MessageProcessor, MessageRouter
from .tasks import ProcessManagerHandler
from .transfer.models import (
    Transfer, TransferType,
    STATUS_COMPLETED, STATUS_ERROR_WRITING,
)
from .transfer.registry import TransferRegistry
from .transfer.uploader import UploadWorker, MAX_CONCURRENT_UPLOADS

logger = logging.getLogger(__name__)

# Remote paths may come from Windows or POSIX clients
PATH_SEPARATORS = re.compile(r"[\\/]")

# Callback types
DrivesCallback = Callable[[List[Drive]], None]
DirectoryCallback = Callable[[str, List[FileSystemEntry]], None]
TransferCallback = Callable[[Transfer], None]


class FileManagerHandler(MessageProcessor):
    """
    Remote file manager for one client.

    Args:
        client: Outbound link to the remote client
        download_dir: Base directory for downloads
        sub_directory: Optional directory below download_dir
        router: Inbound message router; this handler and the process
            sub-handler register with it until close()
        process_handler: Process manager to delegate to (created if omitted)
        context: Where event handlers run (default: the running event loop,
            so without a context the handler must be created inside it)
        chunk_size: Upload chunk size
        max_concurrent_uploads: Number of upload slots
    """

    def __init__(self, client: MessageChannel, download_dir: Path,
                 sub_directory: str = '',
                 router: Optional[MessageRouter] = None,
                 process_handler: Optional[ProcessManagerHandler] = None,
                 context: Optional[ExecutionContext] = None,
                 chunk_size: int = CHUNK_SIZE,
                 max_concurrent_uploads: int = MAX_CONCURRENT_UPLOADS):
        super().__init__(context)
        self.client = client
        self.base_download_path = Path(download_dir) / sub_directory
        self.registry = TransferRegistry()
        self.uploader = UploadWorker(
            registry=self.registry,
            channel=client,
            notify=self._on_transfer_updated,
            cancel=self.cancel_transfer,
            max_concurrent=max_concurrent_uploads,
            chunk_size=chunk_size,
        )
        self._upload_tasks: Set[asyncio.Task] = set()
        self._closed = False

        self.router = router
        self.process_handler = process_handler or ProcessManagerHandler(
            client, notifier=self.events
        )
        self.process_handler.on_process_action(self._on_process_action)
        if self.router is not None:
            self.router.register(self)
            self.router.register(self.process_handler)

    @classmethod
    def from_config(cls, client: MessageChannel, config: Config,
                    **kwargs) -> 'FileManagerHandler':
        """Create a handler from a Config."""
        return cls(
            client,
            download_dir=config.download_dir,
            sub_directory=config.sub_directory,
            chunk_size=config.chunk_size,
            max_concurrent_uploads=config.max_concurrent_uploads,
            **kwargs,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    # === Events ===

    def on_drives_changed(self, callback: DrivesCallback):
        """Register a callback for new drive snapshots."""
        self.events.subscribe(DRIVES_CHANGED, callback)

    def on_directory_changed(self, callback: DirectoryCallback):
        """Register a callback for directory listings."""
        self.events.subscribe(DIRECTORY_CHANGED, callback)

    def on_transfer_updated(self, callback: TransferCallback):
        """Register a callback for transfer updates (receives snapshots)."""
        self.events.subscribe(TRANSFER_UPDATED, callback)

    def _on_transfer_updated(self, transfer: Transfer):
        # Snapshot now; the owner keeps mutating the original
        self.events.emit(TRANSFER_UPDATED, transfer.clone())

    def _on_drives_changed(self, drives: List[Drive]):
        self.events.emit(DRIVES_CHANGED, list(drives))

    def _on_directory_changed(self, remote_path: str, items: List[FileSystemEntry]):
        self.events.emit(DIRECTORY_CHANGED, remote_path, list(items))

    def _on_process_action(self, action: ProcessAction, result: bool):
        if action != ProcessAction.START:
            return
        self._report("Process started successfully" if result
                     else "Process failed to start")

    # === Message Processing ===

    def can_execute(self, message: Any) -> bool:
        return isinstance(message, INBOUND_MESSAGES)

    def can_execute_from(self, sender: Any) -> bool:
        return sender is self.client

    async def execute(self, sender: Any, message: Any):
        """Process an inbound message from the client."""
        if isinstance(message, TransferChunk):
            await self._handle_chunk(message)
        elif isinstance(message, TransferCancel):
            await self._handle_cancel(message)
        elif isinstance(message, TransferComplete):
            await self._handle_complete(message)
        elif isinstance(message, DrivesResponse):
            self._handle_drives(message)
        elif isinstance(message, DirectoryResponse):
            self._handle_directory(message)
        elif isinstance(message, StatusMessage):
            self._report(message.message)
        else:
            logger.warning(f"Unexpected message {type(message).__name__}")

    async def _handle_chunk(self, message: TransferChunk):
        transfer = await self.registry.find(message.id)
        if transfer is None:
            logger.debug(f"Chunk for unknown transfer {message.id} ignored")
            return

        transfer.size = message.file_size
        transfer.advance(len(message.chunk.data))

        try:
            await transfer.file_split.write_chunk(message.chunk)
        except Exception as e:
            if not await self.registry.contains(transfer.id):
                # Canceled or closed while the write was pending
                logger.debug(f"Download {transfer.id} ended during write: {e}")
                return
            logger.error(f"Download {transfer.id}: cannot write "
                         f"{transfer.local_path}: {e}")
            transfer.status = STATUS_ERROR_WRITING
            self._on_transfer_updated(transfer)
            # Removal happens when the peer confirms the cancel
            await self.cancel_transfer(transfer.id)
            return

        transfer.status = transfer.progress_status("Downloading")
        self._on_transfer_updated(transfer)

    async def _handle_cancel(self, message: TransferCancel):
        transfer = await self.registry.find(message.id)
        if transfer is None:
            return

        logger.warning(f"Transfer {transfer.id} canceled by peer: {message.reason}")
        transfer.status = message.reason
        self._on_transfer_updated(transfer)
        await self.registry.remove(transfer.id)

        # Don't keep unfinished files
        if transfer.is_download:
            await self._delete_partial(transfer.local_path)

    async def _handle_complete(self, message: TransferComplete):
        transfer = await self.registry.find(message.id)
        if transfer is None:
            return

        # The client may have generated a temporary file name
        transfer.remote_path = message.file_path
        transfer.status = STATUS_COMPLETED
        await self.registry.remove(transfer.id)
        self._on_transfer_updated(transfer)
        logger.info(f"Transfer {transfer.id} completed: {transfer.remote_path}")

    def _handle_drives(self, message: DrivesResponse):
        if not message.drives:
            return
        self._on_drives_changed(message.drives)

    def _handle_directory(self, message: DirectoryResponse):
        items = message.items if message.items is not None else []
        self._on_directory_changed(message.remote_path, items)

    # === Transfers ===

    async def begin_download(self, remote_path: str, local_file_name: str = '',
                             overwrite: bool = False) -> Optional[Transfer]:
        """
        Begin downloading a file from the client.

        Args:
            remote_path: Remote path of the file
            local_file_name: Local file name (default: remote file name)
            overwrite: Replace an existing local file instead of picking
                'name(1).ext', 'name(2).ext', ...

        Returns:
            The registered transfer, or None if nothing was started
        """
        if not remote_path:
            return None
        if self._closed:
            logger.warning(f"File manager closed, download of {remote_path} ignored")
            return None

        transfer_id = await self.registry.generate_unique_id()

        base = self.base_download_path
        file_name = local_file_name or PATH_SEPARATORS.split(remote_path)[-1]
        transfer = Transfer(
            id=transfer_id,
            type=TransferType.DOWNLOAD,
            local_path=base / file_name,
            remote_path=remote_path,
        )

        if not file_name:
            logger.error(f"No file name in remote path {remote_path!r}")
            self._fail_download(transfer)
            return None

        try:
            if not base.exists():
                base.mkdir(parents=True, exist_ok=True)
            transfer.local_path, transfer.file_split = await self._open_download_file(
                transfer.local_path, overwrite
            )
        except OSError as e:
            logger.error(f"Cannot write {transfer.local_path}: {e}")
            self._fail_download(transfer)
            return None

        if await self.registry.add(transfer) is None:
            # Closed while the file was being opened
            await transfer.file_split.close()
            await self._delete_partial(transfer.local_path)
            return None

        self._on_transfer_updated(transfer)
        logger.info(f"Download {transfer.id} requested: {remote_path} -> "
                    f"{transfer.local_path}")

        await self._send(TransferRequest(id=transfer.id, remote_path=remote_path))
        return transfer

    def _fail_download(self, transfer: Transfer):
        # Never registered, so nothing to clean up
        transfer.status = STATUS_ERROR_WRITING
        self._on_transfer_updated(transfer)

    async def _open_download_file(self, local_path: Path, overwrite: bool):
        """Open the download target, renaming it if the file exists."""
        if overwrite:
            return local_path, await FileSplit.open_write(local_path)

        candidate = local_path
        i = 1
        while True:
            try:
                # Exclusive create claims the name
                return candidate, await FileSplit.open_write(candidate, exclusive=True)
            except FileExistsError:
                candidate = local_path.with_name(
                    f"{local_path.stem}({i}){local_path.suffix}"
                )
                i += 1

    def begin_upload(self, local_path: Path,
                     remote_path: str = '') -> Optional[asyncio.Task]:
        """
        Begin uploading a file to the client.

        Args:
            local_path: Local file to upload
            remote_path: Remote destination; empty lets the client pick a
                temporary file name

        Returns:
            The task running the upload, or None after close()
        """
        if self._closed:
            logger.warning(f"File manager closed, upload of {local_path} ignored")
            return None

        task = asyncio.create_task(self.uploader.upload(Path(local_path), remote_path))
        self._upload_tasks.add(task)
        task.add_done_callback(self._upload_tasks.discard)
        return task

    async def cancel_transfer(self, transfer_id: int) -> bool:
        """
        Ask the client to cancel a transfer.

        The transfer is removed once the client confirms the cancel.
        """
        return await self._send(TransferCancel(id=transfer_id))

    async def active_transfers(self) -> List[Transfer]:
        """Snapshots of all active transfers."""
        return await self.registry.snapshot()

    # === Remote Filesystem ===

    async def rename(self, remote_path: str, new_path: str, path_type: FileType) -> bool:
        """Rename a remote file or directory."""
        return await self._send(PathRename(
            path=remote_path, new_path=new_path, path_type=path_type
        ))

    async def delete(self, remote_path: str, path_type: FileType) -> bool:
        """Delete a remote file or directory."""
        return await self._send(PathDelete(path=remote_path, path_type=path_type))

    async def list_directory(self, remote_path: str) -> bool:
        """Request the contents of a remote directory."""
        return await self._send(DirectoryRequest(remote_path=remote_path))

    async def refresh_drives(self) -> bool:
        """Request the remote drives."""
        return await self._send(DrivesRequest())

    async def start_remote_process(self, remote_path: str) -> bool:
        """Start a process from a remote file."""
        return await self.process_handler.start_process(remote_path)

    # === Internals ===

    async def _send(self, message: Any) -> bool:
        try:
            await self.client.send(message)
            return True
        except OSError as e:
            logger.warning(f"Could not send {type(message).__name__}: {e}")
            return False

    async def _delete_partial(self, path: Path):
        try:
            await delete_file(path)
        except OSError as e:
            logger.warning(f"Could not delete partial download {path}: {e}")

    # === Lifecycle ===

    async def close(self):
        """
        Cancel all active transfers and detach from the router.

        Unfinished downloads are deleted. Upload tasks notice the cancel
        before their next chunk, and uploads that have not registered yet
        are dropped. Later begin_download/begin_upload calls do nothing.
        """
        if self._closed:
            return
        self._closed = True

        # Uploads still opening or waiting for a slot cannot register after this
        transfers = await self.registry.close()
        if transfers:
            logger.info(f"Closing file manager, canceling {len(transfers)} transfers")

        for transfer in transfers:
            await self._send(TransferCancel(id=transfer.id))
            if transfer.file_split is not None:
                await transfer.file_split.close()
            if transfer.is_download:
                await self._delete_partial(transfer.local_path)

        if self.router is not None:
            self.router.unregister(self)
            self.router.unregister(self.process_handler)
        self.process_handler.remove_process_action(self._on_process_action)

    async def __aenter__(self) -> 'FileManagerHandler':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def get_stats(self) -> dict:
        """Get file manager statistics."""
        return {
            'active_transfers': len(self.registry),
            'pending_upload_tasks': len(self._upload_tasks),
            'uploader': self.uploader.get_stats(),
            'download_dir': str(self.base_download_path),
        }
