"""
Transfer Registry

Design Decision: Shared State
=============================

Options Considered:
1. List of transfers plus a lock held by every caller
   - Callers can forget the lock
   - Id generation and insertion are separate steps and can race

2. Dict keyed by id behind a lock owned by the registry
   - The raw collection never leaves this class
   - Id allocation and insertion happen under one acquisition

3. Actor task owning the dict, reached through a queue
   - No lock, but every lookup becomes a round trip

Decision: Dict behind an asyncio.Lock
- Lookups are cheap and frequent (uploads poll before every chunk)
- No file or network I/O while the lock is held: handles are closed
  after the entry has been detached
"""

import asyncio
import logging
from typing import Dict, List, Optional

from .models import Transfer, random_transfer_id

logger = logging.getLogger(__name__)


class TransferRegistry:
    """The authoritative collection of active transfers."""

    def __init__(self):
        self._transfers: Dict[int, Transfer] = {}
        self._lock = asyncio.Lock()
        self._closed = False

    def __len__(self) -> int:
        return len(self._transfers)

    @property
    def closed(self) -> bool:
        return self._closed

    def _new_id(self) -> int:
        # Caller holds the lock
        while True:
            transfer_id = random_transfer_id()
            if transfer_id not in self._transfers:
                return transfer_id

    async def generate_unique_id(self) -> int:
        """
        Draw an id not used by any active transfer.

        The id is not reserved; add() re-checks it on insertion.
        """
        async with self._lock:
            return self._new_id()

    async def add(self, transfer: Transfer) -> Optional[int]:
        """
        Register a transfer.

        If the transfer's id is unset or already taken, a fresh unique id is
        assigned in the same critical section as the insertion.

        Returns:
            The id the transfer is registered under, or None once the
            registry is closed
        """
        async with self._lock:
            if self._closed:
                logger.debug(f"Registry closed, transfer {transfer.id} not added")
                return None
            if not transfer.id or transfer.id in self._transfers:
                old_id = transfer.id
                transfer.id = self._new_id()
                if old_id:
                    logger.debug(f"Transfer id {old_id} taken, using {transfer.id}")
            self._transfers[transfer.id] = transfer
            return transfer.id

    async def find(self, transfer_id: int) -> Optional[Transfer]:
        """Look up an active transfer."""
        async with self._lock:
            return self._transfers.get(transfer_id)

    async def contains(self, transfer_id: int) -> bool:
        async with self._lock:
            return transfer_id in self._transfers

    async def remove(self, transfer_id: int) -> Optional[Transfer]:
        """
        Remove a transfer and close its file handle.

        Returns:
            The removed transfer, or None if it wasn't registered
        """
        async with self._lock:
            transfer = self._transfers.pop(transfer_id, None)

        if transfer is not None and transfer.file_split is not None:
            await transfer.file_split.close()

        return transfer

    async def clear(self) -> List[Transfer]:
        """
        Detach every transfer.

        Handles are left open; the caller owns their cleanup.
        """
        async with self._lock:
            transfers = list(self._transfers.values())
            self._transfers.clear()
        return transfers

    async def close(self) -> List[Transfer]:
        """
        Detach every transfer and refuse new ones.

        Handles are left open; the caller owns their cleanup.
        """
        self._closed = True
        return await self.clear()

    async def snapshot(self) -> List[Transfer]:
        """Copies of all active transfers."""
        async with self._lock:
            return [t.clone() for t in self._transfers.values()]
