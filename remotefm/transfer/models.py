"""
Transfer State

A Transfer tracks one upload or download from creation until it reaches a
terminal status (completed, canceled, errored) and leaves the registry.
"""

import random
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_EVEN
from enum import Enum
from pathlib import Path
from typing import Optional

from ..file.splitter import FileSplit

# Transfer ids are positive 31-bit integers
MAX_TRANSFER_ID = 2 ** 31 - 1

# Status strings shown to the operator
STATUS_PENDING = "Pending..."
STATUS_COMPLETED = "Completed"
STATUS_CANCELED = "Canceled"
STATUS_ERROR_READING = "Error reading file"
STATUS_ERROR_WRITING = "Error writing file"


class TransferType(Enum):
    """Direction of a transfer."""
    UPLOAD = "UPLOAD"
    DOWNLOAD = "DOWNLOAD"


def random_transfer_id() -> int:
    """Draw a random transfer id (not checked for uniqueness)."""
    return random.randint(1, MAX_TRANSFER_ID)


def compute_progress(transferred: int, size: int) -> Decimal:
    """
    Progress in percent, rounded half-to-even to two decimals.

    A transfer of size 0 is always at 100.
    """
    if size == 0:
        return Decimal(100)
    ratio = Decimal(repr(transferred / size * 100.0))
    return ratio.quantize(Decimal('0.01'), rounding=ROUND_HALF_EVEN)


def format_progress(progress: Decimal) -> str:
    """Render progress without trailing zeros: 100.00 -> '100', 12.50 -> '12.5'."""
    return format(progress.normalize(), 'f')


@dataclass
class Transfer:
    """One active upload or download."""
    id: int
    type: TransferType
    local_path: Path
    remote_path: str = ''
    status: str = STATUS_PENDING
    size: int = 0
    transferred_size: int = 0
    file_split: Optional[FileSplit] = field(default=None, repr=False, compare=False)

    @property
    def progress(self) -> Decimal:
        return compute_progress(self.transferred_size, self.size)

    @property
    def is_download(self) -> bool:
        return self.type == TransferType.DOWNLOAD

    def advance(self, byte_count: int):
        """Account for transferred bytes; the counter never goes down."""
        if byte_count < 0:
            raise ValueError(f"Negative byte count: {byte_count}")
        self.transferred_size += byte_count

    def progress_status(self, verb: str) -> str:
        """Status line such as 'Uploading...(33.33%)'."""
        return f"{verb}...({format_progress(self.progress)}%)"

    def clone(self) -> 'Transfer':
        """Snapshot for event handlers, detached from the file handle."""
        return replace(self, file_split=None)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'type': self.type.value,
            'local_path': str(self.local_path),
            'remote_path': self.remote_path,
            'status': self.status,
            'size': self.size,
            'transferred_size': self.transferred_size,
        }
