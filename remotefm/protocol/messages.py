"""
File Manager Messages

Design Decision: Message Representation
=======================================

Options Considered:
1. One generic message with a type tag and a headers dict
   - Flexible, but every handler re-validates its fields

2. One dataclass per message
   - Fields are explicit and typed
   - Dispatch is a plain isinstance() check

Decision: One dataclass per message
- The transport layer owns encoding; these classes only carry data
- Inbound and outbound chunks share TransferChunk

Inbound (peer -> us):
    TransferChunk, TransferCancel, TransferComplete, DrivesResponse,
    DirectoryResponse, StatusMessage, ProcessActionResponse

Outbound (us -> peer):
    TransferRequest, TransferChunk, TransferCancel, DirectoryRequest,
    DrivesRequest, PathRename, PathDelete, ProcessStart
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from ..file.splitter import FileChunk


class FileType(Enum):
    """Kind of a remote path."""
    BACK = "BACK"
    DIRECTORY = "DIRECTORY"
    FILE = "FILE"


class ProcessAction(Enum):
    """Actions reported by the remote process manager."""
    START = "START"
    END = "END"


@dataclass(frozen=True)
class Drive:
    """A remote storage volume, valid at the time it was received."""
    display_name: str
    root_directory: str


@dataclass(frozen=True)
class FileSystemEntry:
    """One entry of a remote directory listing."""
    name: str
    entry_type: FileType
    size: int = 0
    last_modified: Optional[datetime] = None


# === Transfers ===

@dataclass
class TransferRequest:
    """Ask the peer to start streaming a file to us."""
    id: int
    remote_path: str


@dataclass
class TransferChunk:
    """One chunk of a transfer, in either direction."""
    id: int
    chunk: FileChunk
    file_path: str = ''
    file_size: int = 0


@dataclass
class TransferCancel:
    """Cancel a transfer. The peer supplies a reason when it cancels."""
    id: int
    reason: str = ''


@dataclass
class TransferComplete:
    """The peer finished a transfer; file_path is its final remote name."""
    id: int
    file_path: str


# === Remote filesystem ===

@dataclass
class DrivesRequest:
    pass


@dataclass
class DrivesResponse:
    drives: Optional[List[Drive]] = None


@dataclass
class DirectoryRequest:
    remote_path: str


@dataclass
class DirectoryResponse:
    remote_path: str
    items: Optional[List[FileSystemEntry]] = None


@dataclass
class PathRename:
    path: str
    new_path: str
    path_type: FileType


@dataclass
class PathDelete:
    path: str
    path_type: FileType


@dataclass
class StatusMessage:
    """Free-form status text from the remote file manager."""
    message: str


# === Processes ===

@dataclass
class ProcessStart:
    file_path: str


@dataclass
class ProcessActionResponse:
    action: ProcessAction
    result: bool = False


# Message families handled by the file manager
INBOUND_MESSAGES = (
    TransferChunk,
    TransferCancel,
    TransferComplete,
    DrivesResponse,
    DirectoryResponse,
    StatusMessage,
)
