"""
Protocol Module - Messages and Dispatch

Message types exchanged with the remote peer and the processor/router
seam that inbound messages flow through.
"""

from .messages import (
    FileType, ProcessAction, Drive, FileSystemEntry,
    TransferRequest, TransferChunk, TransferCancel, TransferComplete,
    DrivesRequest, DrivesResponse, DirectoryRequest, DirectoryResponse,
    PathRename, PathDelete, StatusMessage,
    ProcessStart, ProcessActionResponse,
)
from .processor import MessageChannel, MessageProcessor, MessageRouter

__all__ = [
    'FileType',
    'ProcessAction',
    'Drive',
    'FileSystemEntry',
    'TransferRequest',
    'TransferChunk',
    'TransferCancel',
    'TransferComplete',
    'DrivesRequest',
    'DrivesResponse',
    'DirectoryRequest',
    'DirectoryResponse',
    'PathRename',
    'PathDelete',
    'StatusMessage',
    'ProcessStart',
    'ProcessActionResponse',
    'MessageChannel',
    'MessageProcessor',
    'MessageRouter',
]
