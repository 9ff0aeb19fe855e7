"""
Transfer Module - Transfer State, Registry and Uploads

Tracks active transfers and streams uploads to the remote peer.
"""

from .models import (
    Transfer, TransferType, compute_progress, format_progress,
    STATUS_PENDING, STATUS_COMPLETED, STATUS_CANCELED,
    STATUS_ERROR_READING, STATUS_ERROR_WRITING,
)
from .registry import TransferRegistry
from .uploader import UploadWorker, MAX_CONCURRENT_UPLOADS

__all__ = [
    'Transfer',
    'TransferType',
    'compute_progress',
    'format_progress',
    'STATUS_PENDING',
    'STATUS_COMPLETED',
    'STATUS_CANCELED',
    'STATUS_ERROR_READING',
    'STATUS_ERROR_WRITING',
    'TransferRegistry',
    'UploadWorker',
    'MAX_CONCURRENT_UPLOADS',
]
