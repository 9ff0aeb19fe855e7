"""
remotefm - Remote File Manager

File transfers and remote filesystem operations over a single message
channel to a remote client.
"""

from .config import Config, load_config, setup_logging
from .events import EventNotifier
from .file_manager import FileManagerHandler
from .protocol import MessageChannel, MessageProcessor, MessageRouter, FileType
from .tasks import ProcessManagerHandler
from .transfer import Transfer, TransferType

__version__ = '0.1.0'

__all__ = [
    'Config',
    'load_config',
    'setup_logging',
    'EventNotifier',
    'FileManagerHandler',
    'MessageChannel',
    'MessageProcessor',
    'MessageRouter',
    'FileType',
    'ProcessManagerHandler',
    'Transfer',
    'TransferType',
]
