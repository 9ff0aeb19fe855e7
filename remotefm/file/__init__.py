"""
File Module - Chunked Reading and Writing

Turns local files into chunk sequences for uploads and reassembles
downloaded chunks into local files.
"""

from .splitter import FileSplit, FileChunk, CHUNK_SIZE, delete_file

__all__ = [
    'FileSplit',
    'FileChunk',
    'CHUNK_SIZE',
    'delete_file',
]
