from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from remotefm.transfer import (
    Transfer, TransferType, compute_progress, format_progress, STATUS_PENDING,
)


@pytest.mark.parametrize("transferred,size,expected", [
    (100000, 300000, "33.33"),
    (200000, 300000, "66.67"),
    (300000, 300000, "100"),
    (1, 8, "12.5"),
    (0, 10, "0"),
    (0, 0, "100"),
])
def test_progress_formatting(transferred, size, expected):
    assert format_progress(compute_progress(transferred, size)) == expected


def test_zero_size_is_complete():
    assert compute_progress(0, 0) == Decimal(100)


def test_progress_status():
    transfer = Transfer(id=1, type=TransferType.UPLOAD, local_path=Path("a"), size=300000)
    transfer.advance(100000)

    assert transfer.status == STATUS_PENDING
    assert transfer.progress_status("Uploading") == "Uploading...(33.33%)"


def test_transferred_size_never_decreases():
    transfer = Transfer(id=1, type=TransferType.DOWNLOAD, local_path=Path("a"))
    transfer.advance(10)
    transfer.advance(0)

    with pytest.raises(ValueError):
        transfer.advance(-1)
    assert transfer.transferred_size == 10


def test_clone_is_detached_snapshot():
    split = MagicMock()
    transfer = Transfer(id=7, type=TransferType.DOWNLOAD, local_path=Path("a.txt"),
                        remote_path="C:\\a.txt", file_split=split)

    snapshot = transfer.clone()
    transfer.status = "Completed"
    transfer.advance(5)

    assert snapshot.file_split is None
    assert snapshot.status == STATUS_PENDING
    assert snapshot.transferred_size == 0
    assert snapshot.id == 7
    assert transfer.file_split is split


def test_to_dict():
    transfer = Transfer(id=3, type=TransferType.UPLOAD, local_path=Path("x.bin"),
                        remote_path="/tmp/x.bin", size=10)

    assert transfer.to_dict() == {
        'id': 3,
        'type': 'UPLOAD',
        'local_path': 'x.bin',
        'remote_path': '/tmp/x.bin',
        'status': STATUS_PENDING,
        'size': 10,
        'transferred_size': 0,
    }
