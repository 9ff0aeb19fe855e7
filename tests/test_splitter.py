import asyncio

import pytest

from remotefm.file import FileSplit, FileChunk, delete_file


async def read_all(path, chunk_size):
    split = await FileSplit.open_read(path, chunk_size=chunk_size)
    try:
        return split, [chunk async for chunk in split.chunks()]
    finally:
        await split.close()


def test_chunks_cover_file_in_order(tmp_path, payload):
    path = tmp_path / "data.bin"
    path.write_bytes(payload)

    split, chunks = asyncio.run(read_all(path, 100000))

    assert split.file_size == 300000
    assert split.get_chunk_count() == 3
    assert [c.offset for c in chunks] == [0, 100000, 200000]
    assert b"".join(c.data for c in chunks) == payload


def test_last_chunk_is_short(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"x" * 250)

    split, chunks = asyncio.run(read_all(path, 100))

    assert [len(c.data) for c in chunks] == [100, 100, 50]
    assert split.get_chunk_count() == 3


def test_empty_file_yields_one_empty_chunk(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")

    split, chunks = asyncio.run(read_all(path, 100))

    assert chunks == [FileChunk(offset=0, data=b"")]
    assert split.get_chunk_count() == 1


def test_chunk_sequence_is_not_restartable(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"abc")

    async def run():
        split = await FileSplit.open_read(path, chunk_size=2)
        try:
            first = [c async for c in split.chunks()]
            with pytest.raises(RuntimeError):
                async for _ in split.chunks():
                    pass
            return first
        finally:
            await split.close()

    assert len(asyncio.run(run())) == 2


def test_open_read_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        asyncio.run(FileSplit.open_read(tmp_path / "missing.bin"))


def test_write_chunks_at_offsets(tmp_path):
    path = tmp_path / "out.bin"

    async def run():
        split = await FileSplit.open_write(path)
        await split.write_chunk(FileChunk(offset=0, data=b"hello "))
        await split.write_chunk(FileChunk(offset=6, data=b"world"))
        await split.close()
        await split.close()
        return split

    split = asyncio.run(run())

    assert split.closed
    assert path.read_bytes() == b"hello world"


def test_exclusive_open_refuses_existing_file(tmp_path):
    path = tmp_path / "taken.txt"
    path.write_text("keep me")

    with pytest.raises(FileExistsError):
        asyncio.run(FileSplit.open_write(path, exclusive=True))
    assert path.read_text() == "keep me"


def test_reading_split_cannot_write(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"abc")

    async def run():
        split = await FileSplit.open_read(path)
        try:
            with pytest.raises(RuntimeError):
                await split.write_chunk(FileChunk(offset=0, data=b"z"))
        finally:
            await split.close()

    asyncio.run(run())
    assert path.read_bytes() == b"abc"


def test_delete_file(tmp_path):
    path = tmp_path / "gone.txt"
    path.write_text("x")

    assert asyncio.run(delete_file(path)) is True
    assert not path.exists()
    assert asyncio.run(delete_file(path)) is False
