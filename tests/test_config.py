import asyncio
import json
import logging
from pathlib import Path

from rich.logging import RichHandler

from remotefm import FileManagerHandler
from remotefm.config import Config, load_config, setup_logging

from tests.mocks.mock_channel import MockChannel


def test_defaults():
    config = Config()

    assert config.download_dir == Path('./downloads')
    assert config.max_concurrent_uploads == 2
    assert config.chunk_size == 64 * 1024
    assert config.base_download_path == Path('./downloads')


def test_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "download_dir": str(tmp_path / "dl"),
        "sub_directory": "client-01",
        "chunk_size": 1024,
        "log_level": "DEBUG",
    }))

    config = Config.from_file(path)

    assert config.base_download_path == tmp_path / "dl" / "client-01"
    assert config.chunk_size == 1024
    assert config.max_concurrent_uploads == 2
    assert config.log_level == "DEBUG"


def test_missing_file_gives_defaults(tmp_path):
    assert Config.from_file(tmp_path / "nope.json") == Config()


def test_env_overrides_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "config.json"
    Config(download_dir=tmp_path / "file-dl", chunk_size=2048).save(path)
    monkeypatch.setenv("RFM_DOWNLOAD_DIR", str(tmp_path / "env-dl"))
    monkeypatch.setenv("RFM_MAX_CONCURRENT_UPLOADS", "3")

    config = load_config(path)

    assert config.download_dir == tmp_path / "env-dl"
    assert config.max_concurrent_uploads == 3
    assert config.chunk_size == 2048


def test_handler_from_config(tmp_path):
    config = Config(download_dir=tmp_path, sub_directory="c1", chunk_size=10,
                    max_concurrent_uploads=1)

    async def run():
        return FileManagerHandler.from_config(MockChannel(), config)

    handler = asyncio.run(run())

    assert handler.base_download_path == tmp_path / "c1"
    assert handler.uploader.chunk_size == 10
    assert handler.uploader.max_concurrent == 1


def test_setup_logging_uses_rich(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    setup_logging("debug")

    assert root.level == logging.DEBUG
    assert any(isinstance(h, RichHandler) for h in root.handlers)
