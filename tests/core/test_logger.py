"""Tests for settings-driven logger setup."""

from loguru import logger

from runplan.config.settings import Settings
from runplan.core.logger import setup_logger


def test_console_only_by_default():
    sink_ids = setup_logger(Settings(hf_api_key="hf_test", log_level="debug"))
    assert len(sink_ids) == 1
    logger.remove()


def test_file_sink_creates_its_directory(tmp_path):
    log_file = tmp_path / "logs" / "runplan.log"

    sink_ids = setup_logger(Settings(hf_api_key="hf_test", log_file=str(log_file), log_rotation="1 MB"))

    assert len(sink_ids) == 2
    assert log_file.parent.is_dir()
    logger.remove()
