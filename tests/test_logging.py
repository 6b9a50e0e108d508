"""Tests for loguru sink setup."""

from loguru import logger

from market.logging.setup import setup_logging


def test_test_env_has_no_file_sink(tmp_path):
    logs = tmp_path / "logs"
    setup_logging("INFO", "test", logs_dir=logs)
    logger.info("hello")
    assert not logs.exists()
    logger.remove()


def test_file_sink_per_env(tmp_path):
    setup_logging("INFO", "dev", logs_dir=tmp_path)
    logger.info("hello")
    logger.remove()
    assert (tmp_path / "market_dev.log").exists()
