"""Tests for environment configuration."""

import logging

import pytest

from debtbook.config import AppConfig, configure_logging, get_log_level
from debtbook.sync.engine import DEFAULT_DEBOUNCE_SECONDS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DEBTBOOK_DB_PATH", "DEBTBOOK_REMOTE_URL", "DEBTBOOK_LOG_LEVEL", "DEBTBOOK_SYNC_DEBOUNCE"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = AppConfig.from_env()

    assert config.db_path is None
    assert config.remote_url is None
    assert config.log_level == "WARNING"
    assert config.sync_debounce == DEFAULT_DEBOUNCE_SECONDS


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("DEBTBOOK_DB_PATH", "/tmp/shop.db")
    monkeypatch.setenv("DEBTBOOK_REMOTE_URL", "postgresql://server/debtbook")
    monkeypatch.setenv("DEBTBOOK_LOG_LEVEL", " info ")
    monkeypatch.setenv("DEBTBOOK_SYNC_DEBOUNCE", "2.5")

    config = AppConfig.from_env()

    assert config.db_path == "/tmp/shop.db"
    assert config.remote_url == "postgresql://server/debtbook"
    assert config.log_level == "INFO"
    assert config.sync_debounce == 2.5


@pytest.mark.parametrize("raw, expected", [("-3", 0.0), ("soon", DEFAULT_DEBOUNCE_SECONDS)])
def test_sync_debounce_is_sanitized(monkeypatch, raw, expected):
    monkeypatch.setenv("DEBTBOOK_SYNC_DEBOUNCE", raw)

    assert AppConfig.from_env().sync_debounce == expected


def test_get_log_level():
    assert get_log_level("debug") == logging.DEBUG
    assert get_log_level("ERROR") == logging.ERROR
    assert get_log_level("chatty") == logging.WARNING


def test_configure_logging_sets_package_level():
    configure_logging("DEBUG")

    assert logging.getLogger("debtbook").level == logging.DEBUG

    configure_logging("WARNING")
    assert logging.getLogger("debtbook").level == logging.WARNING
