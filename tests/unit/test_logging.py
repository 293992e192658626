"""Unit tests for vwad_directory.logging - structured logging setup."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest
import structlog

from vwad_directory.logging import (
    _VALID_LEVELS,
    catalog_logging_context,
    configure_logging,
)

if TYPE_CHECKING:
    from pathlib import Path


def _file_handlers() -> list[logging.Handler]:
    return [
        h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
    ]


# ---------------------------------------------------------------------------
# configure_logging - level validation
# ---------------------------------------------------------------------------


class TestConfigureLoggingLevel:
    """configure_logging validates and applies log levels."""

    def test_valid_level_info(self) -> None:
        configure_logging(level="INFO")
        assert logging.getLogger().level == logging.INFO

    def test_case_insensitive(self) -> None:
        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="TRACE")

    def test_all_valid_levels_accepted(self) -> None:
        for lvl in _VALID_LEVELS:
            configure_logging(level=lvl)
            assert logging.getLogger().level == getattr(logging, lvl)


# ---------------------------------------------------------------------------
# configure_logging - format and file output
# ---------------------------------------------------------------------------


class TestConfigureLoggingOutput:
    """configure_logging selects renderers and handlers."""

    def test_invalid_format_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid log format"):
            configure_logging(fmt="xml")

    def test_stderr_handler_only_by_default(self) -> None:
        configure_logging()
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert _file_handlers() == []

    def test_json_file_output(self, tmp_path: Path) -> None:
        log_file = tmp_path / "vwad.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file)

        structlog.get_logger("test_file").info("catalog_loaded", entries=3)
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert record["event"] == "catalog_loaded"
        assert record["entries"] == 3
        assert record["level"] == "info"

    def test_reconfigure_clears_handlers(self, tmp_path: Path) -> None:
        configure_logging(log_file=tmp_path / "first.log")
        configure_logging(log_file=tmp_path / "second.log")
        assert len(_file_handlers()) == 1


# ---------------------------------------------------------------------------
# catalog_logging_context
# ---------------------------------------------------------------------------


class TestCatalogLoggingContext:
    """catalog_logging_context binds and unbinds the catalog source."""

    def test_binds_source(self) -> None:
        configure_logging(level="DEBUG")
        with catalog_logging_context("data/collection.json") as log:
            ctx = structlog.contextvars.get_contextvars()
            assert ctx.get("catalog_source") == "data/collection.json"
            assert hasattr(log, "info")

    def test_unbinds_on_exit(self) -> None:
        configure_logging(level="DEBUG")
        with catalog_logging_context("data/collection.json"):
            pass
        assert "catalog_source" not in structlog.contextvars.get_contextvars()

    def test_exception_propagated_and_cleaned(self) -> None:
        configure_logging(level="DEBUG")
        with pytest.raises(RuntimeError, match="boom"), catalog_logging_context("x"):
            raise RuntimeError("boom")
        assert "catalog_source" not in structlog.contextvars.get_contextvars()

    def test_source_in_log_records(self, tmp_path: Path) -> None:
        log_file = tmp_path / "ctx.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file)
        with catalog_logging_context("https://vwad.test/c.json") as log:
            log.info("catalog_loaded", entries=1)
        for handler in logging.getLogger().handlers:
            handler.flush()

        events = [
            json.loads(line)
            for line in log_file.read_text(encoding="utf-8").splitlines()
        ]
        assert [e["event"] for e in events] == ["catalog_load_start", "catalog_loaded"]
        assert all(e["catalog_source"] == "https://vwad.test/c.json" for e in events)
