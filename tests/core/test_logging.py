"""Tests for structured logging."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from gitrelay.config.models import LoggingConfig, LogOutputConfig
from gitrelay.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)


class TestRunIdCorrelation:
    """Run ID context variable tests."""

    def setup_method(self) -> None:
        clear_run_id()

    def test_given_run_id_when_set_then_can_retrieve(self) -> None:
        assert set_run_id("run-123") == "run-123"
        assert get_run_id() == "run-123"

    def test_given_no_id_when_set_then_generates_uuid(self) -> None:
        rid = set_run_id()
        assert len(rid) == 12  # uuid4().hex[:12]

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_run_id("to-clear")
        clear_run_id()
        assert get_run_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_run_id()

    def teardown_method(self) -> None:
        logging.getLogger().handlers.clear()
        clear_run_id()

    def _json_lines(self, path: Path) -> list[dict[str, object]]:
        return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]

    def test_given_file_output_when_log_then_valid_json(self, tmp_path: Path) -> None:
        """JSON format produces valid JSON with required fields."""
        # Given
        log_file = tmp_path / "gitrelay.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )

        # When
        get_logger("test").info("process_spawned", pid=42)

        # Then
        data = self._json_lines(log_file)[-1]
        assert data["event"] == "process_spawned"
        assert data["pid"] == 42
        assert data["level"] == "info"
        assert data["logger"] == "test"
        assert "timestamp" in data

    def test_given_run_id_when_log_then_included(self, tmp_path: Path) -> None:
        log_file = tmp_path / "gitrelay.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        set_run_id("abc123")

        get_logger().info("process_exited")

        assert self._json_lines(log_file)[-1]["run_id"] == "abc123"

    def test_given_bound_run_id_when_log_then_bound_value_wins(self, tmp_path: Path) -> None:
        log_file = tmp_path / "gitrelay.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        set_run_id("context-id")

        get_logger().bind(run_id="bound-id").info("process_exited")

        assert self._json_lines(log_file)[-1]["run_id"] == "bound-id"

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        """LoggingConfig object takes precedence over simple params."""
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        configure_logging(config=config, json_format=False, level="ERROR")
        get_logger().debug("debug msg")

        assert "debug msg" in log_file.read_text()

    def test_given_multi_output_config_when_configure_then_levels_apply(
        self, tmp_path: Path
    ) -> None:
        """Multiple outputs receive logs according to their levels."""
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_given_default_level_when_info_then_filtered(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(format="json", destination=str(log_file))])
        )

        get_logger().info("chatty")
        get_logger().warning("cleanup_failed")

        content = log_file.read_text()
        assert "chatty" not in content
        assert "cleanup_failed" in content

    def test_given_console_output_when_configured_then_suppressing_filter_attached(
        self,
    ) -> None:
        from gitrelay.core.progress import ConsoleSuppressingFilter

        configure_logging(level="INFO")

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert any(isinstance(f, ConsoleSuppressingFilter) for f in handlers[0].filters)

    def test_given_file_output_when_configured_then_no_suppressing_filter(
        self, tmp_path: Path
    ) -> None:
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(destination=str(tmp_path / "x.log"))])
        )
        assert logging.getLogger().handlers[0].filters == []

    def test_given_nested_file_destination_when_configured_then_creates_parent(
        self, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "nested" / "dir" / "gitrelay.log"
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(destination=str(log_file))])
        )
        assert log_file.parent.is_dir()


@pytest.fixture(autouse=True)
def _restore_root_handlers() -> Iterator[None]:
    root = logging.getLogger()
    saved = list(root.handlers)
    yield
    root.handlers[:] = saved
