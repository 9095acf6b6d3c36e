"""
Unit tests for CLI utility functions.
"""

import logging
from pathlib import Path
from unittest.mock import Mock

import pytest

from objcplan.cli_utils import (
    ConfigurationDetector,
    ErrorFormatter,
    PathValidator,
    setup_logging,
)
from objcplan.config import WorkspaceConfigError


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_info_by_default(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_verbose(self):
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_handler_not_duplicated(self):
        setup_logging()
        setup_logging()
        ours = [h for h in logging.getLogger().handlers if getattr(h, "_objcplan_handler", False)]
        assert len(ours) == 1


class TestConfigurationDetector:
    """Test suite for ConfigurationDetector."""

    def test_explicit_name_wins(self):
        workspace = Mock()
        assert ConfigurationDetector.detect_configuration(workspace, "ios_sim") == "ios_sim"
        workspace.get_default_configuration.assert_not_called()

    def test_detects_default(self):
        workspace = Mock()
        workspace.get_default_configuration.return_value = "ios_device"
        assert ConfigurationDetector.detect_configuration(workspace) == "ios_device"

    def test_no_configurations(self):
        workspace = Mock()
        workspace.get_default_configuration.return_value = None
        workspace.ini_path = Path("workspace.ini")
        with pytest.raises(WorkspaceConfigError, match="No configurations found in workspace.ini"):
            ConfigurationDetector.detect_configuration(workspace)


class TestErrorFormatter:
    """Test suite for ErrorFormatter."""

    def test_print_error(self, capsys):
        ErrorFormatter.print_error("Analysis failed", "details")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Analysis failed" in captured.err
        assert "details" in captured.err

    def test_analysis_error_exits_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_analysis_error(RuntimeError("boom"))
        assert exc_info.value.code == 1
        assert "boom" in capsys.readouterr().err

    def test_keyboard_interrupt_exits_130(self):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()
        assert exc_info.value.code == 130

    def test_unexpected_error_with_traceback(self, capsys):
        try:
            raise KeyError("missing")
        except KeyError as e:
            with pytest.raises(SystemExit):
                ErrorFormatter.handle_unexpected_error(e, verbose=True)
        err = capsys.readouterr().err
        assert "KeyError: 'missing'" in err
        assert "Traceback:" in err


class TestPathValidator:
    """Test suite for PathValidator."""

    def test_missing(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_workspace_file(tmp_path / "missing.ini")
        assert exc_info.value.code == 2

    def test_directory(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_workspace_file(tmp_path)
        assert exc_info.value.code == 2

    def test_file(self, tmp_path):
        path = tmp_path / "workspace.ini"
        path.write_text("[workspace]\n")
        PathValidator.validate_workspace_file(path)
