"""CLI utility functions for objcplan.

This module provides common utilities used across CLI commands including:
- Logging setup
- Configuration detection from workspace.ini
- Error handling and formatting
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from objcplan.config import WorkspaceConfig, WorkspaceConfigError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger for CLI use.

    Log records go to stderr so that stdout carries only command output.

    Args:
        verbose: Log at DEBUG instead of INFO
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger()
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_objcplan_handler", False):
            logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._objcplan_handler = True  # type: ignore[attr-defined]
    logger.addHandler(console_handler)


class ConfigurationDetector:
    """Handles configuration detection from workspace.ini."""

    @staticmethod
    def detect_configuration(workspace: WorkspaceConfig, config_name: Optional[str] = None) -> str:
        """Detect or validate the configuration name.

        Args:
            workspace: Parsed workspace
            config_name: Optional explicit configuration name

        Returns:
            Configuration name to use

        Raises:
            WorkspaceConfigError: If the workspace defines no configurations
        """
        if config_name:
            return config_name

        detected = workspace.get_default_configuration()
        if not detected:
            raise WorkspaceConfigError(f"No configurations found in {workspace.ini_path}")
        return detected


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message to stderr.

        Args:
            title: Error title (e.g., "Analysis failed")
            message: Error message details
        """
        print(file=sys.stderr)
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}", file=sys.stderr)
        print(file=sys.stderr)
        print(message, file=sys.stderr)
        print(file=sys.stderr)

    @staticmethod
    def print_success(message: str) -> None:
        """Print formatted success message to stderr."""
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}", file=sys.stderr)

    @staticmethod
    def print_warning(message: str) -> None:
        """Print formatted warning message to stderr."""
        print(f"{ErrorFormatter.YELLOW}! {message}{ErrorFormatter.RESET}", file=sys.stderr)

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        """Handle FileNotFoundError with standard formatting."""
        ErrorFormatter.print_error("Error: File not found", str(error))
        sys.exit(1)

    @staticmethod
    def handle_analysis_error(error: Exception) -> None:
        """Handle declaration, configuration and dependency errors.

        Args:
            error: The exception to handle
        """
        ErrorFormatter.print_error("Analysis failed", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:", file=sys.stderr)
            print(traceback.format_exc(), file=sys.stderr)

        sys.exit(1)


class PathValidator:
    """Validates workspace paths."""

    @staticmethod
    def validate_workspace_file(path: Path) -> None:
        """Validate that the workspace file exists and is a file.

        Raises:
            SystemExit: If path doesn't exist or isn't a file
        """
        if not path.exists():
            print(f"{ErrorFormatter.RED}✗ Error: Path does not exist: {path}{ErrorFormatter.RESET}", file=sys.stderr)
            sys.exit(2)
        if not path.is_file():
            print(f"{ErrorFormatter.RED}✗ Error: Path is not a file: {path}{ErrorFormatter.RESET}", file=sys.stderr)
            sys.exit(2)
