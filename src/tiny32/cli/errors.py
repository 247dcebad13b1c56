"""
CLI Error Reporting and Logging
===============================

Exit codes, error-to-message mapping and logging setup shared by
the tiny32 command-line tools.
"""

import logging
import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Input the toolchain rejects
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


class ClickEchoHandler(logging.Handler):
    """Logging handler that writes through click.echo to the current stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool = False) -> None:
    """
    Configure the tiny32 loggers based on verbosity.

    Debug records go to stderr with -v; otherwise only warnings and errors.
    Calling this again replaces the handler installed by the previous call.
    """
    logger = logging.getLogger("tiny32")
    for handler in list(logger.handlers):
        if isinstance(handler, ClickEchoHandler):
            logger.removeHandler(handler)

    handler = ClickEchoHandler()
    handler.setFormatter(logging.Formatter(
        "%(levelname)s: %(name)s: %(message)s" if verbose else "%(message)s"
    ))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def classify_error(error: Exception, error_type: str | None = None) -> tuple[ExitCode, str]:
    """
    Map an exception to its exit code and the text shown on stderr.

    Assembler errors already carry "error:" and a source location, so only
    a one-line "<type> failed" header is put in front of them.
    """
    from tiny32.errors import AssemblerError, Tiny32Error

    if isinstance(error, AssemblerError):
        header = f"{error_type} failed\n" if error_type else ""
        return ExitCode.BUILD_ERROR, f"{header}{error}"

    if isinstance(error, Tiny32Error):
        prefix = f"{error_type} error" if error_type else "Error"
        return ExitCode.BUILD_ERROR, f"{prefix}: {error}"

    # Bad option values, unreadable input, unwritable output
    if isinstance(error, (click.BadParameter, OSError)):
        return ExitCode.INVALID_ARGS, f"Error: {error}"

    return ExitCode.INTERNAL_ERROR, f"Internal error: {error}"


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report an exception raised inside a command and exit.

    Args:
        error: The exception that was raised
        verbose: Print the traceback of unexpected internal errors
        error_type: Prefix naming the failed step (e.g., "Assembly")

    Raises:
        SystemExit: Always, with the code from classify_error()
    """
    code, message = classify_error(error, error_type)
    click.echo(message, err=True)
    if code is ExitCode.INTERNAL_ERROR and verbose:
        traceback.print_exc()
    sys.exit(code)
