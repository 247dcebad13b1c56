"""
tiny32 Test Configuration
=========================

Shared pytest fixtures for the tiny32 test suite.

Copyright (c) 2026 tiny32 Contributors
"""

import logging

import pytest
from click.testing import CliRunner


SAMPLE_PROGRAM = """\
; sample program
start:  add r1, r2, r3
        j start
"""


@pytest.fixture
def runner():
    """Click test runner for the command-line tools."""
    return CliRunner()


@pytest.fixture
def write_source(tmp_path):
    """Write assembly text to a file in tmp_path and return its path."""
    def _write(text: str = SAMPLE_PROGRAM, name: str = "prog.s"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep TINY32_* settings from the outer shell out of the tests."""
    for name in ("TINY32_STRICT_LABELS", "TINY32_VERBOSE", "TINY32_NO_DUMP"):
        monkeypatch.delenv(name, raising=False)
    yield
    logging.getLogger("tiny32").handlers.clear()
