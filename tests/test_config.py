# =============================================================================
# test_config.py - Configuration Tests
# =============================================================================

import logging
from dataclasses import fields

import pytest

from tiny32.assembler import Assembler
from tiny32.cli.errors import ClickEchoHandler, configure_logging
from tiny32.cli.t32asm import main as t32asm
from tiny32.config import AssemblerConfig


class TestAssemblerConfig:
    """Defaults, environment variables and overrides."""

    def test_defaults(self):
        config = AssemblerConfig()
        assert not config.strict_labels
        assert not config.verbose
        assert config.dump

    def test_from_env_defaults(self):
        assert AssemblerConfig.from_env() == AssemblerConfig()

    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_truthy_values(self, monkeypatch, value):
        monkeypatch.setenv("TINY32_STRICT_LABELS", value)
        assert AssemblerConfig.from_env().strict_labels

    @pytest.mark.parametrize("value", ["0", "false", "", "nope"])
    def test_falsy_values(self, monkeypatch, value):
        monkeypatch.setenv("TINY32_VERBOSE", value)
        assert not AssemblerConfig.from_env().verbose

    def test_no_dump(self, monkeypatch):
        monkeypatch.setenv("TINY32_NO_DUMP", "1")
        assert not AssemblerConfig.from_env().dump

    def test_overrides_ignore_none(self):
        config = AssemblerConfig(strict_labels=True)
        updated = config.with_overrides(strict_labels=None, verbose=True)
        assert updated.strict_labels
        assert updated.verbose
        assert not config.verbose

    def test_frozen(self):
        with pytest.raises(AttributeError):
            AssemblerConfig().verbose = True

    def test_fields_are_the_cli_settings(self):
        names = {f.name for f in fields(AssemblerConfig)}
        assert names == {"strict_labels", "verbose", "dump"}

    def test_assembler_keyword_overrides(self):
        asm = Assembler(AssemblerConfig(strict_labels=True), strict_labels=False)
        assert not asm.config.strict_labels


class TestLoggingSetup:
    """configure_logging installs exactly one handler on the tiny32 logger."""

    def _handlers(self):
        logger = logging.getLogger("tiny32")
        return [h for h in logger.handlers if isinstance(h, ClickEchoHandler)]

    def test_levels(self):
        configure_logging(verbose=True)
        assert logging.getLogger("tiny32").level == logging.DEBUG
        configure_logging(verbose=False)
        assert logging.getLogger("tiny32").level == logging.WARNING

    def test_handler_replaced(self):
        configure_logging()
        configure_logging(verbose=True)
        assert len(self._handlers()) == 1

    @pytest.mark.parametrize("verbose", [False, True])
    def test_summary_level_independent_of_config(self, caplog, tmp_path, verbose):
        asm = Assembler(verbose=verbose)
        with caplog.at_level(logging.DEBUG, logger="tiny32"):
            asm.assemble_string("add r1, r2, r3")
            asm.write_binary(tmp_path / "prog.bin")
        levels = {r.getMessage().split()[0]: r.levelno for r in caplog.records}
        assert levels["Assembling"] == logging.DEBUG
        assert levels["Assembled"] == logging.INFO
        assert levels["Wrote"] == logging.INFO

    def test_summary_hidden_without_verbose(self, runner, write_source, tmp_path):
        result = runner.invoke(t32asm, ["-q", str(write_source()), str(tmp_path / "prog.bin")])
        assert result.exit_code == 0
        assert "Assembled" not in result.output

    def test_summary_shown_with_verbose(self, runner, write_source, tmp_path):
        result = runner.invoke(t32asm, ["-v", "-q", str(write_source()), str(tmp_path / "prog.bin")])
        assert result.exit_code == 0
        assert "Assembled 2 words (8 bytes), 1 labels" in result.output
