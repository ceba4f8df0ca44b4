"""
Tests for metrocli.logging module.
"""

from __future__ import annotations

import pytest

from metrocli.logging import (
    DefaultLogger,
    SilentLogger,
    get_global_logger,
    get_logger,
    set_global_logger,
)

pytestmark = pytest.mark.unit


class TestDefaultLogger:
    """Tests for DefaultLogger output gating."""

    def test_step_always_printed(self, capsys):
        DefaultLogger().step(3, 9, "Resolving API key...")

        assert capsys.readouterr().out == "[3/9] Resolving API key...\n"

    def test_verbose_gated(self, capsys):
        DefaultLogger().verbose("STAGE", "hidden")
        DefaultLogger(verbose=True).verbose("STAGE", "shown")

        assert capsys.readouterr().out == "[STAGE] shown\n"

    def test_debug_implies_verbose(self, capsys):
        logger = get_logger(debug=True)
        logger.verbose("PACK", "v")
        logger.debug("PACK", "d")

        assert capsys.readouterr().out == "[PACK] v\n[debug] [PACK] d\n"

    def test_output_frames_captured_text(self, capsys):
        DefaultLogger().output("Error while installing app dependencies", "npm ERR! boom\n")

        out = capsys.readouterr().out.splitlines()
        assert out[0] == "Error while installing app dependencies"
        assert out[2] == "npm ERR! boom"
        assert out[1] == out[3]


class TestGlobalLogger:
    """Tests for the global logger."""

    def test_set_and_get(self):
        previous = get_global_logger()
        logger = DefaultLogger()
        try:
            set_global_logger(logger)
            assert get_global_logger() is logger
        finally:
            set_global_logger(previous)

    def test_silent_logger_prints_nothing(self, capsys):
        logger = SilentLogger()
        logger.step(1, 1, "x")
        logger.warning("x")
        logger.output("x", "y")

        assert capsys.readouterr().out == ""
