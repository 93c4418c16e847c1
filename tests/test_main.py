"""Demo entry point tests, run against the real-time frame loop."""
import asyncio
import logging

import pytest

from prizereel.main import run_demo


class TestRunDemo:
    """Headless plays with the mock backend."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", ["single", "multi"])
    async def test_plays_and_claims(self, make_settings, caplog, mode):
        caplog.set_level(logging.INFO, logger="prizereel.main")
        await asyncio.wait_for(run_demo(make_settings(mode=mode, fps=120), plays=2), timeout=10)

        assert caplog.text.count("You won:") == 2
        assert "Play failed" not in caplog.text

    @pytest.mark.asyncio
    async def test_reduced_motion(self, make_settings, caplog):
        caplog.set_level(logging.INFO, logger="prizereel.main")
        await asyncio.wait_for(run_demo(make_settings(reduced_motion=True), plays=1), timeout=5)
        assert "You won:" in caplog.text
