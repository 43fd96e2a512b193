"""Tests for setup_logging — console vs. file routing of background failures."""

import io
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console

from chronostudy.api.base import ApiError
from chronostudy.config import ChronoConfig
from chronostudy.notifications.poller import ReminderPoller
from chronostudy.utils.logger import LOG_FILE_NAME, BackgroundFilter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def buffer():
    return io.StringIO()


@pytest.fixture
def console(buffer):
    return Console(file=buffer, width=120, color_system=None)


@pytest.fixture
def failing_poller():
    source = MagicMock()
    source.upcoming = AsyncMock(
        side_effect=ApiError("/notifications/upcoming", "Service Unavailable", 503),
    )
    auth = MagicMock()
    auth.is_authenticated = True
    return ReminderPoller(source, auth, MagicMock(), config=ChronoConfig(poll_interval=0.01))


class TestBackgroundFilter:
    def _record(self, name: str) -> logging.LogRecord:
        return logging.LogRecord(name, logging.WARNING, __file__, 1, "msg", None, None)

    def test_drops_background_loggers(self):
        f = BackgroundFilter()
        assert not f.filter(self._record("chronostudy.notifications.poller"))
        assert not f.filter(self._record("chronostudy.session.auth"))
        assert not f.filter(self._record("chronostudy.tasks.ticker"))

    def test_keeps_foreground_loggers(self):
        f = BackgroundFilter()
        assert f.filter(self._record("chronostudy.main"))
        assert f.filter(self._record("chronostudy.tasks.service"))
        assert f.filter(self._record("chronostudy.notificationsx"))


class TestSetupLogging:
    @pytest.mark.asyncio
    async def test_poll_failures_stay_off_the_console(
        self, tmp_path, console, buffer, failing_poller,
    ):
        log_file = setup_logging(log_dir=tmp_path, console=console)

        for _ in range(3):
            assert await failing_poller.check() is None

        assert buffer.getvalue() == ""
        assert log_file == tmp_path / LOG_FILE_NAME
        assert log_file.read_text(encoding="utf-8").count(
            "Error fetching upcoming notifications",
        ) == 3

    @pytest.mark.asyncio
    async def test_verbose_shows_poll_failures(
        self, tmp_path, console, buffer, failing_poller,
    ):
        setup_logging(verbose=True, log_dir=tmp_path, console=console)

        await failing_poller.check()

        assert "Error fetching upcoming notifications" in buffer.getvalue()

    def test_foreground_warnings_reach_console(self, tmp_path, console, buffer):
        setup_logging(log_dir=tmp_path, console=console)

        logging.getLogger("chronostudy.main").warning("Load tasks error: boom")
        logging.getLogger("chronostudy.main").info("quiet")

        assert "Load tasks error: boom" in buffer.getvalue()
        assert "quiet" not in buffer.getvalue()

    def test_reconfigure_replaces_handlers(self, tmp_path, console):
        setup_logging(log_dir=tmp_path, console=console)
        setup_logging(log_dir=tmp_path, console=console)

        assert len(logging.getLogger().handlers) == 2
