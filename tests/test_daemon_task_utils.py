"""Tests for voiceslot.daemon.task_utils module."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import MagicMock

import pytest

from voiceslot.daemon.task_utils import log_task_exception, spawn_tracked


async def _boom() -> None:
    raise RuntimeError("boom")


async def _value() -> int:
    return 7


class TestLogTaskException:
    @pytest.mark.asyncio
    async def test_logs_failed_task(self):
        logger = MagicMock()
        task = asyncio.create_task(_boom(), name="failing")
        await asyncio.gather(task, return_exceptions=True)

        exc = log_task_exception(task, logger, "task.failed")

        assert isinstance(exc, RuntimeError)
        logger.error.assert_called_once_with("task.failed", error="boom", task_name="failing")

    @pytest.mark.asyncio
    async def test_custom_level(self):
        logger = MagicMock()
        task = asyncio.create_task(_boom())
        await asyncio.gather(task, return_exceptions=True)

        log_task_exception(task, logger, "task.failed", level="warning")

        logger.warning.assert_called_once()
        logger.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_successful_task_not_logged(self):
        logger = MagicMock()
        task = asyncio.create_task(_value())
        await task

        assert log_task_exception(task, logger, "task.failed") is None
        logger.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancelled_task_not_logged(self):
        logger = MagicMock()
        task = asyncio.create_task(asyncio.sleep(10))
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert log_task_exception(task, logger, "task.failed") is None
        logger.error.assert_not_called()


class TestSpawnTracked:
    @pytest.mark.asyncio
    async def test_task_tracked_until_done(self):
        registry: set[asyncio.Task[Any]] = set()
        task = spawn_tracked(_value(), registry, MagicMock(), "task.failed", name="worker")

        assert task in registry
        assert task.get_name() == "worker"
        assert await task == 7
        await asyncio.sleep(0)
        assert registry == set()

    @pytest.mark.asyncio
    async def test_exception_logged_and_task_released(self):
        registry: set[asyncio.Task[Any]] = set()
        logger = MagicMock()
        task = spawn_tracked(_boom(), registry, logger, "task.failed")

        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

        assert registry == set()
        logger.error.assert_called_once()
        assert logger.error.call_args.args == ("task.failed",)
