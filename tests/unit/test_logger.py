"""Tests for structured logging setup and trace ids."""

import logging

import pytest

from taskify.application.commands import CreateProjectCommand
from taskify.observability.logger import (
    get_logger,
    get_trace_id,
    new_trace_id,
    set_trace_id,
    setup_logging,
)


class TestTraceId:
    def test_set_and_get(self):
        set_trace_id("trace-1")
        assert get_trace_id() == "trace-1"

    def test_new_trace_id_replaces(self):
        set_trace_id("trace-1")
        tid = new_trace_id()
        assert tid != "trace-1"
        assert get_trace_id() == tid

    @pytest.mark.asyncio
    async def test_command_events_share_trace_id(self, coordinator):
        result = await coordinator.create_project(CreateProjectCommand(name="Apollo"))
        assert result.events[0].correlation_id == get_trace_id()


class TestSetup:
    def test_setup_sets_root_level(self):
        setup_logging(level="WARNING", format="console")
        assert logging.getLogger().level == logging.WARNING
        assert get_logger("taskify.test") is not None

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty", format="json")
        assert logging.getLogger().level == logging.INFO
