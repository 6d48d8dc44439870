"""Shared fixtures: a mock comments source, a registry over it, and agent builders."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest

from toolstream.foundation.config import HttpSettings, ToolstreamSettings, clear_settings_cache
from toolstream.foundation.registry import ToolRegistry, reset_registry
from toolstream.foundation.testing import RecordsServer
from toolstream.runtime.agent import AGENT_NAME, Agent, reset_agent
from toolstream.runtime.model import ModelInvoker
from toolstream.runtime.observability import CaptureRenderer, NoOpRenderer, install_renderer
from toolstream.tools import build_fetch_comments

RECORDS_URL = "https://records.test/comments"


@pytest.fixture(autouse=True)
def captured_logs() -> Iterator[CaptureRenderer]:
    """Route structured logs into memory and reset process-wide singletons."""
    renderer = CaptureRenderer()
    install_renderer(renderer, "DEBUG")
    yield renderer
    install_renderer(NoOpRenderer())
    reset_agent()
    reset_registry()
    clear_settings_cache()


@pytest.fixture
def records_url() -> str:
    return RECORDS_URL


@pytest.fixture
def records() -> RecordsServer:
    return RecordsServer()


@pytest.fixture
def registry(records: RecordsServer) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(build_fetch_comments(RECORDS_URL, timeout=2.0, transport=records.transport()))
    return registry.freeze()


@pytest.fixture
def settings() -> ToolstreamSettings:
    return ToolstreamSettings(http=HttpSettings(records_url=RECORDS_URL))


@pytest.fixture
def make_agent(registry: ToolRegistry) -> Callable[..., Agent]:
    def factory(model: ModelInvoker, *, max_iterations: int = 3, tool_timeout: float = 2.0) -> Agent:
        return Agent(
            name=AGENT_NAME,
            instructions="Answer questions about comments.",
            registry=registry,
            model=model,
            max_iterations=max_iterations,
            tool_timeout=tool_timeout,
        )
    return factory
