"""The comments agent: one immutable, process-wide definition.

An ``Agent`` bundles the instructions, the frozen tool registry and the
model invoker. It is built once at startup and shared read-only by every
request; per-request state lives in ``RequestSession``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from toolstream.foundation.config import ToolstreamSettings, get_settings
from toolstream.foundation.registry import ToolRegistry
from toolstream.runtime.loop import ToolCallingLoop
from toolstream.runtime.model import ModelInvoker, OpenAIInvoker
from toolstream.runtime.observability import get_logger
from toolstream.tools import build_fetch_comments

if TYPE_CHECKING:
    import httpx

log = get_logger("toolstream.agent")

AGENT_NAME = "comments-agent"

INSTRUCTIONS = """\
You are a helpful assistant that answers user questions about comments.
Always call the fetch_comments tool when relevant to provide accurate information.

When responding to user queries:
- Use the fetch_comments tool to retrieve comment data when needed
- Provide clear and helpful answers based on the comment data
- If asked about specific comments, posts, or users, use appropriate filters
- Be concise but informative in your responses
- If no comments are found matching the criteria, let the user know
- Always be polite and professional
"""


@dataclass(frozen=True, slots=True)
class Agent:
    """Immutable agent definition.

    Attributes:
        name: Reported by the health endpoint and in logs
        instructions: System prompt given to the model
        registry: Frozen tool registry
        model: Model invoker used for every request
        max_iterations: Tool-round ceiling per request
        tool_timeout: Bounded wait per tool call, in seconds
    """

    name: str
    instructions: str
    registry: ToolRegistry
    model: ModelInvoker
    max_iterations: int = 5
    tool_timeout: float | None = 15.0

    def loop(self) -> ToolCallingLoop:
        """A loop bound to this agent's registry, model and limits."""
        return ToolCallingLoop(
            self.registry, self.model, max_iterations=self.max_iterations, tool_timeout=self.tool_timeout,
        )


def build_agent(
    settings: ToolstreamSettings | None = None,
    *,
    model: ModelInvoker | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Agent:
    """Construct the comments agent from settings.

    Args:
        settings: Configuration (defaults to ``get_settings()``)
        model: Model invoker override (tests pass a scripted fake)
        transport: httpx transport for the comments source (tests pass a mock)
    """
    settings = settings or get_settings()
    registry = ToolRegistry()
    registry.register(build_fetch_comments(
        settings.http.records_url,
        timeout=settings.http.timeout,
        user_agent=settings.http.user_agent,
        transport=transport,
    ))
    registry.freeze()

    agent = Agent(
        name=AGENT_NAME,
        instructions=INSTRUCTIONS,
        registry=registry,
        model=model or OpenAIInvoker.from_settings(settings.model, instructions=INSTRUCTIONS),
        max_iterations=settings.loop.max_iterations,
        tool_timeout=settings.loop.tool_timeout,
    )
    log.info("agent built", agent=agent.name, tools=len(registry), model=settings.model.name)
    return agent


# ─────────────────────────────────────────────────────────────────────────────
# Global Agent
# ─────────────────────────────────────────────────────────────────────────────

_agent: Agent | None = None


def get_agent() -> Agent:
    """Get the process-wide agent, building it on first use."""
    global _agent
    if _agent is None:
        _agent = build_agent()
    return _agent


def set_agent(agent: Agent) -> None:
    """Replace the process-wide agent."""
    global _agent
    _agent = agent


def reset_agent() -> None:
    """Drop the process-wide agent (useful for testing)."""
    global _agent
    _agent = None
