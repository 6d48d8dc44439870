"""Process entry point: configure logging, build the agent, run uvicorn."""

from __future__ import annotations

import uvicorn

from toolstream.foundation.config import ToolstreamSettings, get_settings
from toolstream.runtime.agent import get_agent
from toolstream.runtime.observability import configure_logging, get_logger

from .app import CHAT_PATH, HEALTH_PATH, create_app

log = get_logger("toolstream.server")


def serve(settings: ToolstreamSettings | None = None, *, host: str | None = None, port: int | None = None) -> None:
    """Start the HTTP server (blocking).

    Args:
        settings: Configuration (default: ``get_settings()``)
        host: Bind address override
        port: Port override
    """
    settings = settings or get_settings()
    configure_logging(settings.logging.format, settings.logging.level)
    host = host or settings.server.host
    port = port or settings.server.port

    agent = get_agent()
    app = create_app(agent, settings)

    base = f"http://{'localhost' if host in ('0.0.0.0', '127.0.0.1') else host}:{port}"
    log.info("server starting", agent=agent.name, host=host, port=port)
    log.info("health check", url=f"{base}{HEALTH_PATH}")
    log.info("chat endpoint", url=f"{base}{CHAT_PATH}")
    if not settings.model.has_api_key:
        log.warning("no model API key configured; chat requests will fail", env="OPENAI_API_KEY")

    uvicorn.run(app, host=host, port=port, log_level=settings.logging.level.lower())
