"""HTTP transport: Starlette app and uvicorn entry point."""

from .app import CHAT_PATH, HEALTH_PATH, USAGE, create_app
from .server import serve

__all__ = ["create_app", "serve", "CHAT_PATH", "HEALTH_PATH", "USAGE"]
