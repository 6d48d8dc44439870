"""Comments tool - filtered lookup against a remote comments endpoint.

The remote source filters by ``id``, ``postId``, ``email`` and ``name``;
``limit`` is applied client-side by the registry after the output has been
validated (first N records, original order).

Example:
    >>> from toolstream.tools import build_fetch_comments
    >>> tool = build_fetch_comments("https://jsonplaceholder.typicode.com/comments")
    >>> registry.register(tool)
    >>> await registry.invoke("fetch_comments", '{"postId": 1, "limit": 3}')
"""

from __future__ import annotations

from typing import Annotated

import httpx
from pydantic import BaseModel, ConfigDict, Field

from toolstream.foundation.core import Schema
from toolstream.foundation.errors import ErrorCode, ToolExecutionError
from toolstream.foundation.registry import ToolDescriptor
from toolstream.runtime.observability import get_logger

log = get_logger("toolstream.tools.comments")

FETCH_COMMENTS = "fetch_comments"

DESCRIPTION = (
    "Fetch comments from the comments API. Filter by comment id, post id, "
    "commenter email or comment name, and cap the number of results with limit."
)


# ─────────────────────────────────────────────────────────────────────────────
# Schemas
# ─────────────────────────────────────────────────────────────────────────────

class CommentQuery(BaseModel):
    """Arguments accepted by ``fetch_comments``. Every field is optional."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    id: int | None = Field(default=None, description="Specific comment ID to fetch")
    post_id: int | None = Field(default=None, alias="postId", description="Filter comments by post ID")
    email: str | None = Field(default=None, description="Filter comments by email address")
    name: str | None = Field(default=None, description="Filter comments by name")
    limit: Annotated[int, Field(ge=1)] | None = Field(default=None, description="Maximum number of comments to return")

    def query_params(self) -> dict[str, str | int]:
        """Remote filters, present only when set. ``limit`` is not sent."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"limit"})


class Comment(BaseModel):
    """One record from the comments endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    post_id: int = Field(alias="postId")
    id: int
    name: str
    email: str
    body: str


QUERY_SCHEMA: Schema[CommentQuery] = Schema(CommentQuery, name="fetch_comments arguments")
COMMENTS_SCHEMA: Schema[list[Comment]] = Schema(list[Comment], name="fetch_comments result")


# ─────────────────────────────────────────────────────────────────────────────
# Executor
# ─────────────────────────────────────────────────────────────────────────────

class CommentsSource:
    """Async GET against the comments endpoint.

    Args:
        base_url: Endpoint URL (``.../comments``)
        timeout: Per-request timeout in seconds
        user_agent: Sent as ``User-Agent``
        transport: Optional httpx transport (``httpx.MockTransport`` in tests)
    """

    __slots__ = ("base_url", "timeout", "user_agent", "_transport")

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        user_agent: str = "toolstream-http/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    async def __call__(self, query: CommentQuery) -> object:
        params = query.query_params()
        log.debug("fetching comments", url=self.base_url, params=params)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
                transport=self._transport,
            ) as client:
                response = await client.get(self.base_url, params=params or None)
        except httpx.TimeoutException:
            raise ToolExecutionError.create(
                f"Request timed out after {self.timeout}s", ErrorCode.TIMEOUT,
                tool_name=FETCH_COMMENTS, recoverable=True,
            ) from None
        except httpx.NetworkError as e:
            raise ToolExecutionError.create(
                f"Network error: {e}", ErrorCode.NETWORK_ERROR, tool_name=FETCH_COMMENTS, recoverable=True,
            ) from e

        if not response.is_success:
            raise ToolExecutionError.create(
                f"Failed to fetch comments: {response.status_code} {response.reason_phrase}".rstrip(),
                ErrorCode.EXTERNAL_SERVICE_ERROR,
                tool_name=FETCH_COMMENTS,
                recoverable=response.status_code >= 500,
            )
        return response.json()


def build_fetch_comments(
    base_url: str,
    *,
    timeout: float = 10.0,
    user_agent: str = "toolstream-http/1.0",
    transport: httpx.AsyncBaseTransport | None = None,
) -> ToolDescriptor:
    """Build the ``fetch_comments`` descriptor bound to one endpoint."""
    return ToolDescriptor(
        id=FETCH_COMMENTS,
        description=DESCRIPTION,
        input_schema=QUERY_SCHEMA,
        output_schema=COMMENTS_SCHEMA,
        executor=CommentsSource(base_url, timeout=timeout, user_agent=user_agent, transport=transport),
        limit_param="limit",
    )
