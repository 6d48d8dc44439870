"""Built-in tools."""

from .comments import (
    COMMENTS_SCHEMA,
    FETCH_COMMENTS,
    QUERY_SCHEMA,
    Comment,
    CommentQuery,
    CommentsSource,
    build_fetch_comments,
)

__all__ = [
    "Comment", "CommentQuery", "CommentsSource", "build_fetch_comments",
    "FETCH_COMMENTS", "QUERY_SCHEMA", "COMMENTS_SCHEMA",
]
