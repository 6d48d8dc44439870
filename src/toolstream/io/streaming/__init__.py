"""Streaming: typed chat-stream events, SSE framing, and the emitter.

Example:
    >>> from toolstream.io.streaming import StreamEmitter, decode_frames
    >>> emitter = StreamEmitter()
    >>> body = emitter.open() + emitter.chunk("hi") + emitter.complete()
    >>> [e.kind for e in decode_frames(body)]
    [<StreamEventKind.CONNECTED: 'connected'>, <StreamEventKind.CHUNK: 'chunk'>, <StreamEventKind.DONE: 'done'>]
"""

from .codec import CONTENT_TYPE, SSE_HEADERS, SSECodec, decode_frames, encode_event
from .emitter import StreamEmitter
from .events import CONNECTED, DONE, StreamEvent, StreamEventKind, StreamState, stream_chunk, stream_error

__all__ = [
    # Events
    "StreamEvent", "StreamEventKind", "StreamState", "CONNECTED", "DONE", "stream_chunk", "stream_error",
    # Codec
    "SSECodec", "encode_event", "decode_frames", "CONTENT_TYPE", "SSE_HEADERS",
    # Emitter
    "StreamEmitter",
]
