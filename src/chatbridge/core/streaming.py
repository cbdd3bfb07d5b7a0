# src/chatbridge/core/streaming.py
from __future__ import annotations
import asyncio
import inspect
import logging
from typing import Any, AsyncIterable, AsyncIterator, Callable, Optional

from .errors import StreamCancelled
from .ports import ChunkCallback

logger = logging.getLogger(__name__)


async def close_stream(stream: Any) -> None:
    """
    Close an async stream if it supports it: async generators have aclose(),
    SDK stream objects (openai AsyncStream) have an awaitable close().
    """
    closer = getattr(stream, "aclose", None) or getattr(stream, "close", None)
    if closer is None:
        return
    result = closer()
    if inspect.isawaitable(result):
        await result


async def iter_fragments(
    chunks: AsyncIterable[Any],
    extract: Callable[[Any], Optional[str]],
) -> AsyncIterator[str]:
    """
    Yield the text carried by each backend chunk, skipping chunks without text.
    A chunk with no text is not end-of-stream; only exhaustion of `chunks` is.
    """
    async for chunk in chunks:
        piece = extract(chunk)
        if piece:
            yield piece


async def drain_stream(
    fragments: AsyncIterable[str],
    on_chunk: Optional[ChunkCallback] = None,
    *,
    cancel: Optional[asyncio.Event] = None,
) -> str:
    """
    Consume fragments in arrival order, forward each non-empty one to on_chunk
    (exactly that fragment, untrimmed) and return the concatenation.

    If the iterable raises, the error propagates and the partial text is dropped.
    If `cancel` is set before the next fragment is handled, StreamCancelled is raised.
    """
    parts: list[str] = []
    try:
        async for piece in fragments:
            if cancel is not None and cancel.is_set():
                raise StreamCancelled(f"Stream cancelled after {len(parts)} fragment(s)")
            if not piece:
                continue
            parts.append(piece)
            if on_chunk is not None:
                result = on_chunk(piece)
                if inspect.isawaitable(result):
                    await result
    finally:
        await close_stream(fragments)
    logger.debug("Stream finished: %d fragment(s)", len(parts))
    return "".join(parts)
