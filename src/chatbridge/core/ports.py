from __future__ import annotations
from typing import Any, Awaitable, Callable, Mapping, Union

from .models import ChatMessage

# Called once per non-empty text fragment; may be sync or async
ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]

# 'history' entries: ChatMessage or {'role': 'user'|'assistant'|'system', 'content': '...'}
HistoryItem = Union[ChatMessage, Mapping[str, Any]]
