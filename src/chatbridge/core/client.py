# src/chatbridge/core/client.py
from __future__ import annotations
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterable, AsyncIterator, Iterable, List, Optional

from .models import ChatMessage, MediaPayload, ModelDescriptor
from .ports import ChunkCallback, HistoryItem
from .prompt import PromptState
from .streaming import close_stream, drain_stream, iter_fragments

logger = logging.getLogger(__name__)


class ProviderClient(ABC):
    """
    Backend-agnostic chat client.

    Owns the credential, base URL and the accumulated prompt state, and runs the
    request pipeline (instruction turn -> history mapping -> stream -> aggregate).
    Subclasses only describe their backend:
      - _instruction_turn: how the composed prompt is sent
      - _map_role / _text_turn: role vocabulary and message shape
      - _media_turn: how a MediaPayload is encoded
      - _open_stream / _chunk_text: opening and reading the token stream
      - get_available_models
    """

    default_model: str = ""

    def __init__(self, credential: str, base_url: Optional[str] = None, *, model: Optional[str] = None):
        self.credential = credential
        self.base_url = base_url
        self.default_model = model or type(self).default_model
        self._prompts = PromptState()

    # ----- prompt state -----

    @property
    def prompts(self) -> PromptState:
        return self._prompts

    def add_system_prompt(self, text: str) -> None:
        self._prompts = self._prompts.with_system_prompt(text)

    def set_available_tools(self, descriptions: Iterable[str]) -> None:
        self._prompts = self._prompts.with_tools(descriptions)

    def compose_prompt(self) -> str:
        return self._prompts.compose()

    # ----- backend hooks -----

    @abstractmethod
    def _instruction_turn(self, text: str) -> Any:
        ...

    @abstractmethod
    def _map_role(self, role: str) -> str:
        ...

    @abstractmethod
    def _text_turn(self, role: str, text: str) -> Any:
        ...

    @abstractmethod
    def _media_turn(self, media: MediaPayload, prompt: Optional[str]) -> Any:
        ...

    @abstractmethod
    async def _open_stream(self, model: str, turns: List[Any]) -> AsyncIterable[Any]:
        ...

    @abstractmethod
    def _chunk_text(self, chunk: Any) -> Optional[str]:
        ...

    @abstractmethod
    async def get_available_models(self) -> List[ModelDescriptor]:
        ...

    # ----- request shaping -----

    def _leading_turns(self, state: PromptState) -> List[Any]:
        instruction = state.instruction()
        return [self._instruction_turn(instruction)] if instruction else []

    def build_chat_turns(self, history: Iterable[HistoryItem]) -> List[Any]:
        turns = self._leading_turns(self._prompts)
        for raw in history:
            message = ChatMessage.coerce(raw)
            trimmed = message.content.strip()
            if not trimmed:
                continue
            turns.append(self._text_turn(self._map_role(message.role), trimmed))
        return turns

    def build_media_turns(self, media: str, mime_type: str, prompt: Optional[str] = None) -> List[Any]:
        turns = self._leading_turns(self._prompts)
        turns.append(self._media_turn(MediaPayload(data=media, mime_type=mime_type), prompt))
        return turns

    # ----- streaming -----

    async def _stream_turns(self, model: Optional[str], turns: List[Any]) -> AsyncIterator[str]:
        model = model or self.default_model
        logger.debug("AI query with %s: %d turn(s)", model, len(turns))
        chunks = await self._open_stream(model, turns)
        fragments = iter_fragments(chunks, self._chunk_text)
        try:
            async for piece in fragments:
                yield piece
        finally:
            # also reached when the consumer stops early via aclose()
            await fragments.aclose()
            await close_stream(chunks)

    def stream_chat(self, history: Iterable[HistoryItem], model: Optional[str] = None) -> AsyncIterator[str]:
        return self._stream_turns(model, self.build_chat_turns(history))

    def stream_media(
        self,
        media: str,
        mime_type: str,
        prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> AsyncIterator[str]:
        return self._stream_turns(model, self.build_media_turns(media, mime_type, prompt))

    async def send_chat(
        self,
        history: Iterable[HistoryItem],
        model: Optional[str] = None,
        on_chunk: Optional[ChunkCallback] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        text = await drain_stream(self.stream_chat(history, model), on_chunk, cancel=cancel)
        return text.strip()

    async def send_media(
        self,
        media: str,
        mime_type: str,
        prompt: Optional[str] = None,
        model: Optional[str] = None,
        on_chunk: Optional[ChunkCallback] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        text = await drain_stream(self.stream_media(media, mime_type, prompt, model), on_chunk, cancel=cancel)
        return text.strip()
