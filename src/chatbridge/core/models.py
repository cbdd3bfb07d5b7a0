# src/chatbridge/core/models.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Union

Role = Literal["user", "assistant", "system"]


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    @classmethod
    def coerce(cls, raw: Union["ChatMessage", Mapping[str, Any]]) -> "ChatMessage":
        """Accept either a ChatMessage or an OpenAI-style {'role', 'content'} dict."""
        if isinstance(raw, ChatMessage):
            return raw
        return cls(role=str(raw.get("role") or "user"), content=str(raw.get("content") or ""))


@dataclass(frozen=True)
class ModelDescriptor:
    name: str
    display_name: str

    @classmethod
    def of(cls, name: str, display_name: str | None = None) -> "ModelDescriptor":
        # Backends don't always send a label; fall back to the id
        return cls(name=name, display_name=display_name or name)


@dataclass(frozen=True)
class MediaPayload:
    """
    Either a remote reference (data starts with 'http') or inline base64 bytes.
    URI payloads are sent by reference; inline data is embedded in the request.
    """
    data: str
    mime_type: str

    @property
    def is_uri(self) -> bool:
        return self.data.startswith("http")

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"
