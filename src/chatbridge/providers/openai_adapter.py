# src/chatbridge/providers/openai_adapter.py
from __future__ import annotations
from typing import Any, AsyncIterable, Dict, List, Optional

from openai import AsyncOpenAI

from chatbridge.providers.registry import ProviderRegistry
from chatbridge.core.client import ProviderClient
from chatbridge.core.errors import ProviderClientError
from chatbridge.core.models import MediaPayload, ModelDescriptor

DEFAULT_OPENAI_ROOT = "https://api.openai.com/v1"


def normalize_base_url(base_url: Optional[str] = None) -> str:
    url = base_url or DEFAULT_OPENAI_ROOT
    # only a single trailing slash is dropped
    return url[:-1] if url.endswith("/") else url


@ProviderRegistry.register("openai")
class OpenAIChatClient(ProviderClient):
    """
    Chat-completions backend:
    - composed prompt goes out as a leading 'system' message
    - roles: assistant and system kept, anything else becomes user
    - media: image_url part, by URL for http(s) payloads, data: URL otherwise
    """

    default_model = "gpt-4o-mini"

    def __init__(
        self,
        credential: str,
        base_url: Optional[str] = None,
        *,
        model: Optional[str] = None,
        organization: Optional[str] = None,
    ):
        super().__init__(credential, normalize_base_url(base_url), model=model)
        client_kwargs: Dict[str, Any] = {"api_key": credential, "base_url": self.base_url}
        if organization:
            client_kwargs["organization"] = organization
        self.client = AsyncOpenAI(**client_kwargs)

    @classmethod
    def create(cls, *, model_name: Optional[str], provider_cfg: Dict[str, Any], secrets) -> "OpenAIChatClient":
        api_key = secrets.secret("openai", "api_key")
        if not api_key:
            raise ProviderClientError("No API key for 'openai'")

        provider_cfg = provider_cfg or {}
        return cls(
            api_key,
            provider_cfg.get("base_url"),
            model=model_name,
            organization=provider_cfg.get("organization"),
        )

    def _instruction_turn(self, text: str) -> Dict[str, Any]:
        return {"role": "system", "content": text}

    def _map_role(self, role: str) -> str:
        if role == "assistant":
            return "assistant"
        if role == "system":
            return "system"
        return "user"

    def _text_turn(self, role: str, text: str) -> Dict[str, Any]:
        return {"role": role, "content": text}

    def _media_turn(self, media: MediaPayload, prompt: Optional[str]) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        if prompt:
            parts.append({"type": "text", "text": prompt})
        url = media.data if media.is_uri else media.data_url()
        parts.append({"type": "image_url", "image_url": {"url": url, "detail": "auto"}})
        return {"role": "user", "content": parts}

    async def _open_stream(self, model: str, turns: List[Any]) -> AsyncIterable[Any]:
        return await self.client.chat.completions.create(model=model, messages=turns, stream=True)

    def _chunk_text(self, chunk: Any) -> Optional[str]:
        # Usage-only and keep-alive chunks arrive with an empty choices list
        if not chunk.choices:
            return None
        delta = chunk.choices[0].delta
        return delta.content if delta is not None else None

    async def get_available_models(self) -> List[ModelDescriptor]:
        page = await self.client.models.list()
        return [ModelDescriptor.of(m.id) for m in page.data]
