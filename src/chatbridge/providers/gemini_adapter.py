# src/chatbridge/providers/gemini_adapter.py
from __future__ import annotations
import base64
from typing import Any, AsyncIterable, Dict, List, Mapping, Optional, Sequence, Union

from google.genai import Client, types

from chatbridge.providers.registry import ProviderRegistry
from chatbridge.core.client import ProviderClient
from chatbridge.core.errors import ProviderClientError
from chatbridge.core.models import MediaPayload, ModelDescriptor

# -1 lets the model decide how much to think
UNBOUNDED_THINKING = -1

_PERMISSIVE_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)

SafetySettingLike = Union[types.SafetySetting, Mapping[str, Any]]


def default_safety_settings() -> List[types.SafetySetting]:
    return [
        types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
        for category in _PERMISSIVE_CATEGORIES
    ]


def _coerce_safety(settings: Sequence[SafetySettingLike]) -> List[types.SafetySetting]:
    out: List[types.SafetySetting] = []
    for s in settings:
        if isinstance(s, types.SafetySetting):
            out.append(s)
        else:
            out.append(types.SafetySetting(category=s["category"], threshold=s["threshold"]))
    return out


@ProviderRegistry.register("gemini")
class GeminiChatClient(ProviderClient):
    """
    Gemini generate-content backend:
    - composed prompt goes out as a synthetic first 'user' turn
    - roles: assistant -> model, anything else -> user
    - media: file_data for http(s) URIs, inline_data (decoded base64) otherwise
    - every request carries the thinking budget and safety settings
    """

    default_model = "gemini-2.5-pro"

    def __init__(
        self,
        credential: str,
        base_url: Optional[str] = None,
        *,
        model: Optional[str] = None,
        thinking_budget: Optional[int] = None,
        safety_settings: Optional[Sequence[SafetySettingLike]] = None,
    ):
        super().__init__(credential, base_url, model=model)
        self.client = Client(api_key=credential, http_options=types.HttpOptions(base_url=base_url))
        self.thinking_budget = UNBOUNDED_THINKING if thinking_budget is None else int(thinking_budget)
        self.safety_settings = (
            _coerce_safety(safety_settings) if safety_settings is not None else default_safety_settings()
        )

    @classmethod
    def create(cls, *, model_name: Optional[str], provider_cfg: Dict[str, Any], secrets) -> "GeminiChatClient":
        api_key = secrets.secret("gemini", "api_key")
        if not api_key:
            raise ProviderClientError("No API key for 'gemini'")

        provider_cfg = provider_cfg or {}
        try:
            return cls(
                api_key,
                provider_cfg.get("base_url"),
                model=model_name,
                thinking_budget=provider_cfg.get("thinking_budget"),
                safety_settings=provider_cfg.get("safety_settings"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderClientError(f"Invalid gemini provider settings: {e}") from e

    def generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget),
            safety_settings=self.safety_settings,
        )

    def _instruction_turn(self, text: str) -> types.Content:
        return types.Content(role="user", parts=[types.Part(text=text)])

    def _map_role(self, role: str) -> str:
        return "model" if role == "assistant" else "user"

    def _text_turn(self, role: str, text: str) -> types.Content:
        return types.Content(role=role, parts=[types.Part(text=text)])

    def _media_turn(self, media: MediaPayload, prompt: Optional[str]) -> types.Content:
        parts: List[types.Part] = []
        if prompt:
            parts.append(types.Part(text=prompt))
        if media.is_uri:
            parts.append(types.Part(file_data=types.FileData(file_uri=media.data, mime_type=media.mime_type)))
        else:
            blob = types.Blob(mime_type=media.mime_type, data=base64.b64decode(media.data))
            parts.append(types.Part(inline_data=blob))
        return types.Content(role="user", parts=parts)

    async def _open_stream(self, model: str, turns: List[Any]) -> AsyncIterable[Any]:
        return await self.client.aio.models.generate_content_stream(
            model=model,
            contents=turns,
            config=self.generation_config(),
        )

    def _chunk_text(self, chunk: Any) -> Optional[str]:
        return chunk.text

    async def get_available_models(self) -> List[ModelDescriptor]:
        pager = await self.client.aio.models.list()
        return [ModelDescriptor.of(m.name, m.display_name) for m in pager.page]
