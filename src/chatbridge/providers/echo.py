from __future__ import annotations
import asyncio
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

from chatbridge.providers.registry import ProviderRegistry
from chatbridge.core.client import ProviderClient
from chatbridge.core.models import MediaPayload, ModelDescriptor

_LOREM_50 = (
    "Lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua Curabitur non nulla sit amet nisl "
    "tempor convallis quis ac lectus Phasellus viverra nulla ut metus varius laoreet "
    "Quisque rutrum Aenean imperdiet Etiam ultricies nisi vel augue Curabitur ullamcorper ultricies nisi"
).split()


@ProviderRegistry.register("echo")
class EchoChatClient(ProviderClient):
    """
    Offline stub that streams a fixed 50-word lorem ipsum, one word per fragment,
    with a small delay to simulate tokens. Requests are shaped like the OpenAI
    ones so the prompt pipeline is still exercised.
    """

    default_model = "echo-lorem"

    def __init__(self, token_delay: float = 0.125, words: Optional[List[str]] = None, *, model: Optional[str] = None):
        super().__init__("", None, model=model)
        self.token_delay = float(token_delay)
        self.words = list(words) if words is not None else list(_LOREM_50)
        self.last_turns: List[Dict[str, Any]] = []

    @classmethod
    def create(cls, *, model_name: Optional[str], provider_cfg: Dict[str, Any], secrets) -> "EchoChatClient":
        delay = (provider_cfg or {}).get("token_delay", 0.125)
        return cls(token_delay=delay, model=model_name)

    def _instruction_turn(self, text: str) -> Dict[str, Any]:
        return {"role": "system", "content": text}

    def _map_role(self, role: str) -> str:
        return role if role in ("assistant", "system") else "user"

    def _text_turn(self, role: str, text: str) -> Dict[str, Any]:
        return {"role": role, "content": text}

    def _media_turn(self, media: MediaPayload, prompt: Optional[str]) -> Dict[str, Any]:
        ref = media.data if media.is_uri else f"<{media.mime_type} inline>"
        return {"role": "user", "content": f"{prompt or ''} [{ref}]".strip()}

    async def _open_stream(self, model: str, turns: List[Any]) -> AsyncIterable[Any]:
        self.last_turns = list(turns)
        return self._words()

    async def _words(self) -> AsyncIterator[str]:
        last_idx = len(self.words) - 1
        for i, w in enumerate(self.words):
            yield w + ("" if i == last_idx else " ")
            if self.token_delay > 0:
                await asyncio.sleep(self.token_delay)

    def _chunk_text(self, chunk: Any) -> Optional[str]:
        return chunk

    async def get_available_models(self) -> List[ModelDescriptor]:
        return [ModelDescriptor.of(self.default_model, "Echo (offline lorem ipsum)")]
