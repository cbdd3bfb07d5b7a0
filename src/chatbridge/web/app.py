from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator, List, Literal, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from chatbridge.bootstrap import build_client
from chatbridge.config_loader import KNOWN_PROVIDERS, load_config, ConfigError
from chatbridge.core.models import ChatMessage
from chatbridge.logging_setup import setup_logging


class MessageIn(BaseModel):
    role: Literal["user", "assistant", "system"] = "user"
    content: str


class ChatRequest(BaseModel):
    messages: List[MessageIn]
    model: Optional[str] = None


class MediaRequest(BaseModel):
    data: str
    mime_type: str
    prompt: Optional[str] = None
    model: Optional[str] = None


def _history(req: ChatRequest) -> List[ChatMessage]:
    history = [ChatMessage(role=m.role, content=m.content) for m in req.messages]
    if not any(m.content.strip() for m in history):
        raise HTTPException(status_code=400, detail="Empty message")
    return history


def create_app(
    config_path: Path,
    *,
    provider: Optional[str] = None,
    model: Optional[str] = None,
) -> FastAPI:
    """
    Stateless HTTP surface over one provider client.
    Callers send the whole conversation on every request.
    """
    load_dotenv()
    config_path = Path(config_path)
    cfg = load_config(config_path)

    if provider:
        cfg["model"]["provider"] = str(provider).lower()
        if cfg["model"]["provider"] not in KNOWN_PROVIDERS:
            raise ConfigError(
                f"Unknown model.provider '{cfg['model']['provider']}' (expected one of {', '.join(KNOWN_PROVIDERS)})."
            )

    setup_logging(cfg["logging"]["level"])
    client = build_client(cfg, config_path, model=model)

    app = FastAPI()
    app.state.cfg = cfg
    app.state.client = client

    @app.get("/api/config")
    def api_config():
        return JSONResponse(
            {
                "provider": cfg["model"]["provider"],
                "model": client.default_model,
                "stream": bool((cfg.get("runtime") or {}).get("stream", False)),
                "tools": len(client.prompts.tools),
            }
        )

    @app.get("/api/models")
    async def api_models():
        models = await client.get_available_models()
        return JSONResponse([{"name": m.name, "display_name": m.display_name} for m in models])

    @app.post("/api/chat")
    async def api_chat(req: ChatRequest):
        reply = await client.send_chat(_history(req), model=req.model)
        return JSONResponse({"reply": reply})

    @app.post("/api/stream")
    async def api_stream(req: ChatRequest):
        history = _history(req)

        async def gen() -> AsyncIterator[str]:
            try:
                async for piece in client.stream_chat(history, model=req.model):
                    yield piece
            except Exception as e:
                # headers are already sent; report in-band
                yield f"\n[error] {e}"

        return StreamingResponse(gen(), media_type="text/plain")

    @app.post("/api/media")
    async def api_media(req: MediaRequest):
        if not req.data.strip():
            raise HTTPException(status_code=400, detail="Empty media")
        reply = await client.send_media(req.data, req.mime_type, req.prompt, model=req.model)
        return JSONResponse({"reply": reply})

    return app


def run(
    *,
    config: Path,
    host: str = "127.0.0.1",
    port: int = 8000,
    provider: Optional[str] = None,
    model: Optional[str] = None,
) -> None:
    import uvicorn

    app = create_app(config, provider=provider, model=model)
    uvicorn.run(app, host=host, port=port)
