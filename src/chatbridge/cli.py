from __future__ import annotations
import asyncio
import base64
import mimetypes
from pathlib import Path
from typing import List, Optional
import typer

from .bootstrap import build_app
from .core.models import ChatMessage

app = typer.Typer(add_completion=False, help="Chat with Gemini / OpenAI backends from the terminal.")

DEFAULT_CONFIG = Path("config/default.yaml")


def _print_piece(piece: str) -> None:
    print(piece, end="", flush=True)


@app.command()
def chat(
    config: Path = typer.Option(DEFAULT_CONFIG, help="YAML config file"),
    model: Optional[str] = typer.Option(None, help="Override model.name"),
):
    """Interactive chat. History lives only in this process."""
    ctx = build_app(config, model=model)
    client = ctx["client"]
    use_stream = bool((ctx["cfg"].get("runtime") or {}).get("stream", False))

    print("chatbridge. Type /help for commands. Ctrl+C to quit.")
    try:
        # one loop for the whole session: the SDK connection pools are bound to it
        asyncio.run(_repl(client, use_stream))
    except KeyboardInterrupt:
        print("\nBye.")


async def _repl(client, use_stream: bool) -> None:
    history: List[ChatMessage] = []
    while True:
        try:
            user_input = (await asyncio.to_thread(input, "you> ")).strip()
        except EOFError:
            print("\nBye.")
            return

        if not user_input:
            continue

        if user_input in ("/exit", "/quit"):
            print("Bye.")
            return

        if user_input == "/help":
            print("Commands: /help, /reset, /exit, /quit")
            continue

        if user_input == "/reset":
            history.clear()
            print("[history cleared]")
            continue

        history.append(ChatMessage(role="user", content=user_input))
        try:
            reply = await client.send_chat(history, on_chunk=_print_piece if use_stream else None)
        except Exception as e:
            history.pop()
            print(f"\n[error] {type(e).__name__}: {e}")
            continue

        print("" if use_stream else reply)
        history.append(ChatMessage(role="assistant", content=reply))


@app.command()
def media(
    source: str = typer.Argument(..., help="Local file path or http(s) URL"),
    prompt: Optional[str] = typer.Option(None, help="Text sent alongside the media"),
    mime_type: Optional[str] = typer.Option(None, "--mime-type", help="Defaults to a guess from the name"),
    config: Path = typer.Option(DEFAULT_CONFIG, help="YAML config file"),
    model: Optional[str] = typer.Option(None, help="Override model.name"),
):
    """Send one image/file (plus optional prompt) and print the reply."""
    ctx = build_app(config, model=model)
    client = ctx["client"]
    use_stream = bool((ctx["cfg"].get("runtime") or {}).get("stream", False))

    mime = mime_type or mimetypes.guess_type(source)[0]
    if not mime:
        raise typer.BadParameter("Could not guess the MIME type; pass --mime-type", param_hint="source")

    if source.startswith(("http://", "https://")):
        data = source
    else:
        path = Path(source)
        if not path.is_file():
            raise typer.BadParameter(f"File not found: {path}", param_hint="source")
        data = base64.b64encode(path.read_bytes()).decode("ascii")

    reply = asyncio.run(client.send_media(data, mime, prompt, on_chunk=_print_piece if use_stream else None))
    print("" if use_stream else reply)


@app.command()
def models(config: Path = typer.Option(DEFAULT_CONFIG, help="YAML config file")):
    """List the models the configured backend offers."""
    ctx = build_app(config)
    for m in asyncio.run(ctx["client"].get_available_models()):
        print(f"{m.name}\t{m.display_name}")


@app.command()
def serve(
    config: Path = typer.Option(DEFAULT_CONFIG, help="YAML config file"),
    host: str = "127.0.0.1",
    port: int = 8000,
    model: Optional[str] = typer.Option(None, help="Override model.name"),
):
    """Run the HTTP API."""
    from .web.app import run

    run(config=config, host=host, port=port, model=model)
