# tests/unit/test_cli.py

from __future__ import annotations
import asyncio
import sys
from pathlib import Path
import pytest
from typer.testing import CliRunner

# Ensure "src" is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

import chatbridge.cli as cli  # type: ignore
from chatbridge.cli import app  # Typer app  # type: ignore
from chatbridge.providers.echo import EchoChatClient  # type: ignore


@pytest.fixture
def echo_config(tmp_path: Path) -> Path:
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir(parents=True)
    cfg = cfg_dir / "default.yaml"
    cfg.write_text(
        """
        model:
          provider: echo
          name: echo-model
        providers:
          echo:
            token_delay: 0.0
        prompts:
          system: ["Be terse."]
        runtime:
          stream: true
        """,
        encoding="utf-8",
    )
    return cfg


def test_cli_chat_echo_roundtrip(echo_config: Path):
    runner = CliRunner()
    # Provide a minimal dialogue: one message, /help, then exit
    result = runner.invoke(
        app, ["chat", "--config", str(echo_config)], input="hello\n/help\n/exit\n", catch_exceptions=False
    )

    assert result.exit_code == 0
    # Echo provider returns a fixed lorem ipsum; check a known word appears
    assert "Lorem ipsum" in result.output
    assert "/reset" in result.output
    assert "Bye." in result.output


def test_cli_models(echo_config: Path):
    result = CliRunner().invoke(app, ["models", "--config", str(echo_config)], catch_exceptions=False)
    assert result.exit_code == 0
    assert "echo-model\tEcho (offline lorem ipsum)" in result.output


def test_cli_media_local_file(echo_config: Path, tmp_path: Path):
    img = tmp_path / "pic.png"
    img.write_bytes(b"\x89PNG\r\n")
    result = CliRunner().invoke(
        app, ["media", str(img), "--prompt", "What is it?", "--config", str(echo_config)], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert "Lorem ipsum" in result.output


def test_cli_media_unknown_mime(echo_config: Path, tmp_path: Path):
    blob = tmp_path / "data.unknownext"
    blob.write_bytes(b"x")
    result = CliRunner().invoke(app, ["media", str(blob), "--config", str(echo_config)])
    assert result.exit_code != 0


class LoopBoundEcho(EchoChatClient):
    """Echo client that, like an SDK connection pool, only works on the loop it first ran on."""

    def __init__(self) -> None:
        super().__init__(token_delay=0.0, words=["pong"])
        self.loop = None
        self.requests = []

    async def _open_stream(self, model, turns):
        loop = asyncio.get_running_loop()
        if self.loop is None:
            self.loop = loop
        elif loop is not self.loop:
            raise RuntimeError("Event loop is closed")
        self.requests.append(list(turns))
        return await super()._open_stream(model, turns)


def _fake_build_app(client, stream=True):
    def build(config, model=None):
        return {"cfg": {"runtime": {"stream": stream}}, "client": client}
    return build


@pytest.mark.parametrize("stream", [True, False])
def test_cli_chat_multi_turn_keeps_history_on_one_loop(monkeypatch, stream):
    client = LoopBoundEcho()
    monkeypatch.setattr(cli, "build_app", _fake_build_app(client, stream))

    result = CliRunner().invoke(
        app, ["chat"], input="hi\nagain\nthird\n/exit\n", catch_exceptions=False
    )

    assert result.exit_code == 0
    assert "[error]" not in result.output
    assert result.output.count("pong") == 3
    assert len(client.requests) == 3
    # second request carries the first exchange
    assert client.requests[1] == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "pong"},
        {"role": "user", "content": "again"},
    ]
    assert len(client.requests[2]) == 5


def test_cli_chat_reset_clears_history(monkeypatch):
    client = LoopBoundEcho()
    monkeypatch.setattr(cli, "build_app", _fake_build_app(client))

    CliRunner().invoke(app, ["chat"], input="hi\n/reset\nagain\n", catch_exceptions=False)

    assert client.requests[-1] == [{"role": "user", "content": "again"}]


def test_cli_media_local_file_named_like_a_url(monkeypatch, tmp_path: Path):
    client = EchoChatClient(token_delay=0.0)
    monkeypatch.setattr(cli, "build_app", _fake_build_app(client))
    monkeypatch.chdir(tmp_path)
    (tmp_path / "http_shot.png").write_bytes(b"\x89PNG\r\n")

    result = CliRunner().invoke(app, ["media", "http_shot.png"], catch_exceptions=False)

    assert result.exit_code == 0
    assert client.last_turns[-1] == {"role": "user", "content": "[<image/png inline>]"}
