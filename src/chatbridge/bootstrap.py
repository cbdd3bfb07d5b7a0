from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv

from .config_loader import load_config, ConfigError
from .core.client import ProviderClient
from .logging_setup import setup_logging
from .providers.registry import ProviderRegistry
from .secrets.sources import SecretsResolver

logger = logging.getLogger(__name__)


def _system_prompts(cfg: Dict[str, Any], config_dir: Path) -> List[str]:
    prompts_cfg = cfg.get("prompts") or {}
    texts = list(prompts_cfg.get("system") or [])
    for rel in prompts_cfg.get("system_files") or []:
        p = Path(rel)
        path = p if p.is_absolute() else (config_dir / p)
        if not path.exists():
            raise ConfigError(f"System prompt file not found: {path}")
        texts.append(path.read_text(encoding="utf-8"))
    return texts


def build_client(cfg: Dict[str, Any], config_path: Path, *, model: Optional[str] = None) -> ProviderClient:
    """
    Create the configured provider client and apply prompts/tools from config.
    'model' overrides model.name for this client's default.
    """
    ProviderRegistry.ensure_imports()  # make sure built-ins register

    provider_name = cfg["model"]["provider"]
    model_name = model or cfg["model"]["name"]
    provider_cfg = (cfg.get("providers") or {}).get(provider_name) or {}

    secrets_cfg = cfg.get("secrets") or {}
    resolver = SecretsResolver(
        method=secrets_cfg.get("method", "env"),
        mapping=secrets_cfg.get("mapping") or {},
    )

    Adapter = ProviderRegistry.get(provider_name)
    client = Adapter.create(model_name=model_name, provider_cfg=provider_cfg, secrets=resolver)

    for text in _system_prompts(cfg, config_path.resolve().parent):
        client.add_system_prompt(text)
    tools = (cfg.get("prompts") or {}).get("tools") or []
    if tools:
        client.set_available_tools(tools)

    logger.info(
        "Provider '%s' ready (model=%s, %d system prompt(s), %d tool(s))",
        provider_name, client.default_model, len(client.prompts.system_prompts), len(client.prompts.tools),
    )
    return client


def build_app(config_path: Path, *, model: Optional[str] = None) -> Dict[str, Any]:
    """
    Composition root: load .env + YAML, configure logging, build the provider client.
    Returns: dict with cfg, paths, client.
    """
    load_dotenv()
    cfg = load_config(config_path)
    setup_logging(cfg["logging"]["level"])
    client = build_client(cfg, config_path, model=model)
    return {
        "cfg": cfg,
        "paths": {"config_dir": config_path.resolve().parent},
        "client": client,
    }
