# src/chatbridge/config_loader.py

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict
import yaml

KNOWN_PROVIDERS = ("gemini", "openai", "echo")


class ConfigError(ValueError):
    pass


def _require(d: Dict[str, Any], dotted: str, typ: type) -> Any:
    cur: Any = d
    for k in dotted.split("."):
        if not isinstance(cur, dict) or k not in cur:
            raise ConfigError(f"Missing config key: {dotted}")
        cur = cur[k]
    if typ is bool and not isinstance(cur, bool):
        raise ConfigError(f"'{dotted}' must be a boolean")
    if typ is str and not isinstance(cur, str):
        raise ConfigError(f"'{dotted}' must be a string")
    return cur


def _string_list(raw: Dict[str, Any], section: str, key: str) -> list[str]:
    val = (raw.get(section) or {}).get(key) or []
    if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
        raise ConfigError(f"'{section}.{key}' must be a list of strings")
    return val


def load_config(path: Path) -> Dict[str, Any]:
    if not path or not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    raw = yaml.safe_load(path.read_text())
    if not isinstance(raw, dict) or not raw:
        raise ConfigError(f"Config is empty or invalid YAML: {path}")

    # Validate required keys (no defaults here)
    _require(raw, "model.provider", str)
    _require(raw, "model.name", str)
    _require(raw, "runtime.stream", bool)

    # Normalise enumerations
    provider = str(raw["model"]["provider"]).lower()
    if provider not in KNOWN_PROVIDERS:
        raise ConfigError(f"Unknown model.provider '{provider}' (expected one of {', '.join(KNOWN_PROVIDERS)}).")
    raw["model"]["provider"] = provider

    providers = raw.get("providers") or {}
    if not isinstance(providers, dict):
        raise ConfigError("'providers' must be a mapping")
    budget = (providers.get("gemini") or {}).get("thinking_budget")
    if budget is not None and (isinstance(budget, bool) or not isinstance(budget, int)):
        raise ConfigError("'providers.gemini.thinking_budget' must be an integer")

    prompts = {
        "system": _string_list(raw, "prompts", "system"),
        "system_files": _string_list(raw, "prompts", "system_files"),
        "tools": _string_list(raw, "prompts", "tools"),
    }
    raw["prompts"] = prompts

    level = str((raw.get("logging") or {}).get("level", "WARNING")).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown logging.level '{level}'")
    raw["logging"] = {**(raw.get("logging") or {}), "level": level}

    # Leave paths as provided; resolve them later in bootstrap/composition
    return raw
