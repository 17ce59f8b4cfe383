"""App configuration (completion endpoint, candidate models, session rules).

Stored as config.json in the directory passed to init_config(). Values are
layered: built-in defaults, then the stored file, then environment
overrides. The API key itself is never stored here; `api_key_env` names the
environment variable the dispatcher reads on every call.
"""

import json
import os
from pathlib import Path
from typing import Any

_config_dir: Path | None = None

_CONFIG_DEFAULTS: dict[str, Any] = {
    "provider_format": "gemini",
    "provider_url": "https://generativelanguage.googleapis.com",
    "models": [
        "gemini-3-pro-preview",
        "gemini-2.5-pro",
        "gemini-2.5-flash",
    ],
    "api_key_env": ["GEMINI_API_KEY", "API_KEY"],
    "temperature": 0.9,
    "timeout": 120,
    "transient_retries": 0,
    "history_window": 20,
    "require_complete_dossier": False,
}

_SCALAR_KEYS = (
    "provider_format",
    "provider_url",
    "temperature",
    "timeout",
    "transient_retries",
    "history_window",
    "require_complete_dossier",
)

# env var → (config key, parser)
_ENV_OVERRIDES = {
    "STAYA_PROVIDER_FORMAT": ("provider_format", str),
    "STAYA_PROVIDER_URL": ("provider_url", str),
    "STAYA_MODELS": ("models", lambda v: [m.strip() for m in v.split(",") if m.strip()]),
    "STAYA_API_KEY_ENV": ("api_key_env", lambda v: [n.strip() for n in v.split(",") if n.strip()]),
}


def init_config(config_dir: Path) -> None:
    global _config_dir
    _config_dir = config_dir
    _config_dir.mkdir(parents=True, exist_ok=True)


def config_dir() -> Path:
    assert _config_dir is not None, "Call init_config() before using config"
    return _config_dir


def _config_path() -> Path:
    return config_dir() / "config.json"


def _defaults() -> dict[str, Any]:
    return json.loads(json.dumps(_CONFIG_DEFAULTS))


def _merge(config: dict[str, Any], fields: dict[str, Any]) -> None:
    """Lists are replaced wholesale, scalars overwritten, unknown keys ignored."""
    for key in ("models", "api_key_env"):
        if key in fields:
            value = fields[key]
            config[key] = [value] if isinstance(value, str) else list(value)
    for key in _SCALAR_KEYS:
        if key in fields:
            config[key] = fields[key]


def _stored() -> dict[str, Any]:
    path = _config_path()
    if not path.is_file():
        return {}
    return json.loads(path.read_text())


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values and env overrides."""
    config = _defaults()
    _merge(config, _stored())
    for env_name, (key, parse) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw:
            config[key] = parse(raw)
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into the stored config and persist. Returns full config."""
    stored = _defaults()
    _merge(stored, _stored())
    _merge(stored, fields)
    _config_path().write_text(json.dumps(stored, indent=2))
    return get_config()
