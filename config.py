"""
Minimal config wrapper: single place for keys and defaults; dict-like access for existing callers.
Config is merged from the root config.yaml and optional config.user.yaml.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml

_CONFIG_ROOT = Path(__file__).resolve().parent


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base. override wins for conflicts. Returns new dict."""
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} if missing or invalid. Single place for safe YAML loading."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


def load_config() -> dict:
    """
    Load merged config: root config.yaml -> config.user.yaml (same directory).
    Root config path from VOICECODE_CONFIG or project root/config.yaml.
    """
    config_path = os.environ.get("VOICECODE_CONFIG", str(_CONFIG_ROOT / "config.yaml"))
    root_path = Path(config_path)
    if not root_path.exists():
        raise FileNotFoundError(f"Config not found: {root_path}")
    merged = load_yaml_file(root_path)

    user_path = root_path.parent / "config.user.yaml"
    if user_path.exists():
        user_data = load_yaml_file(user_path)
        if user_data:
            merged = _deep_merge(merged, user_data)

    return merged


class AppConfig:
    """
    Wraps the raw YAML config dict. Use get_* for typed access with defaults;
    use .get(section, default) for dict-like access.
    """

    def __init__(self, raw: dict) -> None:
        self._raw = raw if raw is not None else {}

    def __getitem__(self, key: str):
        return self._raw[key]

    def get(self, key: str, default=None):
        return self._raw.get(key, default)

    @property
    def raw(self) -> dict:
        return self._raw

    def get_log_level(self) -> str:
        return str((self.get("logging") or {}).get("level", "INFO"))

    def get_log_path(self) -> str | None:
        """Path for log file (root logger). None disables file logging."""
        return (self.get("logging") or {}).get("file")

    def get_sensevoice_config(self) -> dict:
        """SenseVoice pipeline: resource location, cache, backends, worker timeouts, control codes."""
        from sdk import get_sensevoice_section

        return get_sensevoice_section(self._raw)
