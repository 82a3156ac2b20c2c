"""
Normalized config section access for the transcription pipeline.
Provides get_section() and the SenseVoice section getter so config normalization
lives in one place; the coordinator, worker and CLI use these instead of
duplicating logic.
"""

from __future__ import annotations

from typing import Any, Callable

DEFAULT_BASE_URL = "https://modelscope.cn/models/iic/SenseVoiceSmall-onnx/resolve/master"

# SenseVoice control codes accepted by the model's language / textnorm inputs.
LANGUAGE_CODES = {
    "auto": 0,
    "zh": 3,
    "en": 4,
    "yue": 7,
    "ja": 11,
    "ko": 12,
    "nospeech": 13,
}
TEXTNORM_CODES = {
    "withitn": 14,
    "woitn": 15,
}


def _clamp_int(value: Any, low: int, high: int, default: int) -> int:
    """Parse value to int and clamp to [low, high]; return default if value is None or invalid."""
    if value is None:
        return default
    try:
        return max(low, min(high, int(value)))
    except (TypeError, ValueError):
        return default


def _parse_float(value: Any, low: float, high: float, default: float) -> float:
    """Parse value to float and clamp to [low, high]; return default if value is None or parsing fails."""
    if value is None:
        return default
    try:
        return max(low, min(high, float(value)))
    except (TypeError, ValueError):
        return default


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("1", "true", "yes", "on"):
            return True
        if v in ("0", "false", "no", "off"):
            return False
        return default
    return bool(value)


def resolve_code(value: Any, names: dict[str, int], default: int = 0) -> int:
    """
    Resolve a language/textnorm code given as a name ("en", "withitn") or an integer.
    Unknown names and unparsable values resolve to default.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    s = str(value).strip().lower()
    if s in names:
        return names[s]
    try:
        return int(s)
    except ValueError:
        return default


def get_section(
    raw_config: dict,
    section: str,
    defaults: dict[str, Any],
    validators: dict[str, Callable[[Any], Any]] | None = None,
) -> dict[str, Any]:
    """
    Return a normalized config section by merging raw section with defaults and applying validators.

    Args:
        raw_config: Full merged config dict (e.g. from load_config()).
        section: Top-level key (e.g. "sensevoice").
        defaults: Default values for the section; merged with raw_config.get(section, {}).
        validators: Optional dict mapping section key -> callable(value) -> value (e.g. clamp int).

    Returns:
        New dict with all keys from defaults, overridden by raw section, then validated.
    """
    validators = validators or {}
    raw_section = dict(raw_config.get(section) or {})
    out = dict(defaults)
    for k, v in raw_section.items():
        if k in defaults:
            out[k] = v
    for k, validator in validators.items():
        if k in out:
            try:
                out[k] = validator(out[k])
            except (TypeError, ValueError):
                out[k] = defaults[k]
    return out


def _base_url(value: Any) -> str:
    return str(value or "").strip().rstrip("/") or DEFAULT_BASE_URL


def _optional_path(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _file_name(default: str) -> Callable[[Any], str]:
    return lambda value: str(value or default).strip()


SENSEVOICE_DEFAULTS: dict[str, Any] = {
    "base_url": DEFAULT_BASE_URL,
    "model_file": "model_quant.onnx",
    "tokens_file": "tokens.json",
    "mvn_file": "am.mvn",
    "cache_dir": None,
    "prefer_gpu": False,
    "use_worker": True,
    "worker_init_timeout_sec": 45.0,
    "worker_call_timeout_sec": 60.0,
    "fetch_timeout_sec": 120.0,
    "intra_op_num_threads": 1,
    "language": 0,
    "textnorm": 0,
    "sample_rate": 16000,
}


def get_sensevoice_section(raw_config: dict) -> dict[str, Any]:
    """
    Return normalized SenseVoice pipeline config from full raw config.
    Result is a plain dict of primitives so it can be handed to a worker process.
    """
    return get_section(
        raw_config,
        "sensevoice",
        SENSEVOICE_DEFAULTS,
        {
            "base_url": _base_url,
            "model_file": _file_name("model_quant.onnx"),
            "tokens_file": _file_name("tokens.json"),
            "mvn_file": _file_name("am.mvn"),
            "cache_dir": _optional_path,
            "prefer_gpu": lambda v: _parse_bool(v, False),
            "use_worker": lambda v: _parse_bool(v, True),
            "worker_init_timeout_sec": lambda v: _parse_float(v, 1.0, 600.0, 45.0),
            "worker_call_timeout_sec": lambda v: _parse_float(v, 1.0, 600.0, 60.0),
            "fetch_timeout_sec": lambda v: _parse_float(v, 1.0, 600.0, 120.0),
            "intra_op_num_threads": lambda v: _clamp_int(v, 0, 64, 1),
            "language": lambda v: resolve_code(v, LANGUAGE_CODES, 0),
            "textnorm": lambda v: resolve_code(v, TEXTNORM_CODES, 0),
            "sample_rate": lambda v: _clamp_int(v, 1000, 192000, 16000),
        },
    )


__all__ = [
    "DEFAULT_BASE_URL",
    "LANGUAGE_CODES",
    "SENSEVOICE_DEFAULTS",
    "TEXTNORM_CODES",
    "get_section",
    "get_sensevoice_section",
    "resolve_code",
]
