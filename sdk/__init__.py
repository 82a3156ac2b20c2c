"""
VoiceCode SDK: shared library for the pipeline stages, the coordinator and the CLI.

Provides a single public surface for config section access, the STT engine
abstraction and error taxonomy, audio utilities, and logging. Import from this
package only; do not depend on app or stt from within the SDK.

Example:
    from sdk import get_sensevoice_section
    cfg = get_sensevoice_section(raw_config)

    from sdk import STTEngine, ResourceError, ShapeError
    from sdk import pcm16_to_float32, resample_linear, TARGET_SAMPLE_RATE
    from sdk import get_logger
"""

from __future__ import annotations

from sdk.abstractions import (
    ContextError,
    EngineError,
    NoOpSTTEngine,
    ParseError,
    PipelineError,
    ResourceError,
    ShapeError,
    STTEngine,
)
from sdk.audio_utils import (
    INT16_MAX,
    TARGET_SAMPLE_RATE,
    pcm16_to_float32,
    resample_linear,
)
from sdk.config import (
    DEFAULT_BASE_URL,
    LANGUAGE_CODES,
    TEXTNORM_CODES,
    get_section,
    get_sensevoice_section,
    resolve_code,
)
from sdk.logging import LOG_FORMAT, configure_logging, get_logger, parse_level

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_BASE_URL",
    "INT16_MAX",
    "LANGUAGE_CODES",
    "TARGET_SAMPLE_RATE",
    "TEXTNORM_CODES",
    "ContextError",
    "EngineError",
    "NoOpSTTEngine",
    "ParseError",
    "PipelineError",
    "ResourceError",
    "ShapeError",
    "STTEngine",
    "LOG_FORMAT",
    "configure_logging",
    "get_logger",
    "parse_level",
    "get_section",
    "get_sensevoice_section",
    "pcm16_to_float32",
    "resample_linear",
    "resolve_code",
]
