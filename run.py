#!/usr/bin/env python3
"""
VoiceCode entry point: load config, set up logging, transcribe WAV files.
Usage:
    python run.py recording.wav
    python run.py a.wav b.wav --language en --in-process
Uses VOICECODE_CONFIG or config.yaml for the sensevoice section.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import wave
from pathlib import Path

import numpy as np

# Ensure project root is on path
_ROOT = Path(__file__).resolve().parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from config import AppConfig, load_config  # noqa: E402
from sdk import LANGUAGE_CODES, TEXTNORM_CODES, configure_logging, resolve_code  # noqa: E402

logger = logging.getLogger(__name__)


def bootstrap_config(root: Path) -> AppConfig:
    """
    Load config and set up logging (console + optional file handler).
    Single place for entry-point startup.
    """
    config_path = os.environ.get("VOICECODE_CONFIG", str(root / "config.yaml"))
    config = AppConfig(load_config())
    configure_logging(config.get_log_level(), config.get_log_path(), base_dir=root)
    logger.info("Config path: %s", config_path)
    return config


def _int24_to_float32(raw: bytes) -> np.ndarray:
    b = np.frombuffer(raw[: len(raw) - len(raw) % 3], dtype=np.uint8).reshape(-1, 3).astype(np.int32)
    ints = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
    ints = np.where(ints >= 1 << 23, ints - (1 << 24), ints)
    return ints.astype(np.float32) / 8388608.0


def read_wav(path: Path) -> tuple[np.ndarray, int]:
    """
    Read an integer PCM WAV file (8, 16, 24 or 32-bit) as float32 mono in [-1, 1)
    plus its sample rate. Multi-channel files keep the first channel.
    IEEE-float WAVs are not readable by the wave module and raise wave.Error.
    """
    with wave.open(str(path), "rb") as wf:
        channels = wf.getnchannels()
        width = wf.getsampwidth()
        rate = wf.getframerate()
        raw = wf.readframes(wf.getnframes())
    if width == 1:
        samples = (np.frombuffer(raw, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    elif width == 2:
        samples = np.frombuffer(raw, dtype="<i2").astype(np.float32) / 32768.0
    elif width == 3:
        samples = _int24_to_float32(raw)
    elif width == 4:
        samples = np.frombuffer(raw, dtype="<i4").astype(np.float32) / 2147483648.0
    else:
        raise ValueError(f"Unsupported WAV sample width: {width * 8} bits")
    if channels > 1:
        samples = samples[: len(samples) - len(samples) % channels].reshape(-1, channels)[:, 0]
    return np.ascontiguousarray(samples, dtype=np.float32), rate


def _print_status(message: str) -> None:
    print(f"[{message}]", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Transcribe WAV files with SenseVoiceSmall")
    parser.add_argument("files", nargs="+", type=Path, help="PCM WAV file(s), 8/16/24/32-bit integer samples")
    parser.add_argument(
        "--language",
        default=None,
        help=f"Language code or name ({', '.join(LANGUAGE_CODES)}); default from config",
    )
    parser.add_argument(
        "--textnorm",
        default=None,
        help=f"Text normalization code or name ({', '.join(TEXTNORM_CODES)}); default from config",
    )
    parser.add_argument(
        "--in-process",
        action="store_true",
        help="Run inference in this process instead of a worker process",
    )
    args = parser.parse_args(argv)

    try:
        config = bootstrap_config(_ROOT)
    except FileNotFoundError as e:
        print(e, file=sys.stderr)
        return 1
    settings = config.get_sensevoice_config()
    language = resolve_code(args.language, LANGUAGE_CODES, settings["language"])
    textnorm = resolve_code(args.textnorm, TEXTNORM_CODES, settings["textnorm"])

    from app.coordinator import PipelineCoordinator
    from sdk import PipelineError

    coordinator = PipelineCoordinator(settings, use_worker=False if args.in_process else None)
    status = 0
    try:
        coordinator.init(on_status=_print_status)
        for path in args.files:
            try:
                audio, rate = read_wav(path)
            except (OSError, EOFError, wave.Error, ValueError) as e:
                print(f"{path}: {e}", file=sys.stderr)
                status = 1
                continue
            text = coordinator.transcribe(audio, rate, language=language, textnorm=textnorm)
            if len(args.files) > 1:
                print(f"{path}: {text}")
            else:
                print(text)
    except PipelineError as e:
        logger.error("Transcription failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        status = 1
    finally:
        coordinator.close()
    return status


if __name__ == "__main__":
    sys.exit(main())
