"""
Fetch model, token list and MVN stats once, then serve them from a local cache.

The base location is either an HTTP(S) URL or a local directory (plain path or
file:// URL). Remote responses are validated and written atomically into the
cache directory; a cached entry that fails validation is deleted and fetched again.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import requests

from sdk.abstractions import ResourceError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "voicecode" / "sensevoice"
MIN_MODEL_BYTES = 64 * 1024
_LFS_POINTER_MARKER = "git-lfs.github.com/spec/v1"


def validate_model_bytes(data: bytes, content_type: str = "") -> bytes:
    """
    Reject responses that cannot be an ONNX model: tiny bodies (error pages,
    Git LFS pointers) and HTML. Returns data unchanged when it looks valid.
    """
    ct = (content_type or "").lower()
    if len(data) < MIN_MODEL_BYTES:
        head = data[:256].decode("utf-8", errors="replace")
        if _LFS_POINTER_MARKER in head:
            raise ResourceError(
                "Model file is a Git LFS pointer, not the real ONNX binary. "
                "Run `git lfs pull` or replace it with the actual model file."
            )
        raise ResourceError(
            f"Model response too small ({len(data)} bytes). content-type={ct} head={head!r}"
        )
    if "text/html" in ct:
        head = data[:256].decode("utf-8", errors="replace")
        raise ResourceError(f"Model response is HTML. head={head!r}")
    head16 = data[:16].decode("utf-8", errors="replace").lower()
    if head16.startswith("<!doctype") or head16.startswith("<html"):
        raise ResourceError("Model response looks like HTML (doctype/html)")
    return data


def atomic_write(path: Path, data: bytes) -> None:
    """Write bytes to path atomically via a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".tmp.", suffix=path.suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def _local_root(base: str) -> Path | None:
    """Return a directory path for local bases (path or file:// URL), else None."""
    parsed = urlparse(base)
    if parsed.scheme in ("http", "https"):
        return None
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(base)


class ResourceLoader:
    """
    Loads named files relative to base_url. Each load returns (value, source)
    where source is "local", "cache" or "network".
    """

    def __init__(
        self,
        base_url: str,
        cache_dir: str | Path | None = None,
        timeout_sec: float = 120.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self._local_root = _local_root(self.base_url)
        self._cache_dir = Path(cache_dir) if cache_dir else DEFAULT_CACHE_DIR
        self._timeout = timeout_sec
        self._session = session

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/{name}"

    def cache_path(self, name: str) -> Path:
        digest = hashlib.sha256(self.url_for(name).encode("utf-8")).hexdigest()[:16]
        return self._cache_dir / f"{digest}-{Path(name).name}"

    def evict(self, name: str) -> None:
        """Delete the cached copy of name (no-op for local bases or missing entries)."""
        if self._local_root is not None:
            return
        path = self.cache_path(name)
        try:
            path.unlink(missing_ok=True)
            logger.info("Evicted cached %s", path)
        except OSError as e:
            logger.warning("Failed to evict cached %s: %s", path, e)

    def _read_local(self, name: str) -> bytes:
        path = self._local_root / name
        try:
            return path.read_bytes()
        except OSError as e:
            raise ResourceError(f"Failed to read {path}: {e}") from e

    def _download(self, name: str) -> tuple[bytes, str]:
        url = self.url_for(name)
        getter = self._session.get if self._session is not None else requests.get
        try:
            resp = getter(url, timeout=self._timeout)
            resp.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise ResourceError(f"Timed out fetching {url}") from e
        except requests.exceptions.RequestException as e:
            raise ResourceError(f"Failed to fetch {url}: {e}") from e
        content_type = resp.headers.get("content-type", "") if resp.headers else ""
        return resp.content, content_type

    def _load(self, name: str, validate) -> tuple[Any, str]:
        if self._local_root is not None:
            return validate(self._read_local(name), ""), "local"

        path = self.cache_path(name)
        if path.exists():
            try:
                value = validate(path.read_bytes(), "")
                logger.debug("Loaded %s from cache %s", name, path)
                return value, "cache"
            except (ResourceError, OSError) as e:
                logger.warning("Cached %s is unusable (%s); fetching again", name, e)
                self.evict(name)

        data, content_type = self._download(name)
        value = validate(data, content_type)
        try:
            atomic_write(path, data)
        except OSError as e:
            logger.warning("Could not cache %s at %s: %s", name, path, e)
        logger.info("Fetched %s (%d bytes)", self.url_for(name), len(data))
        return value, "network"

    def load_model_bytes(self, name: str) -> tuple[bytes, str]:
        return self._load(name, validate_model_bytes)

    def load_text(self, name: str) -> tuple[str, str]:
        def _text(data: bytes, _ct: str) -> str:
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ResourceError(f"{name} is not UTF-8 text: {e}") from e

        return self._load(name, _text)

    def load_json(self, name: str) -> tuple[Any, str]:
        def _json(data: bytes, _ct: str) -> Any:
            try:
                return json.loads(data.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise ResourceError(f"{name} is not valid JSON: {e}") from e

        return self._load(name, _json)


__all__ = [
    "DEFAULT_CACHE_DIR",
    "MIN_MODEL_BYTES",
    "ResourceLoader",
    "atomic_write",
    "validate_model_bytes",
]
