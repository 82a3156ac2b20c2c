"""Tests for stt.resources: validate_model_bytes, ResourceLoader (local, cache, network)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from sdk import ResourceError
from stt.resources import MIN_MODEL_BYTES, ResourceLoader, atomic_write, validate_model_bytes

MODEL = b"\x08\x07" + b"\x00" * MIN_MODEL_BYTES


def _response(content: bytes, content_type: str = "application/octet-stream", status: int = 200):
    resp = MagicMock()
    resp.content = content
    resp.headers = {"content-type": content_type}
    resp.status_code = status
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} Error")
    return resp


# ---- validate_model_bytes ----
def test_validate_model_bytes_accepts_large_binary() -> None:
    assert validate_model_bytes(MODEL) is MODEL


def test_validate_model_bytes_rejects_small_body() -> None:
    with pytest.raises(ResourceError, match="too small"):
        validate_model_bytes(b"Not Found")


def test_validate_model_bytes_detects_lfs_pointer() -> None:
    pointer = b"version https://git-lfs.github.com/spec/v1\noid sha256:abc\nsize 1\n"
    with pytest.raises(ResourceError, match="Git LFS"):
        validate_model_bytes(pointer)


def test_validate_model_bytes_rejects_html() -> None:
    with pytest.raises(ResourceError, match="HTML"):
        validate_model_bytes(MODEL, "text/html; charset=utf-8")
    page = b"<!DOCTYPE html>" + b" " * MIN_MODEL_BYTES
    with pytest.raises(ResourceError, match="HTML"):
        validate_model_bytes(page)


# ---- local base ----
def test_local_directory_base(tmp_path: Path) -> None:
    (tmp_path / "tokens.json").write_text('["<blank>", "a"]', encoding="utf-8")
    (tmp_path / "am.mvn").write_text("<AddShift>", encoding="utf-8")
    (tmp_path / "model_quant.onnx").write_bytes(MODEL)
    loader = ResourceLoader(str(tmp_path))
    assert loader.load_json("tokens.json") == (["<blank>", "a"], "local")
    assert loader.load_text("am.mvn") == ("<AddShift>", "local")
    assert loader.load_model_bytes("model_quant.onnx") == (MODEL, "local")


def test_file_url_base(tmp_path: Path) -> None:
    (tmp_path / "tokens.json").write_text("[]", encoding="utf-8")
    loader = ResourceLoader(tmp_path.as_uri())
    assert loader.load_json("tokens.json") == ([], "local")


def test_local_missing_file_raises(tmp_path: Path) -> None:
    loader = ResourceLoader(str(tmp_path))
    with pytest.raises(ResourceError, match="Failed to read"):
        loader.load_text("am.mvn")


def test_local_invalid_json_raises(tmp_path: Path) -> None:
    (tmp_path / "tokens.json").write_text("[unclosed", encoding="utf-8")
    with pytest.raises(ResourceError, match="not valid JSON"):
        ResourceLoader(str(tmp_path)).load_json("tokens.json")


# ---- network + cache ----
def test_network_fetch_then_cache(tmp_path: Path) -> None:
    session = MagicMock()
    session.get.return_value = _response(MODEL)
    loader = ResourceLoader("https://example.com/m/", cache_dir=tmp_path, session=session)

    assert loader.load_model_bytes("model_quant.onnx") == (MODEL, "network")
    session.get.assert_called_once_with("https://example.com/m/model_quant.onnx", timeout=120.0)
    assert loader.cache_path("model_quant.onnx").read_bytes() == MODEL

    assert loader.load_model_bytes("model_quant.onnx") == (MODEL, "cache")
    assert session.get.call_count == 1


def test_corrupt_cache_entry_is_refetched(tmp_path: Path) -> None:
    session = MagicMock()
    session.get.return_value = _response(MODEL)
    loader = ResourceLoader("https://example.com/m", cache_dir=tmp_path, session=session)
    atomic_write(loader.cache_path("model_quant.onnx"), b"<html>error</html>")

    assert loader.load_model_bytes("model_quant.onnx") == (MODEL, "network")
    assert loader.cache_path("model_quant.onnx").read_bytes() == MODEL


def test_http_error_raises_resource_error(tmp_path: Path) -> None:
    session = MagicMock()
    session.get.return_value = _response(b"missing", status=404)
    loader = ResourceLoader("https://example.com/m", cache_dir=tmp_path, session=session)
    with pytest.raises(ResourceError, match="Failed to fetch"):
        loader.load_json("tokens.json")
    assert not loader.cache_path("tokens.json").exists()


def test_timeout_raises_resource_error(tmp_path: Path) -> None:
    session = MagicMock()
    session.get.side_effect = requests.exceptions.Timeout()
    loader = ResourceLoader("https://example.com/m", cache_dir=tmp_path, session=session, timeout_sec=3)
    with pytest.raises(ResourceError, match="Timed out"):
        loader.load_text("am.mvn")


def test_invalid_download_is_not_cached(tmp_path: Path) -> None:
    session = MagicMock()
    session.get.return_value = _response(b"<html>login</html>", "text/html")
    loader = ResourceLoader("https://example.com/m", cache_dir=tmp_path, session=session)
    with pytest.raises(ResourceError):
        loader.load_model_bytes("model_quant.onnx")
    assert not loader.cache_path("model_quant.onnx").exists()


def test_evict_removes_cached_entry(tmp_path: Path) -> None:
    loader = ResourceLoader("https://example.com/m", cache_dir=tmp_path)
    path = loader.cache_path("am.mvn")
    atomic_write(path, b"x")
    loader.evict("am.mvn")
    assert not path.exists()
    loader.evict("am.mvn")


def test_cache_paths_differ_per_base_url(tmp_path: Path) -> None:
    a = ResourceLoader("https://a.example/m", cache_dir=tmp_path)
    b = ResourceLoader("https://b.example/m", cache_dir=tmp_path)
    assert a.cache_path("tokens.json") != b.cache_path("tokens.json")
    assert a.cache_path("tokens.json").name.endswith("-tokens.json")
