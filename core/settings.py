from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .paths import get_logs_dir, get_settings_path
from .settings_schema import SETTINGS_VALIDATOR

__all__ = [
    "DEFAULT_SETTINGS",
    "DEFAULT_UI_CONFIG",
    "DEFAULT_VIDEO_EXTENSIONS",
    "SETTINGS_VERSION",
    "load_settings",
    "merge_defaults",
    "save_settings",
    "video_extensions",
]

SETTINGS_VERSION = 1

DEFAULT_VIDEO_EXTENSIONS: List[str] = [".mp4", ".mkv", ".webm", ".mov", ".avi", ".m4v"]

DEFAULT_UI_CONFIG: Dict[str, Any] = {
    "defaultRows": 2,
    "defaultCols": 2,
    "defaultMuted": True,
    "singleAudio": True,
}


DEFAULT_SETTINGS: Dict[str, Any] = {
    "version": SETTINGS_VERSION,
    "library": {
        "root": None,
        "video_extensions": list(DEFAULT_VIDEO_EXTENSIONS),
    },
    "thumbnails": {
        "dir": None,
        "quality": 2,
        "staleness_policy": "exists",
        "ffmpeg_path": None,
        "ffprobe_path": None,
        "probe_timeout_s": None,
        "extract_timeout_s": None,
    },
    "server": {
        "host": "0.0.0.0",
        "ports": [8080, 8081],
        "public_dir": None,
        "cors_origins": [],
    },
    "search": {
        "max_results": 100,
    },
    "logging": {
        "level": "INFO",
        "json_file": True,
    },
    "ui": dict(DEFAULT_UI_CONFIG),
}


def merge_defaults(data: Dict[str, Any]) -> Dict[str, Any]:
    def _merge(default: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, value in default.items():
            if isinstance(value, dict):
                current = payload.get(key)
                if isinstance(current, dict):
                    result[key] = _merge(value, current)
                else:
                    result[key] = _merge(value, {})
            elif isinstance(value, list):
                current = payload.get(key)
                result[key] = list(current) if isinstance(current, list) else list(value)
            else:
                result[key] = payload.get(key, value)
        for key, value in payload.items():
            if key not in result:
                result[key] = value
        return result

    return _merge(DEFAULT_SETTINGS, data or {})


def _apply_migrations(settings: Dict[str, Any], working_dir: Path) -> Dict[str, Any]:
    version = settings.get("version")
    try:
        version_int = int(version)
    except (TypeError, ValueError):
        version_int = 0
    if version_int < SETTINGS_VERSION:
        # Pre-1 files were the bare UI blob written by the old config endpoint.
        legacy_ui = {key: settings.pop(key) for key in list(settings) if key in DEFAULT_UI_CONFIG}
        if legacy_ui:
            settings["ui"] = {**settings.get("ui", {}), **legacy_ui}
        settings["version"] = SETTINGS_VERSION
    return settings


def _log_unknown_keys(settings: Dict[str, Any], working_dir: Path) -> None:
    unknown = list(SETTINGS_VALIDATOR.unknown_keys(settings))
    if not unknown:
        return
    logs_dir = get_logs_dir(working_dir)
    payload = {
        "ts": time.time(),
        "unknown": unknown,
    }
    target = logs_dir / "settings_unknown.json"
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
    except OSError:
        return


def load_settings(working_dir: Path) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    candidate = get_settings_path(working_dir)
    try:
        with open(candidate, "r", encoding="utf-8") as handle:
            loaded = json.load(handle)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        loaded = None
    if isinstance(loaded, dict):
        data = loaded
    data = _apply_migrations(dict(data), working_dir)
    merged = merge_defaults(data)
    merged.setdefault("working_dir", str(working_dir))
    _log_unknown_keys(merged, working_dir)
    return merged


def save_settings(settings: Dict[str, Any], working_dir: Path) -> None:
    merged = merge_defaults(_apply_migrations(dict(settings), working_dir))
    merged.setdefault("working_dir", str(working_dir))
    path = get_settings_path(working_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(merged, handle, ensure_ascii=False, indent=4)


def video_extensions(settings: Mapping[str, Any] | None) -> frozenset[str]:
    """Return the configured video allow-list, lower-cased and dot-prefixed."""

    library = settings.get("library") if isinstance(settings, Mapping) else None
    raw = library.get("video_extensions") if isinstance(library, Mapping) else None
    if not isinstance(raw, (list, tuple, set, frozenset)) or not raw:
        raw = DEFAULT_VIDEO_EXTENSIONS
    normalized = set()
    for value in raw:
        text = str(value).strip().lower()
        if not text:
            continue
        normalized.add(text if text.startswith(".") else f".{text}")
    return frozenset(normalized)
