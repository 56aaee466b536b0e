from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

__all__ = [
    "ensure_working_dir_structure",
    "get_logs_dir",
    "get_public_dir",
    "get_settings_path",
    "get_thumbs_dir",
    "resolve_library_root",
    "resolve_working_dir",
    "to_catalog_path",
]

HOME_ENV = "VIDGRID_HOME"


def _expand_path(value: str) -> Path:
    expanded = os.path.expandvars(os.path.expanduser(value))
    return Path(expanded).resolve()


def _section(settings: Optional[Mapping[str, Any]], name: str) -> Mapping[str, Any]:
    if not settings:
        return {}
    value = settings.get(name)
    return value if isinstance(value, Mapping) else {}


def resolve_working_dir() -> Path:
    """Return the VidGrid working directory.

    ``VIDGRID_HOME`` wins when set; otherwise the current directory is used, so
    ``thumbs/``, ``public/`` and ``settings.json`` live next to where the tools
    are started.
    """

    env_home = os.environ.get(HOME_ENV)
    if env_home and env_home.strip():
        return _expand_path(env_home.strip())
    return Path.cwd()


def get_settings_path(working_dir: Path) -> Path:
    return working_dir / "settings.json"


def get_logs_dir(working_dir: Path) -> Path:
    return working_dir / "logs"


def get_thumbs_dir(working_dir: Path, settings: Optional[Mapping[str, Any]] = None) -> Path:
    configured = _section(settings, "thumbnails").get("dir")
    if isinstance(configured, str) and configured.strip():
        candidate = Path(os.path.expandvars(os.path.expanduser(configured.strip())))
        return candidate if candidate.is_absolute() else (working_dir / candidate)
    return working_dir / "thumbs"


def get_public_dir(working_dir: Path, settings: Optional[Mapping[str, Any]] = None) -> Path:
    configured = _section(settings, "server").get("public_dir")
    if isinstance(configured, str) and configured.strip():
        candidate = Path(os.path.expandvars(os.path.expanduser(configured.strip())))
        return candidate if candidate.is_absolute() else (working_dir / candidate)
    return working_dir / "public"


def resolve_library_root(
    candidate: Optional[str],
    working_dir: Path,
    settings: Optional[Mapping[str, Any]] = None,
) -> Path:
    """Resolve the media root from a CLI argument, then settings, then ``.``."""

    value = candidate
    if not value:
        configured = _section(settings, "library").get("root")
        value = configured if isinstance(configured, str) and configured.strip() else "."
    path = Path(os.path.expandvars(os.path.expanduser(value)))
    if not path.is_absolute():
        path = working_dir / path
    return path.resolve()


def to_catalog_path(relative: str | os.PathLike[str]) -> str:
    """Return *relative* with ``/`` separators, the form used in catalog entries."""

    text = os.fspath(relative)
    if os.sep != "/":
        text = text.replace(os.sep, "/")
    return text


def ensure_working_dir_structure(working_dir: Path, settings: Optional[Mapping[str, Any]] = None) -> None:
    for directory in (
        working_dir,
        get_logs_dir(working_dir),
        get_thumbs_dir(working_dir, settings),
    ):
        directory.mkdir(parents=True, exist_ok=True)
