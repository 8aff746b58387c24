from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

PROFILE_ENV = "VPROC_PROFILE"


def default_profile() -> Dict[str, Any]:
    return {
        "server": {
            "host": "0.0.0.0",
            "port": 3001,
            "public_dir": "public",
            "public_base_url": "http://localhost:3001/public",
            "cors_origins": ["*"],
        },
        "transcode": {
            "binary": "ffmpeg",
            "loglevel": "error",
            "timeout_seconds": None,  # None = let ffmpeg run to completion
            "max_concurrent": 0,  # 0 = unbounded
        },
        "fetch": {
            "timeout_seconds": 60.0,
            "chunk_bytes": 1024 * 1024,
        },
        "workspace": {
            "root": None,  # None = system temp dir
        },
        "overlay": {
            "font_file": None,
            "fontsize": 24,
            "fontcolor": "white",
        },
        "logging": {
            "level": "INFO",
            "file": None,
            "modules": {},  # e.g. {"pipeline": "DEBUG"}
            "server_level": "warning",
        },
    }


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_profile(profile_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load a YAML profile on top of the defaults.

    Falls back to $VPROC_PROFILE when no path is given; with neither, the
    defaults are returned unchanged.
    """
    if profile_path is None:
        env_path = os.getenv(PROFILE_ENV)
        if not env_path:
            return default_profile()
        profile_path = Path(env_path)

    profile_path = Path(profile_path)
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Profile YAML must be a mapping")
    return _merge(default_profile(), data)
