"""Logging setup driven by the ``logging`` section of the YAML profile.

Every module logs through ``logging.getLogger(__name__)``; this module only
wires the ``videoprocessor`` logger to its handlers once, at CLI startup.

Profile keys (see ``profile.default_profile``)::

    logging:
      level: INFO
      file: null            # optional path, written in addition to stderr
      modules:              # per-module levels, names relative to the package
        pipeline: DEBUG
      server_level: warning # handed to uvicorn

``VPROC_LOG_MODULE_LEVELS="pipeline=DEBUG,ffmpeg=WARNING"`` overrides
``modules`` without editing the profile.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

ROOT_LOGGER = "videoprocessor"
MODULE_LEVELS_ENV = "VPROC_LOG_MODULE_LEVELS"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

LevelLike = Union[int, str, None]

_CONFIGURED = False


def parse_level(value: LevelLike, default: int = logging.INFO) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    return default


def _qualify(name: str) -> str:
    name = name.strip()
    return name if name.startswith(ROOT_LOGGER) else f"{ROOT_LOGGER}.{name}"


def _env_module_levels(text: str) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for part in re.split(r"[;,]+", text or ""):
        name, sep, level_str = part.partition("=")
        if not sep:
            name, sep, level_str = part.partition(":")
        if not sep or not name.strip():
            continue
        level = parse_level(level_str, default=-1)
        if level >= 0:
            out[_qualify(name)] = level
    return out


def module_levels(cfg: Mapping[str, Any], env: Optional[str] = None) -> Dict[str, int]:
    """Per-module levels from the profile, then the environment on top.

    Unknown level names are skipped.
    """
    out: Dict[str, int] = {}
    modules = cfg.get("modules") or {}
    if isinstance(modules, Mapping):
        for name, value in modules.items():
            level = parse_level(value, default=-1)
            if level >= 0:
                out[_qualify(str(name))] = level
    out.update(_env_module_levels(env if env is not None else os.getenv(MODULE_LEVELS_ENV, "")))
    return out


def setup_logging(
    profile: Optional[Mapping[str, Any]] = None,
    *,
    level: LevelLike = None,
    log_file: Optional[Path] = None,
    force: bool = False,
) -> int:
    """Attach stderr (and optionally file) handlers to the package logger.

    Explicit ``level``/``log_file`` arguments win over the profile. Returns
    the effective package level. Later calls are no-ops unless ``force``.
    """
    global _CONFIGURED
    logger = logging.getLogger(ROOT_LOGGER)
    if _CONFIGURED and not force:
        return logger.level

    cfg = (profile or {}).get("logging", {}) or {}
    effective = parse_level(level if level is not None else cfg.get("level"))
    file_value = log_file or cfg.get("file")
    formatter = logging.Formatter(str(cfg.get("format") or DEFAULT_FORMAT), datefmt="%Y-%m-%d %H:%M:%S")

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(effective)

    # Handlers pass everything; module overrides below the package level still show.
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if file_value:
        path = Path(file_value)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False

    for name, lvl in module_levels(cfg).items():
        logging.getLogger(name).setLevel(lvl)

    _CONFIGURED = True
    return effective


def server_log_level(profile: Mapping[str, Any]) -> str:
    """uvicorn's ``log_level`` string for ``vproc serve``."""
    cfg = profile.get("logging", {}) or {}
    return str(cfg.get("server_level") or "warning").lower()
