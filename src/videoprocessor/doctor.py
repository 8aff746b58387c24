from __future__ import annotations

import shutil
from dataclasses import dataclass
from typing import Dict, Optional

from . import __version__
from .ffmpeg import ffmpeg_version


@dataclass(frozen=True)
class DoctorReport:
    ok: bool
    checks: Dict[str, Dict[str, object]]


def _which(cmd: str) -> Optional[str]:
    return shutil.which(cmd)


def run_doctor(binary: str = "ffmpeg") -> DoctorReport:
    checks: Dict[str, Dict[str, object]] = {}

    ffmpeg_path = _which(binary)
    checks["ffmpeg"] = {
        "found": ffmpeg_path is not None,
        "path": ffmpeg_path,
        "version": ffmpeg_version(binary) if ffmpeg_path else None,
    }

    ok = bool(checks["ffmpeg"]["found"])
    return DoctorReport(ok=ok, checks=checks)


def health_payload(binary: str = "ffmpeg") -> Dict[str, object]:
    """Shape returned by ``GET /health``."""
    report = run_doctor(binary)
    return {
        "status": "healthy",
        "ffmpeg_available": report.ok,
        "version": __version__,
    }
