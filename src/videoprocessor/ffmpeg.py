from __future__ import annotations

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from .errors import TranscodeFailed
from .operations import CompiledInvocation
from .utils import subprocess_flags as _subprocess_flags

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscodeResult:
    output_path: Path
    elapsed_seconds: float
    stdout: str = ""


Invoker = Callable[[CompiledInvocation], TranscodeResult]


def _require_cmd(cmd: str) -> str:
    path = shutil.which(cmd)
    if not path:
        raise TranscodeFailed(
            f"Required executable '{cmd}' not found in PATH. "
            "Install ffmpeg and ensure it is available on PATH."
        )
    return path


def run_ffmpeg(
    invocation: CompiledInvocation,
    *,
    binary: str = "ffmpeg",
    loglevel: str = "error",
    timeout: Optional[float] = None,
) -> TranscodeResult:
    """Run one compiled step through ffmpeg.

    Returns the declared output path on exit code 0 without checking the
    file. Non-zero exit, a timeout, or a missing binary raise TranscodeFailed.
    """
    exe = _require_cmd(binary)
    cmd = [exe, "-hide_banner", "-v", loglevel, *invocation.args]
    log.debug("ffmpeg: %s", " ".join(cmd))

    start = time.perf_counter()
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
            **_subprocess_flags(),
        )
    except subprocess.TimeoutExpired as e:
        elapsed = time.perf_counter() - start
        log.error("ffmpeg timed out after %.2fs", elapsed)
        raise TranscodeFailed(f"timed out after {timeout}s") from e
    except OSError as e:
        raise TranscodeFailed(f"{type(e).__name__}: {e}") from e
    elapsed = time.perf_counter() - start
    log.info("ffmpeg completed in %.3fs", elapsed)

    if proc.returncode != 0:
        err = proc.stderr.decode("utf-8", errors="replace").strip()
        log.error("ffmpeg failed (exit=%s): %s", proc.returncode, err)
        raise TranscodeFailed(err, returncode=proc.returncode)

    return TranscodeResult(
        output_path=invocation.output_path,
        elapsed_seconds=elapsed,
        stdout=proc.stdout.decode("utf-8", errors="replace"),
    )


def make_invoker(profile: Mapping[str, Any]) -> Invoker:
    """Bind run_ffmpeg to the ``transcode`` section of a profile."""
    cfg = profile.get("transcode", {}) or {}
    binary = str(cfg.get("binary") or "ffmpeg")
    loglevel = str(cfg.get("loglevel") or "error")
    timeout = cfg.get("timeout_seconds")
    timeout = float(timeout) if timeout else None

    def invoke(invocation: CompiledInvocation) -> TranscodeResult:
        return run_ffmpeg(invocation, binary=binary, loglevel=loglevel, timeout=timeout)

    return invoke


def ffmpeg_version(binary: str = "ffmpeg") -> Optional[str]:
    """First line of ``ffmpeg -version``, or None when it cannot run."""
    if shutil.which(binary) is None:
        return None
    try:
        out = subprocess.check_output(
            [binary, "-version"], text=True, stderr=subprocess.STDOUT, **_subprocess_flags()
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    lines = out.splitlines()
    return lines[0].strip() if lines else None
