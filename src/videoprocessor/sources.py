"""Download the source video of a request into its working area."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from urllib.parse import urlparse

import requests

from .errors import FetchFailed

log = logging.getLogger(__name__)

DEFAULT_CHUNK_BYTES = 1024 * 1024


def fetch_source(
    url: str,
    dest: Path,
    *,
    timeout: float = 60.0,
    chunk_bytes: int = DEFAULT_CHUNK_BYTES,
    session: requests.Session | None = None,
) -> Path:
    parsed = urlparse(url or "")
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise FetchFailed(f"unsupported video url: {url!r}")

    http = session or requests
    dest = Path(dest)
    log.info("fetching %s", url)
    try:
        with http.get(url, stream=True, timeout=timeout) as resp:
            resp.raise_for_status()
            total = 0
            with dest.open("wb") as f:
                for chunk in resp.iter_content(chunk_size=chunk_bytes):
                    if chunk:
                        f.write(chunk)
                        total += len(chunk)
    except requests.RequestException as e:
        raise FetchFailed(str(e)) from e
    except OSError as e:
        raise FetchFailed(f"cannot write {dest}: {e}") from e

    log.info("fetched %d bytes into %s", total, dest)
    return dest


def copy_local_source(path: Path, dest: Path) -> Path:
    """Copy a local file into the working area (CLI use; the server never reads local paths)."""
    src = Path(path)
    if not src.is_file():
        raise FetchFailed(f"video not found: {src}")
    try:
        shutil.copyfile(src, dest)
    except OSError as e:
        raise FetchFailed(f"cannot copy {src}: {e}") from e
    return Path(dest)
