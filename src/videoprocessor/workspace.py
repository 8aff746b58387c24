"""Request-scoped working directory for intermediate files.

A WorkingArea owns every file created inside it. Superseded pipeline outputs
are released as soon as the next step succeeds; whatever is left when the
request ends is removed by ``close()``, which also runs on error paths when
the area is used as a context manager.

Deletion is best-effort: failures are logged and never raised.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import List, Optional

from .errors import ResourceAllocationFailed

log = logging.getLogger(__name__)


class WorkingArea:
    def __init__(self, root: Optional[Path] = None, *, prefix: str = "vproc_") -> None:
        self._root = Path(root) if root else None
        self._prefix = prefix
        self._path: Optional[Path] = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise ResourceAllocationFailed("working area is not open")
        return self._path

    @property
    def is_open(self) -> bool:
        return self._path is not None

    def open(self) -> "WorkingArea":
        if self._path is not None:
            return self
        try:
            if self._root is not None:
                self._root.mkdir(parents=True, exist_ok=True)
            self._path = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._root))
        except OSError as e:
            raise ResourceAllocationFailed(f"cannot create working area: {e}") from e
        log.debug("working area opened: %s", self._path)
        return self

    def _new_path(self, stem: str, suffix: str) -> Path:
        # uuid4 carries 122 random bits; collisions are not a practical concern.
        return self.path / f"{stem}_{uuid.uuid4().hex}{suffix}"

    def new_output_path(self, suffix: str = ".mp4") -> Path:
        """Reserve a unique output name. No file is created."""
        return self._new_path("output", suffix)

    def new_input_path(self, suffix: str = ".mp4") -> Path:
        return self._new_path("input", suffix)

    def files(self) -> List[Path]:
        if self._path is None or not self._path.exists():
            return []
        return sorted(p for p in self._path.iterdir() if p.is_file())

    def release(self, previous: Path, *, original: Path) -> bool:
        """Delete a superseded frontier file unless it is the original source.

        Returns True when a file was removed.
        """
        previous = Path(previous)
        if _same_path(previous, Path(original)):
            return False
        try:
            previous.unlink()
        except FileNotFoundError:
            log.debug("intermediate already gone: %s", previous)
            return False
        except OSError as e:
            log.warning("failed to remove intermediate %s: %s", previous, e)
            return False
        log.debug("removed intermediate %s", previous)
        return True

    def close(self) -> None:
        if self._path is None:
            return
        path, self._path = self._path, None
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            log.warning("cleanup failed for %s: %s", path, e)
            return
        log.debug("working area closed: %s", path)

    def __enter__(self) -> "WorkingArea":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()


def _same_path(a: Path, b: Path) -> bool:
    if a == b:
        return True
    try:
        return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))
    except (OSError, ValueError):
        return False
