from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import Protocol

from .errors import PublishFailed

log = logging.getLogger(__name__)


class Publisher(Protocol):
    def publish(self, file_path: Path) -> str:
        ...


class LocalPublisher:
    """Copies finished videos under ``<public_dir>/processed`` and returns their URL.

    The server mounts ``public_dir`` at ``/public``, so the default base URL
    points back at this process.
    """

    subdir = "processed"

    def __init__(self, public_dir: Path, base_url: str) -> None:
        self.public_dir = Path(public_dir)
        self.base_url = base_url.rstrip("/")

    @property
    def target_dir(self) -> Path:
        return self.public_dir / self.subdir

    def publish(self, file_path: Path) -> str:
        file_path = Path(file_path)
        unique_name = f"{uuid.uuid4().hex}_{file_path.name}"
        destination = self.target_dir / unique_name
        try:
            self.target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(file_path, destination)
        except OSError as e:
            raise PublishFailed(f"cannot copy {file_path.name}: {e}") from e

        url = f"{self.base_url}/{self.subdir}/{unique_name}"
        log.info("processed video saved to: %s", url)
        return url
