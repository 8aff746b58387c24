"""Request-level orchestration: fetch, transform, publish, report.

Every request gets its own WorkingArea and runs its steps sequentially.
Failures never escape as exceptions; they become a ProcessResponse with
``success=False`` and a message prefixed by the stage that failed.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, ContextManager, Dict, Iterable, Mapping, Optional

from .errors import VideoProcessorError
from .ffmpeg import Invoker, make_invoker
from .operations import CompilerOptions, Operation
from .pipeline import PipelineResult, run_pipeline, run_single
from .presets import style_operations
from .publisher import LocalPublisher, Publisher
from .sources import fetch_source
from .workspace import WorkingArea

log = logging.getLogger(__name__)

BATCH_LABEL = "batch"

Fetcher = Callable[[str, Path], Path]


@dataclass
class ProcessResponse:
    success: bool
    operation: str
    processing_time_ms: int
    video_url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "video_url": self.video_url,
            "error": self.error,
            "processing_time_ms": self.processing_time_ms,
            "operation": self.operation,
        }


class _StageFailed(Exception):
    pass


def _stage(prefix: str, fn: Callable[[], Any]) -> Any:
    try:
        return fn()
    except VideoProcessorError as e:
        log.error("%s: %s", prefix, e)
        raise _StageFailed(f"{prefix}: {e}") from e
    except Exception as e:
        log.exception("%s", prefix)
        raise _StageFailed(f"{prefix}: {type(e).__name__}: {e}") from e


class VideoService:
    def __init__(
        self,
        profile: Mapping[str, Any],
        *,
        invoke: Optional[Invoker] = None,
        fetch: Optional[Fetcher] = None,
        publisher: Optional[Publisher] = None,
    ) -> None:
        self.profile = profile
        server = profile.get("server", {}) or {}
        transcode = profile.get("transcode", {}) or {}
        workspace = profile.get("workspace", {}) or {}

        self.invoke = invoke or make_invoker(profile)
        self.fetch = fetch or self._default_fetch
        self.publisher = publisher or LocalPublisher(
            Path(server.get("public_dir") or "public"),
            str(server.get("public_base_url") or "http://localhost:3001/public"),
        )
        self.options = CompilerOptions.from_profile(profile)
        root = workspace.get("root")
        self.workspace_root = Path(root) if root else None

        limit = int(transcode.get("max_concurrent") or 0)
        self._slots: Optional[threading.BoundedSemaphore] = threading.BoundedSemaphore(limit) if limit > 0 else None

    def _default_fetch(self, url: str, dest: Path) -> Path:
        cfg = self.profile.get("fetch", {}) or {}
        return fetch_source(
            url,
            dest,
            timeout=float(cfg.get("timeout_seconds") or 60.0),
            chunk_bytes=int(cfg.get("chunk_bytes") or 1024 * 1024),
        )

    def _transcode_slot(self) -> ContextManager[Any]:
        return self._slots if self._slots is not None else contextlib.nullcontext()

    def _execute(
        self,
        label: str,
        video_url: str,
        process_prefix: str,
        work: Callable[[Path, WorkingArea], PipelineResult],
    ) -> ProcessResponse:
        start = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - start) * 1000)

        log.info("processing %s with operation: %s", video_url, label)
        try:
            with WorkingArea(self.workspace_root) as area:
                source = _stage(
                    "Failed to download video",
                    lambda: self.fetch(video_url, area.new_input_path()),
                )

                def transform() -> PipelineResult:
                    with self._transcode_slot():
                        return work(source, area)

                result = _stage(process_prefix, transform)
                public_url = _stage(
                    "Failed to upload result",
                    lambda: self.publisher.publish(result.output_path),
                )
        except _StageFailed as e:
            return ProcessResponse(success=False, operation=label, processing_time_ms=elapsed_ms(), error=str(e))
        except VideoProcessorError as e:
            log.error("failed to create working area: %s", e)
            return ProcessResponse(success=False, operation=label, processing_time_ms=elapsed_ms(), error=str(e))

        ms = elapsed_ms()
        log.info("%s completed in %dms", label, ms)
        return ProcessResponse(success=True, operation=label, processing_time_ms=ms, video_url=public_url)

    def process(self, video_url: str, operation: str, parameters: Optional[Mapping[str, Any]] = None) -> ProcessResponse:
        def work(source: Path, area: WorkingArea) -> PipelineResult:
            return run_single(source, operation, parameters, area, invoke=self.invoke, options=self.options)

        return self._execute(operation, video_url, "Failed to process video", work)

    def process_batch(self, video_url: str, operations: Iterable[Operation]) -> ProcessResponse:
        ops = list(operations)

        def work(source: Path, area: WorkingArea) -> PipelineResult:
            return run_pipeline(source, ops, area, invoke=self.invoke, options=self.options)

        return self._execute(BATCH_LABEL, video_url, "Failed to process batch operations", work)

    def apply_style(self, video_url: str, name: str) -> ProcessResponse:
        """Run a named preset batch (see ``presets.STYLE_BATCHES``)."""
        return self.process_batch(video_url, style_operations(name))
