"""Exceptions raised while turning a request into a processed video."""

from __future__ import annotations

from typing import Optional


class VideoProcessorError(Exception):
    """Base class for every failure the service reports to callers."""


class UnsupportedOperation(VideoProcessorError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"Unsupported operation: {kind}")
        self.kind = kind


class TranscodeFailed(VideoProcessorError):
    """ffmpeg exited non-zero, timed out, or could not be started."""

    def __init__(self, stderr: str, *, returncode: Optional[int] = None) -> None:
        super().__init__(f"FFmpeg failed: {stderr}")
        self.stderr = stderr
        self.returncode = returncode


class ResourceAllocationFailed(VideoProcessorError):
    pass


class FetchFailed(VideoProcessorError):
    pass


class PublishFailed(VideoProcessorError):
    pass
