"""Thin HTTP client for a running videoprocessor server."""

from __future__ import annotations

import os
from typing import Any, Dict, Iterable, Optional

import requests

from .operations import Operation, OperationKind

DEFAULT_BASE_URL = "http://localhost:3001"
BASE_URL_ENV = "VPROC_SERVER_URL"


class VideoProcessorClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: float = 600.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv(BASE_URL_ENV) or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def health(self) -> Dict[str, Any]:
        resp = self.session.get(f"{self.base_url}/health", timeout=10)
        resp.raise_for_status()
        return resp.json()

    def process(self, video_url: str, operation: str, parameters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._post(
            "/process",
            {"video_url": video_url, "operation": operation, "parameters": parameters or {}},
        )

    def batch(self, video_url: str, operations: Iterable[Operation]) -> Dict[str, Any]:
        return self._post(
            "/batch",
            {"video_url": video_url, "operations": [op.to_dict() for op in operations]},
        )

    def apply_style(self, video_url: str, name: str) -> Dict[str, Any]:
        return self._post(f"/style/{name}", {"video_url": video_url})

    # Convenience wrappers, one per operation kind.

    def adjust_brightness(self, video_url: str, brightness: float) -> Dict[str, Any]:
        return self.process(video_url, OperationKind.BRIGHTNESS_ADJUST.value, {"brightness": brightness})

    def adjust_speed(self, video_url: str, speed: float) -> Dict[str, Any]:
        return self.process(video_url, OperationKind.SPEED_ADJUST.value, {"speed": speed})

    def trim(self, video_url: str, start_time: float, end_time: Optional[float] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"startTime": start_time}
        if end_time is not None:
            params["endTime"] = end_time
        return self.process(video_url, OperationKind.TRIM.value, params)

    def crop(self, video_url: str, x: int, y: int, width: int, height: int) -> Dict[str, Any]:
        return self.process(
            video_url,
            OperationKind.CROP.value,
            {"x": x, "y": y, "width": width, "height": height},
        )

    def add_text(self, video_url: str, text: str, position: str = "center") -> Dict[str, Any]:
        return self.process(video_url, OperationKind.TEXT_OVERLAY.value, {"text": text, "position": position})

    def apply_filter(self, video_url: str, filter_name: str) -> Dict[str, Any]:
        return self.process(video_url, OperationKind.STYLE_FILTER.value, {"filter": filter_name})
