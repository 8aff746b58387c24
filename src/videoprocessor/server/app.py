from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..doctor import health_payload
from ..ffmpeg import Invoker
from ..operations import Operation
from ..presets import STYLE_BATCHES, style_names
from ..profile import load_profile
from ..publisher import Publisher
from ..service import Fetcher, VideoService


def _require_object(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="body_must_be_object")
    return body


def _require_url(body: Mapping[str, Any]) -> str:
    url = body.get("video_url")
    if not isinstance(url, str) or not url.strip():
        raise HTTPException(status_code=400, detail="video_url_required")
    return url.strip()


def _parse_operations(body: Mapping[str, Any]) -> List[Operation]:
    raw = body.get("operations")
    if not isinstance(raw, list):
        raise HTTPException(status_code=400, detail="operations_must_be_list")
    ops: List[Operation] = []
    for item in raw:
        if not isinstance(item, dict):
            raise HTTPException(status_code=400, detail="operation_must_be_object")
        if "parameters" in item and not isinstance(item["parameters"], dict):
            raise HTTPException(status_code=400, detail="parameters_must_be_object")
        try:
            ops.append(Operation.from_dict(item))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
    return ops


def create_app(
    *,
    profile_path: Optional[Path] = None,
    profile: Optional[Dict[str, Any]] = None,
    invoke: Optional[Invoker] = None,
    fetch: Optional[Fetcher] = None,
    publisher: Optional[Publisher] = None,
) -> FastAPI:
    profile = profile if profile is not None else load_profile(profile_path)
    server_cfg = profile.get("server", {}) or {}
    transcode_cfg = profile.get("transcode", {}) or {}

    service = VideoService(profile, invoke=invoke, fetch=fetch, publisher=publisher)

    app = FastAPI(title="videoprocessor", version=__version__)
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(server_cfg.get("cors_origins") or ["*"]),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    public_dir = Path(server_cfg.get("public_dir") or "public")
    public_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/public", StaticFiles(directory=str(public_dir)), name="public")

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse(health_payload(str(transcode_cfg.get("binary") or "ffmpeg")))

    @app.post("/process")
    def process(body: Any = Body(None)) -> JSONResponse:
        body = _require_object(body)
        url = _require_url(body)
        operation = body.get("operation")
        if not isinstance(operation, str) or not operation:
            raise HTTPException(status_code=400, detail="operation_required")
        parameters = body.get("parameters", {})
        if parameters is None:
            parameters = {}
        if not isinstance(parameters, dict):
            raise HTTPException(status_code=400, detail="parameters_must_be_object")

        resp = service.process(url, operation, parameters)
        return JSONResponse(resp.to_dict())

    @app.post("/batch")
    def batch(body: Any = Body(None)) -> JSONResponse:
        body = _require_object(body)
        url = _require_url(body)
        ops = _parse_operations(body)
        resp = service.process_batch(url, ops)
        return JSONResponse(resp.to_dict())

    @app.get("/styles")
    def styles() -> JSONResponse:
        return JSONResponse(
            {name: [op.to_dict() for op in STYLE_BATCHES[name]] for name in style_names()}
        )

    @app.post("/style/{name}")
    def style(name: str, body: Any = Body(None)) -> JSONResponse:
        body = _require_object(body)
        url = _require_url(body)
        if name not in STYLE_BATCHES:
            raise HTTPException(status_code=404, detail="style_not_found")
        resp = service.apply_style(url, name)
        return JSONResponse(resp.to_dict())

    return app
