from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .doctor import run_doctor
from .logging_config import server_log_level, setup_logging
from .operations import Operation
from .presets import style_names
from .profile import load_profile
from .service import ProcessResponse, VideoService
from .sources import copy_local_source, fetch_source


def _make_fetch(profile: dict):
    cfg = profile.get("fetch", {}) or {}

    def fetch(ref: str, dest: Path) -> Path:
        if Path(ref).is_file():
            return copy_local_source(Path(ref), dest)
        return fetch_source(
            ref,
            dest,
            timeout=float(cfg.get("timeout_seconds") or 60.0),
            chunk_bytes=int(cfg.get("chunk_bytes") or 1024 * 1024),
        )

    return fetch


def _service(args: argparse.Namespace) -> VideoService:
    profile = args.loaded_profile
    return VideoService(profile, fetch=_make_fetch(profile))


def _emit(resp: ProcessResponse) -> None:
    print(json.dumps(resp.to_dict(), indent=2))
    if not resp.success:
        sys.exit(1)


def _load_json_arg(value: str) -> Any:
    p = Path(value)
    if p.is_file():
        return json.loads(p.read_text(encoding="utf-8"))
    return json.loads(value)


def cmd_serve(args: argparse.Namespace) -> None:
    from .server.app import create_app

    profile = args.loaded_profile
    server_cfg = profile.get("server", {})
    host = args.host or server_cfg.get("host", "0.0.0.0")
    port = args.port or int(server_cfg.get("port", 3001))

    app = create_app(profile=profile)

    import uvicorn

    logging.getLogger(__name__).info("video processor server running on http://%s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level=server_log_level(profile))


def cmd_process(args: argparse.Namespace) -> None:
    params = _load_json_arg(args.params) if args.params else {}
    if not isinstance(params, dict):
        raise SystemExit("--params must be a JSON object")
    _emit(_service(args).process(args.video, args.operation, params))


def cmd_batch(args: argparse.Namespace) -> None:
    raw = _load_json_arg(args.operations)
    if isinstance(raw, dict):
        raw = raw.get("operations")
    if not isinstance(raw, list):
        raise SystemExit("operations must be a JSON list (or an object with an 'operations' list)")
    try:
        ops = [Operation.from_dict(item) for item in raw if isinstance(item, dict)]
    except ValueError as e:
        raise SystemExit(f"invalid operations: {e}") from e
    _emit(_service(args).process_batch(args.video, ops))


def cmd_style(args: argparse.Namespace) -> None:
    _emit(_service(args).apply_style(args.video, args.name))


def cmd_doctor(args: argparse.Namespace) -> None:
    profile = args.loaded_profile
    binary = str((profile.get("transcode", {}) or {}).get("binary") or "ffmpeg")
    report = run_doctor(binary)
    print(json.dumps({"ok": report.ok, "checks": report.checks}, indent=2))
    if not report.ok:
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="vproc", description="Video operation server and CLI")
    parser.add_argument("--profile", type=Path, default=None, help="Path to a YAML profile")
    parser.add_argument("--log-level", type=str, default=None, help="Overrides logging.level from the profile")
    parser.add_argument("--log-file", type=Path, default=None, help="Overrides logging.file from the profile")
    sub = parser.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("serve", help="Run the HTTP server.")
    s.add_argument("--host", type=str, default=None)
    s.add_argument("--port", type=int, default=None)
    s.set_defaults(func=cmd_serve)

    p = sub.add_parser("process", help="Apply a single operation to a video URL or local file.")
    p.add_argument("video", type=str)
    p.add_argument("operation", type=str)
    p.add_argument("--params", type=str, default=None, help="JSON object or path to a JSON file")
    p.set_defaults(func=cmd_process)

    b = sub.add_parser("batch", help="Apply an ordered list of operations.")
    b.add_argument("video", type=str)
    b.add_argument("operations", type=str, help="JSON list or path to a JSON file")
    b.set_defaults(func=cmd_batch)

    st = sub.add_parser("style", help="Apply a named style preset.")
    st.add_argument("video", type=str)
    st.add_argument("name", choices=style_names())
    st.set_defaults(func=cmd_style)

    d = sub.add_parser("doctor", help="Check that ffmpeg is available.")
    d.set_defaults(func=cmd_doctor)

    args = parser.parse_args(argv)
    args.loaded_profile = load_profile(args.profile)
    setup_logging(args.loaded_profile, level=args.log_level, log_file=args.log_file)
    args.func(args)


if __name__ == "__main__":
    main()
