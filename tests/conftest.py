from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

from videoprocessor.errors import TranscodeFailed
from videoprocessor.ffmpeg import TranscodeResult
from videoprocessor.operations import CompiledInvocation


class FakeInvoker:
    """Stands in for ffmpeg: records each call and writes the declared output."""

    def __init__(self, fail_on: Optional[int] = None, stderr: str = "boom") -> None:
        self.calls: List[CompiledInvocation] = []
        self.fail_on = fail_on
        self.stderr = stderr

    def __call__(self, invocation: CompiledInvocation) -> TranscodeResult:
        self.calls.append(invocation)
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            # A real ffmpeg often leaves a partial file behind.
            invocation.output_path.write_bytes(b"partial")
            raise TranscodeFailed(self.stderr, returncode=1)
        src = Path(invocation.input_path).read_bytes()
        invocation.output_path.write_bytes(src + b"|" + " ".join(invocation.args[2:-2]).encode())
        return TranscodeResult(output_path=invocation.output_path, elapsed_seconds=0.01)

    def filters(self) -> List[str]:
        out = []
        for call in self.calls:
            args = list(call.args)
            out.append(args[args.index("-vf") + 1] if "-vf" in args else " ".join(args[2:-2]))
        return out


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def source_video(tmp_path: Path) -> Path:
    p = tmp_path / "source.mp4"
    p.write_bytes(b"source")
    return p


@pytest.fixture
def invoker_factory():
    return FakeInvoker


@pytest.fixture(autouse=True)
def _reset_package_logging():
    """Undo any ``setup_logging`` a test (or ``cli.main``) performed."""
    import logging

    import videoprocessor.logging_config as logging_config

    root = logging.getLogger(logging_config.ROOT_LOGGER)
    saved = (list(root.handlers), root.level, root.propagate)
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in saved[0]:
            handler.close()
    for handler in saved[0]:
        root.addHandler(handler)
    root.setLevel(saved[1])
    root.propagate = saved[2]
    for name in list(logging.Logger.manager.loggerDict):
        if name.startswith(logging_config.ROOT_LOGGER + "."):
            logging.getLogger(name).setLevel(logging.NOTSET)
    logging_config._CONFIGURED = False
