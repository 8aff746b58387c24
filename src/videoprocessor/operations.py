from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from .errors import UnsupportedOperation
from .params import (
    BrightnessParams,
    CropParams,
    ParameterSet,
    SpeedParams,
    StyleFilterParams,
    TextOverlayParams,
    TrimParams,
)
from .utils import format_number


class OperationKind(str, Enum):
    BRIGHTNESS_ADJUST = "brightness-adjust"
    SPEED_ADJUST = "speed-adjust"
    TRIM = "trim"
    CROP = "crop"
    TEXT_OVERLAY = "text-overlay"
    STYLE_FILTER = "style-filter"

    @classmethod
    def parse(cls, name: "str | OperationKind") -> "OperationKind":
        if isinstance(name, OperationKind):
            return name
        kind = _KIND_ALIASES.get(name) if isinstance(name, str) else None
        if kind is None:
            raise UnsupportedOperation(str(name))
        return kind


# Wire names used by the web editor's clients.
_KIND_ALIASES: Dict[str, OperationKind] = {k.value: k for k in OperationKind}
_KIND_ALIASES.update(
    {
        "adjustBrightness": OperationKind.BRIGHTNESS_ADJUST,
        "adjustSpeed": OperationKind.SPEED_ADJUST,
        "trimVideo": OperationKind.TRIM,
        "cropVideo": OperationKind.CROP,
        "addText": OperationKind.TEXT_OVERLAY,
        "applyFilter": OperationKind.STYLE_FILTER,
    }
)


@dataclass(frozen=True)
class Operation:
    kind: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    order: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Operation":
        kind = data.get("type", data.get("kind"))
        params = data.get("parameters")
        order = data.get("order", 0)
        if order is None:
            order = 0
        elif isinstance(order, float) and order.is_integer():
            order = int(order)
        elif isinstance(order, bool) or not isinstance(order, int):
            raise ValueError("order_must_be_integer")
        return cls(
            kind=str(kind) if kind is not None else "",
            parameters=dict(params) if isinstance(params, Mapping) else {},
            order=order,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "parameters": dict(self.parameters), "order": self.order}


@dataclass(frozen=True)
class CompilerOptions:
    font_file: Optional[Path] = None
    fontsize: int = 24
    fontcolor: str = "white"

    @classmethod
    def from_profile(cls, profile: Mapping[str, Any]) -> "CompilerOptions":
        overlay = profile.get("overlay", {}) or {}
        font = overlay.get("font_file")
        return cls(
            font_file=Path(font) if font else None,
            fontsize=int(overlay.get("fontsize", 24)),
            fontcolor=str(overlay.get("fontcolor", "white")),
        )


@dataclass(frozen=True)
class CompiledInvocation:
    """ffmpeg arguments for one step, without the executable itself."""

    args: tuple
    input_path: Path
    output_path: Path


STYLE_PRESETS: Dict[str, str] = {
    "cinematic": "eq=contrast=1.2:brightness=0.1:saturation=1.1,curves=all='0/0 0.5/0.58 1/1'",
    "vintage": (
        "eq=contrast=0.9:brightness=0.05:saturation=0.8,"
        "colorchannelmixer=.393:.769:.189:0:.349:.686:.168:0:.272:.534:.131"
    ),
}
FALLBACK_STYLE = "eq=contrast=1.1:brightness=0.05"

TEXT_Y_POSITIONS: Dict[str, str] = {
    "top": "50",
    "bottom": "h-th-50",
}
TEXT_Y_CENTER = "(h-th)/2"


def _escape(text: str, special: str) -> str:
    return "".join("\\" + ch if ch in special else ch for ch in text)


def _escape_option_value(value: str) -> str:
    # Option parser level first, then filtergraph level.
    return _escape(_escape(value, "\\':"), "\\'[],;")


def escape_drawtext_text(text: str) -> str:
    """Escape user text for an unquoted drawtext ``text=`` option.

    Two levels apply: the option parser (``\\ ' :``), then the filtergraph
    parser (``\\ ' [ ] , ;``). The result can never terminate the option or
    start another filter. Line breaks collapse to spaces.
    """
    flat = " ".join(text.splitlines())
    flat = "".join(ch for ch in flat if ch.isprintable())
    return _escape_option_value(flat)


def atempo_chain(speed: float) -> List[str]:
    """atempo stages whose product is ``speed``; each stage stays in 0.5..2.0."""
    stages: List[str] = []
    remaining = float(speed)
    while remaining > 2.0:
        stages.append("atempo=2")
        remaining /= 2.0
    while remaining < 0.5:
        stages.append("atempo=0.5")
        remaining /= 0.5
    stages.append(f"atempo={format_number(remaining)}")
    return stages


def _brightness_args(params: ParameterSet, options: CompilerOptions) -> List[str]:
    p = BrightnessParams.from_params(params)
    return ["-vf", f"eq=brightness={format_number(p.brightness / 100.0)}"]


def _speed_args(params: ParameterSet, options: CompilerOptions) -> List[str]:
    p = SpeedParams.from_params(params)
    return [
        "-vf",
        f"setpts={format_number(1.0 / p.speed)}*PTS",
        "-af",
        ",".join(atempo_chain(p.speed)),
    ]


def _trim_args(params: ParameterSet, options: CompilerOptions) -> List[str]:
    p = TrimParams.from_params(params)
    args = ["-ss", format_number(p.start_time)]
    if p.end_time is not None:
        args += ["-t", format_number(p.end_time - p.start_time)]
    return args


def _crop_args(params: ParameterSet, options: CompilerOptions) -> List[str]:
    p = CropParams.from_params(params)
    return ["-vf", f"crop={p.width}:{p.height}:{p.x}:{p.y}"]


def _text_overlay_args(params: ParameterSet, options: CompilerOptions) -> List[str]:
    p = TextOverlayParams.from_params(params)
    y = TEXT_Y_POSITIONS.get(p.position, TEXT_Y_CENTER)
    parts = []
    if options.font_file is not None:
        parts.append(f"fontfile={_escape_option_value(str(options.font_file))}")
    parts += [
        f"text={escape_drawtext_text(p.text)}",
        "expansion=none",
        f"fontcolor={_escape_option_value(options.fontcolor)}",
        f"fontsize={int(options.fontsize)}",
        "x=(w-tw)/2",
        f"y={y}",
    ]
    return ["-vf", "drawtext=" + ":".join(parts)]


def _style_filter_args(params: ParameterSet, options: CompilerOptions) -> List[str]:
    p = StyleFilterParams.from_params(params)
    return ["-vf", STYLE_PRESETS.get(p.filter, FALLBACK_STYLE)]


_TEMPLATES: Dict[OperationKind, Callable[[ParameterSet, CompilerOptions], List[str]]] = {
    OperationKind.BRIGHTNESS_ADJUST: _brightness_args,
    OperationKind.SPEED_ADJUST: _speed_args,
    OperationKind.TRIM: _trim_args,
    OperationKind.CROP: _crop_args,
    OperationKind.TEXT_OVERLAY: _text_overlay_args,
    OperationKind.STYLE_FILTER: _style_filter_args,
}


def compile_operation(
    input_path: Path,
    kind: "str | OperationKind",
    params: Optional[ParameterSet],
    output_path: Path,
    *,
    options: Optional[CompilerOptions] = None,
) -> CompiledInvocation:
    """Build the ffmpeg arguments for one operation.

    Pure: nothing is read, written or created. Unknown kinds raise
    ``UnsupportedOperation`` before any argument is built.
    """
    op_kind = OperationKind.parse(kind)
    template = _TEMPLATES[op_kind]
    opts = options or CompilerOptions()

    args: List[str] = ["-i", str(input_path)]
    args += template(params or {}, opts)
    args += ["-y", str(output_path)]
    return CompiledInvocation(args=tuple(args), input_path=Path(input_path), output_path=Path(output_path))
