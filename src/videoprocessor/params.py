"""Typed views over the loose ``parameters`` bag of an operation.

Resolution never raises: a missing key or a value of the wrong type yields the
field's default. Callers get plain dataclasses and never touch the raw
mapping themselves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, TypeVar

T = TypeVar("T")

ParameterSet = Mapping[str, Any]


def resolve(params: Optional[ParameterSet], key: str, expected: type, default: T) -> Any:
    """Return ``params[key]`` coerced to ``expected``, or ``default``.

    Numbers accept both int and float inputs. ``bool`` is never accepted as a
    number even though it subclasses int.
    """
    if not params or key not in params:
        return default
    value = params[key]

    if expected is bool:
        return value if isinstance(value, bool) else default

    if expected is str:
        return value if isinstance(value, str) else default

    if expected in (int, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        if isinstance(value, float) and not math.isfinite(value):
            return default
        return expected(value)

    return value if isinstance(value, expected) else default


def resolve_float(params: Optional[ParameterSet], key: str, default: Any) -> Any:
    return resolve(params, key, float, default)


def resolve_int(params: Optional[ParameterSet], key: str, default: Any) -> Any:
    return resolve(params, key, int, default)


def resolve_str(params: Optional[ParameterSet], key: str, default: Any) -> Any:
    return resolve(params, key, str, default)


def resolve_bool(params: Optional[ParameterSet], key: str, default: Any) -> Any:
    return resolve(params, key, bool, default)


@dataclass(frozen=True)
class BrightnessParams:
    brightness: float = 0.0

    @classmethod
    def from_params(cls, params: Optional[ParameterSet]) -> "BrightnessParams":
        return cls(brightness=resolve_float(params, "brightness", 0.0))


@dataclass(frozen=True)
class SpeedParams:
    speed: float = 1.0

    @classmethod
    def from_params(cls, params: Optional[ParameterSet]) -> "SpeedParams":
        speed = resolve_float(params, "speed", 1.0)
        # setpts divides by speed; zero or negative is treated like a bad type.
        if speed <= 0:
            speed = 1.0
        return cls(speed=speed)


@dataclass(frozen=True)
class TrimParams:
    start_time: float = 0.0
    end_time: Optional[float] = None

    @classmethod
    def from_params(cls, params: Optional[ParameterSet]) -> "TrimParams":
        return cls(
            start_time=resolve_float(params, "startTime", 0.0),
            end_time=resolve_float(params, "endTime", None),
        )


@dataclass(frozen=True)
class CropParams:
    x: int = 0
    y: int = 0
    width: int = 1920
    height: int = 1080

    @classmethod
    def from_params(cls, params: Optional[ParameterSet]) -> "CropParams":
        return cls(
            x=resolve_int(params, "x", 0),
            y=resolve_int(params, "y", 0),
            width=resolve_int(params, "width", 1920),
            height=resolve_int(params, "height", 1080),
        )


@dataclass(frozen=True)
class TextOverlayParams:
    text: str = "Sample Text"
    position: str = "center"

    @classmethod
    def from_params(cls, params: Optional[ParameterSet]) -> "TextOverlayParams":
        return cls(
            text=resolve_str(params, "text", "Sample Text"),
            position=resolve_str(params, "position", "center"),
        )


@dataclass(frozen=True)
class StyleFilterParams:
    filter: str = "cinematic"

    @classmethod
    def from_params(cls, params: Optional[ParameterSet]) -> "StyleFilterParams":
        return cls(filter=resolve_str(params, "filter", "cinematic"))
