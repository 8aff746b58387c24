"""Named looks built from several operations."""

from __future__ import annotations

from typing import Dict, List

from .operations import Operation, OperationKind

STYLE_BATCHES: Dict[str, List[Operation]] = {
    "cinematic": [
        Operation(kind=OperationKind.BRIGHTNESS_ADJUST.value, parameters={"brightness": 10}, order=1),
        Operation(kind=OperationKind.STYLE_FILTER.value, parameters={"filter": "cinematic"}, order=2),
    ],
    "vintage": [
        Operation(kind=OperationKind.STYLE_FILTER.value, parameters={"filter": "vintage"}, order=1),
        Operation(kind=OperationKind.BRIGHTNESS_ADJUST.value, parameters={"brightness": 5}, order=2),
    ],
}


def style_names() -> List[str]:
    return sorted(STYLE_BATCHES)


def style_operations(name: str) -> List[Operation]:
    try:
        return list(STYLE_BATCHES[name])
    except KeyError:
        raise KeyError(f"Unknown style: {name}") from None
