"""Shared utility functions for videoprocessor.

- subprocess_flags(): Windows-specific flags to hide console windows
- format_number(): plain decimal rendering for ffmpeg arguments
"""

from __future__ import annotations

import sys
from decimal import Decimal
from typing import Any, Dict


def subprocess_flags() -> Dict[str, Any]:
    """Return subprocess flags to hide console window on Windows.

    Usage:
        result = subprocess.run(cmd, **subprocess_flags())
    """
    if sys.platform == "win32":
        # CREATE_NO_WINDOW = 0x08000000
        return {"creationflags": 0x08000000}
    return {}


def format_number(value: float) -> str:
    """Render a number the way ffmpeg expressions expect it.

    Ten significant digits, no exponent notation and no trailing zeros:
    0.5 -> "0.5", 10.0 -> "10", 2e-07 -> "0.0000002".
    """
    text = format(Decimal(format(float(value), ".10g")), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text
