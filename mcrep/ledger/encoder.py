"""Canonical ``key: value`` message encoding.

The encoded text is exactly what gets clearsigned. The service re-parses
the signed cleartext, so every value must render the same way on every
code path: no escaping, one line per field, mapping order preserved.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any


def render_value(value: Any) -> str:
    """Render a single field value.

    Integral floats render without a fractional part so ``-1`` and ``-1.0``
    sign identically.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def encode_message(fields: Mapping[str, Any]) -> str:
    """Encode ``fields`` as newline-terminated ``name: value`` lines."""
    return "".join(f"{name}: {render_value(value)}\n" for name, value in fields.items())


__all__ = ["encode_message", "render_value"]
