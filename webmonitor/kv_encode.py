"""Encode flat objects as lines of ``key:value``."""

from __future__ import annotations

import dataclasses
from typing import Any


def _attributes(data: Any) -> list[tuple[str, Any]]:
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return [(f.name, getattr(data, f.name)) for f in dataclasses.fields(data)]
    if isinstance(data, type) or not hasattr(data, "__dict__"):
        raise TypeError(f"{type(data).__name__} type can't have attributes inspected")
    return list(vars(data).items())


def _format_value(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:f}"
    return None


def encode_data(data: Any, prefix: str = "", ignore_unknown: bool = False) -> str:
    """Return ``key:value`` lines for the attributes of ``data``.

    Only strings, booleans, integers and floats are encoded. Other attribute
    types raise ValueError unless ``ignore_unknown`` is set, in which case
    they are skipped.
    """
    if prefix:
        prefix = prefix + "_"

    lines = []
    for name, value in _attributes(data):
        text = _format_value(value)
        if text is None:
            if not ignore_unknown:
                raise ValueError(f"unsupported type:{type(value).__name__}")
            continue
        lines.append(f"{prefix}{name}:{text}\n")
    return "".join(lines)


def encode(data: Any) -> str:
    """Return ``key:value`` lines for ``data`` without a prefix."""
    return encode_data(data, "", False)