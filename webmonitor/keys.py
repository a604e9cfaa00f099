"""Key generation for key-value output and interval arithmetic."""

from __future__ import annotations

import unicodedata
from datetime import datetime

_ALLOWED_PUNCTUATION = frozenset("-_.")


def _raw_key(key: str, key_prefix: str, program_name: str, with_program_name: bool) -> str:
    if program_name and with_program_name:
        if not key_prefix:
            return f"{program_name}.{key}"
        return f"{program_name}.{key_prefix}_{key}"
    if not key_prefix:
        return key
    return f"{key_prefix}_{key}"


def _is_allowed(ch: str) -> bool:
    category = unicodedata.category(ch)
    return category[0] in ("L", "N") or ch in _ALLOWED_PUNCTUATION


def escape_key(origin_key: str) -> str:
    """Replace every character other than letters, digits, '-', '_' and '.' with '_'."""
    return "".join(ch if _is_allowed(ch) else "_" for ch in origin_key)


def key_gen(key: str, key_prefix: str, program_name: str, with_program_name: bool) -> str:
    """Build and escape the final key, e.g. ``bfe.mod_header_ERR``."""
    return escape_key(_raw_key(key, key_prefix, program_name, with_program_name))


def next_interval(now: datetime, interval: int) -> int:
    """Return the seconds left until the next ``interval`` boundary."""
    return interval - now.second % interval