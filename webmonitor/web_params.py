"""Helpers for reading query parameters of monitor requests."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

DEFAULT_FORMAT = "json"


class MissingParamError(KeyError):
    """Raised when a requested parameter is absent or has no values."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"key not exist: {self.key}"


class UnsupportedFormatError(ValueError):
    """Raised when an output format is not supported."""

    def __init__(self, fmt: str) -> None:
        super().__init__(f"format not support: {fmt}")
        self.format = fmt


def params_multi_value_get(params: Mapping[str, Sequence[str]], key: str) -> list[str]:
    """Return all values for ``key``; raise MissingParamError if there are none."""
    values = params.get(key)
    if not values:
        raise MissingParamError(key)
    return list(values)


def params_value_get(params: Mapping[str, Sequence[str]], key: str) -> str:
    """Return the first value for ``key``; raise MissingParamError if there is none."""
    return params_multi_value_get(params, key)[0]


def get_format(params: Mapping[str, Sequence[str]]) -> str:
    """Return the requested output format, defaulting to json."""
    try:
        return params_value_get(params, "format")
    except MissingParamError:
        return DEFAULT_FORMAT