"""Configuration of source addresses allowed to trigger reloads.

The file is JSON of the form
``{"Version": "...", "Config": {"label": ["10.0.0.1", ...]}}``.
"""

from __future__ import annotations

import ipaddress
import json
import socket
from dataclasses import dataclass, field
from typing import Any, Optional


class ReloadSrcConfError(ValueError):
    """Raised when the reload source configuration cannot be loaded."""


@dataclass
class ReloadSrcConf:
    """Version of the configuration and label to address list."""

    version: str = ""
    config: dict[str, list[str]] = field(default_factory=dict)


def _field(obj: dict[str, Any], name: str) -> Any:
    if name in obj:
        return obj[name]
    lowered = name.lower()
    for key, value in obj.items():
        if key.lower() == lowered:
            return value
    return None


def _decode(text: str) -> ReloadSrcConf:
    obj, _ = json.JSONDecoder().raw_decode(text.lstrip())
    if not isinstance(obj, dict):
        raise ValueError("cannot unmarshal into ReloadSrcConf")

    version = _field(obj, "Version")
    if version is None:
        version = ""
    if not isinstance(version, str):
        raise ValueError("Version should be a string")

    raw_config = _field(obj, "Config")
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Config should be an object")

    config: dict[str, list[str]] = {}
    for label, ips in raw_config.items():
        if ips is None:
            ips = []
        if not isinstance(ips, list) or not all(isinstance(ip, str) for ip in ips):
            raise ValueError(f"Config[{label}] should be a list of strings")
        config[label] = list(ips)
    return ReloadSrcConf(version=version, config=config)


def _format_ip(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> str:
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return str(address.ipv4_mapped)
    return str(address)


def _resolve(host: str) -> Optional[str]:
    try:
        return _format_ip(ipaddress.ip_address(host))
    except ValueError:
        pass
    try:
        infos = socket.getaddrinfo(host, None)
    except (OSError, UnicodeError, ValueError):
        return None
    for info in infos:
        try:
            return _format_ip(ipaddress.ip_address(info[4][0]))
        except ValueError:
            continue
    return None


def check_reload_src_conf(conf: ReloadSrcConf) -> ReloadSrcConf:
    """Check ``conf`` and return it with every address resolved and normalised."""
    if not conf.version:
        raise ReloadSrcConfError("no Version")

    config: dict[str, list[str]] = {}
    for label, ips in conf.config.items():
        formatted = []
        for ip in ips:
            resolved = _resolve(ip)
            if resolved is None:
                raise ReloadSrcConfError(f"invalid ip:{ip}, in label:{label}")
            formatted.append(resolved)
        config[label] = formatted
    return ReloadSrcConf(version=conf.version, config=config)


def load_and_check(filename: str) -> ReloadSrcConf:
    """Load, check and return the configuration in ``filename``."""
    try:
        with open(filename, encoding="utf-8") as file:
            text = file.read()
    except (OSError, UnicodeError) as err:
        raise ReloadSrcConfError(f"os.Open() err:{err}") from err

    try:
        conf = _decode(text)
    except ValueError as err:
        raise ReloadSrcConfError(f"decoder.Decode() err:{err}") from err

    try:
        return check_reload_src_conf(conf)
    except ReloadSrcConfError as err:
        raise ReloadSrcConfError(f"ReloadSrcConfCheck() err:{err}") from err


def reload_src_ips_load(filename: str) -> list[str]:
    """Return all addresses allowed to reload, from every label in ``filename``."""
    conf = load_and_check(filename)
    return [ip for ips in conf.config.values() for ip in ips]