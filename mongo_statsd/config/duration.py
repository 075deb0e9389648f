"""Duration strings in Go notation (``5s``, ``1m30s``, ``250ms``)."""

from __future__ import annotations

import re

_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # micro sign
    "μs": 1e-6,  # greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)([a-zµμ]+)")


def parse_duration(text: str) -> float:
    """Parse a duration string and return the number of seconds.

    Every number must carry a unit, so ``"5"`` is rejected while ``"5s"``,
    ``"1.5h"`` and ``"1h2m3s"`` are accepted. An optional leading sign is
    honoured. Raises ValueError on anything else.
    """
    raw = text.strip()
    if not raw:
        raise ValueError("empty duration")

    sign = 1.0
    body = raw
    if body[0] in "+-":
        if body[0] == "-":
            sign = -1.0
        body = body[1:]
    if not body:
        raise ValueError(f"invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(body):
        match = _COMPONENT.match(body, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        if unit not in _UNITS:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        total += float(number) * _UNITS[unit]
        pos = match.end()

    return sign * total


def format_duration(seconds: float) -> str:
    """Render seconds back in the same notation, e.g. ``1m30s``."""
    if seconds < 1:
        return f"{seconds * 1000:g}ms"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts: list[str] = []
    if hours:
        parts.append(f"{int(hours)}h")
    if minutes:
        parts.append(f"{int(minutes)}m")
    if secs or not parts:
        parts.append(f"{secs:g}s")
    return "".join(parts)
