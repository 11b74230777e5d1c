from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

_HEX_PAIR_RE = re.compile(r"[0-9a-fA-F]{2}")


class Color(BaseModel):
    model_config = ConfigDict(frozen=True)

    r: float
    g: float
    b: float

    def to_rgb255(self) -> tuple[int, int, int]:
        return (
            int(round(self.r * 255)),
            int(round(self.g * 255)),
            int(round(self.b * 255)),
        )


BLACK = Color(r=0.0, g=0.0, b=0.0)
YELLOW = Color(r=1.0, g=1.0, b=0.0)


def _channel(value: str, start: int) -> float:
    pair = value[start : start + 2]
    if not _HEX_PAIR_RE.fullmatch(pair):
        return 0.0
    return int(pair, 16) / 255.0


def parse_color(value: str | None, fallback: Color = BLACK) -> Color:
    """
    Parse a `#RRGGBB` string into a normalized color.

    Never raises: each channel that is not a two-digit hex pair becomes 0,
    so garbage degrades towards black. `fallback` only applies when no
    color was given at all.
    """
    if not value:
        return fallback
    return Color(r=_channel(value, 1), g=_channel(value, 3), b=_channel(value, 5))
