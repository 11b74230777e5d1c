"""
Small SVG path-data parser (no external deps).

Turns a `d` attribute into absolute M/L/C/Z segments. Quadratic curves are
elevated to cubics and elliptical arcs are split into cubic pieces, so a
drawing backend only needs moveto, lineto, cubic bezier and closepath.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Literal

SegmentOp = Literal["M", "L", "C", "Z"]

_COMMANDS = "MmLlHhVvCcSsQqTtAaZz"
_NUM_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_SEP_RE = re.compile(r"[\s,]*")


class PathSyntaxError(ValueError):
    pass


@dataclass(frozen=True)
class PathSegment:
    op: SegmentOp
    points: tuple[float, ...] = ()


class _Scanner:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def _skip(self) -> None:
        m = _SEP_RE.match(self.text, self.pos)
        if m:
            self.pos = m.end()

    def at_end(self) -> bool:
        self._skip()
        return self.pos >= len(self.text)

    def command(self) -> str | None:
        self._skip()
        if self.pos < len(self.text) and self.text[self.pos] in _COMMANDS:
            ch = self.text[self.pos]
            self.pos += 1
            return ch
        return None

    def number(self) -> float:
        self._skip()
        m = _NUM_RE.match(self.text, self.pos)
        if not m:
            raise PathSyntaxError(f"expected number at offset {self.pos}")
        value = float(m.group())
        if not math.isfinite(value):
            raise PathSyntaxError(f"number out of range at offset {self.pos}")
        self.pos = m.end()
        return value

    def flag(self) -> bool:
        # Arc flags may be packed without separators, e.g. "a5 5 0 01 10 0".
        self._skip()
        ch = self.text[self.pos] if self.pos < len(self.text) else ""
        if ch not in ("0", "1"):
            raise PathSyntaxError(f"expected arc flag at offset {self.pos}")
        self.pos += 1
        return ch == "1"


def _vector_angle(ux: float, uy: float, vx: float, vy: float) -> float:
    return math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)


def _arc_to_cubics(
    x1: float,
    y1: float,
    rx: float,
    ry: float,
    rotation: float,
    large_arc: bool,
    sweep: bool,
    x2: float,
    y2: float,
) -> list[PathSegment]:
    """Endpoint-parameterized arc -> cubic pieces of at most 90 degrees each."""
    if x1 == x2 and y1 == y2:
        return []
    rx, ry = abs(rx), abs(ry)
    if rx == 0 or ry == 0:
        return [PathSegment("L", (x2, y2))]

    phi = math.radians(rotation)
    cos_phi, sin_phi = math.cos(phi), math.sin(phi)
    dx, dy = (x1 - x2) / 2.0, (y1 - y2) / 2.0
    x1p = cos_phi * dx + sin_phi * dy
    y1p = -sin_phi * dx + cos_phi * dy

    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1:
        s = math.sqrt(lam)
        rx, ry = rx * s, ry * s

    num = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
    den = rx * rx * y1p * y1p + ry * ry * x1p * x1p
    coef = math.sqrt(max(0.0, num / den))
    if large_arc == sweep:
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx
    cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2.0
    cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2.0

    ux, uy = (x1p - cxp) / rx, (y1p - cyp) / ry
    vx, vy = (-x1p - cxp) / rx, (-y1p - cyp) / ry
    theta1 = _vector_angle(1.0, 0.0, ux, uy)
    dtheta = _vector_angle(ux, uy, vx, vy)
    if not sweep and dtheta > 0:
        dtheta -= 2 * math.pi
    elif sweep and dtheta < 0:
        dtheta += 2 * math.pi

    n = max(1, math.ceil(abs(dtheta) / (math.pi / 2) - 1e-9))
    delta = dtheta / n
    t = 4.0 / 3.0 * math.tan(delta / 4.0)

    def to_abs(px: float, py: float) -> tuple[float, float]:
        return (
            cx + rx * px * cos_phi - ry * py * sin_phi,
            cy + rx * px * sin_phi + ry * py * cos_phi,
        )

    out: list[PathSegment] = []
    for i in range(n):
        a1 = theta1 + i * delta
        a2 = a1 + delta
        c1, s1, c2, s2 = math.cos(a1), math.sin(a1), math.cos(a2), math.sin(a2)
        p1 = to_abs(c1 - t * s1, s1 + t * c1)
        p2 = to_abs(c2 + t * s2, s2 - t * c2)
        end = (x2, y2) if i == n - 1 else to_abs(c2, s2)
        out.append(PathSegment("C", (*p1, *p2, *end)))
    return out


def parse_svg_path(d: str) -> list[PathSegment]:
    """
    Parse SVG path data into absolute segments.

    Raises PathSyntaxError on malformed input or when the data does not
    start with a moveto.
    """
    scanner = _Scanner(d or "")
    segments: list[PathSegment] = []
    cx = cy = 0.0
    start_x = start_y = 0.0
    prev_op: str | None = None
    ctrl: tuple[float, float] | None = None  # last cubic or quadratic control point
    cmd: str | None = None

    while not scanner.at_end():
        letter = scanner.command()
        if letter is None:
            if cmd is None or cmd in "Zz":
                raise PathSyntaxError(f"unexpected data at offset {scanner.pos}")
            # Extra coordinate pairs after a moveto are implicit linetos.
            letter = {"M": "L", "m": "l"}.get(cmd, cmd)
        if not segments and letter not in "Mm":
            raise PathSyntaxError("path data must begin with a moveto")
        cmd = letter
        rel = letter.islower()
        op = letter.upper()
        ox, oy = (cx, cy) if rel else (0.0, 0.0)

        if op == "Z":
            segments.append(PathSegment("Z"))
            cx, cy = start_x, start_y
            ctrl = None
        elif op == "M":
            cx, cy = ox + scanner.number(), oy + scanner.number()
            start_x, start_y = cx, cy
            segments.append(PathSegment("M", (cx, cy)))
            ctrl = None
        elif op == "L":
            cx, cy = ox + scanner.number(), oy + scanner.number()
            segments.append(PathSegment("L", (cx, cy)))
            ctrl = None
        elif op == "H":
            cx = ox + scanner.number()
            segments.append(PathSegment("L", (cx, cy)))
            ctrl = None
        elif op == "V":
            cy = oy + scanner.number()
            segments.append(PathSegment("L", (cx, cy)))
            ctrl = None
        elif op in ("C", "S"):
            if op == "C":
                x1, y1 = ox + scanner.number(), oy + scanner.number()
            elif prev_op in ("C", "S") and ctrl is not None:
                x1, y1 = 2 * cx - ctrl[0], 2 * cy - ctrl[1]
            else:
                x1, y1 = cx, cy
            x2, y2 = ox + scanner.number(), oy + scanner.number()
            x, y = ox + scanner.number(), oy + scanner.number()
            segments.append(PathSegment("C", (x1, y1, x2, y2, x, y)))
            ctrl = (x2, y2)
            cx, cy = x, y
        elif op in ("Q", "T"):
            if op == "Q":
                qx, qy = ox + scanner.number(), oy + scanner.number()
            elif prev_op in ("Q", "T") and ctrl is not None:
                qx, qy = 2 * cx - ctrl[0], 2 * cy - ctrl[1]
            else:
                qx, qy = cx, cy
            x, y = ox + scanner.number(), oy + scanner.number()
            segments.append(
                PathSegment(
                    "C",
                    (
                        cx + 2.0 / 3.0 * (qx - cx),
                        cy + 2.0 / 3.0 * (qy - cy),
                        x + 2.0 / 3.0 * (qx - x),
                        y + 2.0 / 3.0 * (qy - y),
                        x,
                        y,
                    ),
                )
            )
            ctrl = (qx, qy)
            cx, cy = x, y
        elif op == "A":
            rx, ry = scanner.number(), scanner.number()
            rotation = scanner.number()
            large_arc, sweep = scanner.flag(), scanner.flag()
            x, y = ox + scanner.number(), oy + scanner.number()
            segments.extend(_arc_to_cubics(cx, cy, rx, ry, rotation, large_arc, sweep, x, y))
            cx, cy = x, y
            ctrl = None
        prev_op = op

    if not segments:
        raise PathSyntaxError("empty path data")
    return segments
