"""Engine configuration, filled from the environment when left unset."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class EngineConfig:
    """
    Tunables for the mutation engine.

    Example:
        PDFBAKE_FONT=Times-Roman pdfbake apply --pdf in.pdf --annotations ann.json
        PDFBAKE_RECT_OPACITY=0.6 pdfbake apply ...
    """

    font_name: str = ""  # standard PDF font used for every text annotation
    rect_opacity: float | None = None  # fill alpha for rect annotations

    def __post_init__(self) -> None:
        if not self.font_name:
            self.font_name = os.environ.get("PDFBAKE_FONT", "Helvetica")
        if self.rect_opacity is None:
            self.rect_opacity = float(os.environ.get("PDFBAKE_RECT_OPACITY", "0.4"))
        if not 0.0 <= self.rect_opacity <= 1.0:
            raise ValueError(f"rect_opacity must be within [0, 1], got {self.rect_opacity}")
