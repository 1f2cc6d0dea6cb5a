"""Character-grid waveform surface rendered with rich."""

import math
from typing import Dict, List, Optional, Tuple

from rich.text import Text

from .waveform import WaveformSurface

DEFAULT_STYLES: Dict[str, Tuple[str, str]] = {
    "background": (" ", "on #1f3461"),
    "waveform": ("█", "green on #1f3461"),
    "handle": ("┃", "bold #00d2ff on #1f3461"),
    "grip": ("•", "#333333 on #00d2ff"),
    "marker": ("│", "bold white on #1f3461"),
}
MASK_STYLE = "dim"


class TerminalSurface(WaveformSurface):
    """One terminal cell per pixel.

    Masked cells keep their glyph and are drawn dimmed, mirroring the
    semi-transparent overlay of a graphical canvas.
    """

    def __init__(self, width: int, height: int, styles: Optional[Dict[str, Tuple[str, str]]] = None):
        self._width = width
        self._height = height
        self.styles = dict(DEFAULT_STYLES)
        if styles:
            self.styles.update(styles)
        self._cells: List[List[Tuple[str, str]]] = []
        self._masked: List[List[bool]] = []
        self.clear()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def clear(self) -> None:
        blank = self.styles["background"]
        self._cells = [[blank] * self._width for _ in range(self._height)]
        self._masked = [[False] * self._width for _ in range(self._height)]

    def _columns(self, x: float, width: float) -> range:
        first = max(0, math.floor(x))
        last = min(self._width, math.ceil(x + width))
        return range(first, last)

    def _rows(self, y1: float, y2: float) -> range:
        top, bottom = sorted((y1, y2))
        if bottom < 0 or top >= self._height:
            return range(0)
        first = max(0, math.floor(top))
        last = min(self._height, max(first + 1, math.ceil(bottom)))
        return range(first, last)

    def fill_rect(self, x: float, y: float, width: float, height: float, style: str) -> None:
        if width <= 0 or height <= 0:
            return
        for row in self._rows(y, y + height):
            for col in self._columns(x, width):
                if style == "mask":
                    self._masked[row][col] = True
                else:
                    self._cells[row][col] = self.styles.get(style, self.styles["background"])

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, style: str) -> None:
        # The renderer only emits vertical lines
        col = int(min(max(x1, 0), self._width - 1))
        cell = self.styles.get(style, self.styles["background"])
        for row in self._rows(y1, y2):
            self._cells[row][col] = cell

    def cell(self, col: int, row: int) -> Tuple[str, str]:
        return self._cells[row][col]

    def is_masked(self, col: int, row: int) -> bool:
        return self._masked[row][col]

    def to_text(self) -> Text:
        """Render the grid as a rich Text block."""
        text = Text()
        for row in range(self._height):
            for col in range(self._width):
                glyph, style = self._cells[row][col]
                if self._masked[row][col]:
                    style = f"{style} {MASK_STYLE}"
                text.append(glyph, style=style)
            if row < self._height - 1:
                text.append("\n")
        return text

    def __rich__(self) -> Text:
        return self.to_text()
