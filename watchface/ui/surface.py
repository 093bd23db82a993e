"""
Render surface - drawing contract used by the face, plus a Pillow implementation
"""
import os
from typing import Dict, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .theme import Color, TextStyle


class Rect:
    """Integer rectangle; right/bottom are exclusive."""

    __slots__ = ('left', 'top', 'width', 'height')

    def __init__(self, left: int, top: int, width: int, height: int):
        self.left = int(left)
        self.top = int(top)
        self.width = int(width)
        self.height = int(height)

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def clamp_x(self, x: float, extent: float = 0) -> float:
        """Clamp so that [x, x + extent] stays inside"""
        return max(self.left, min(x, self.right - extent))

    def clamp_y(self, y: float, extent: float = 0) -> float:
        return max(self.top, min(y, self.bottom - extent))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Rect):
            return NotImplemented
        return (self.left, self.top, self.width, self.height) == \
            (other.left, other.top, other.width, other.height)

    def __repr__(self) -> str:
        return f"Rect({self.left}, {self.top}, {self.width}, {self.height})"


class Surface:
    """
    What the face draws onto. Text coordinates are the top-left corner.
    """

    def fill(self, color: Color, bounds: Rect) -> None:
        raise NotImplementedError

    def draw_text(self, text: str, x: float, y: float, style: TextStyle) -> None:
        raise NotImplementedError

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, color: Color) -> None:
        raise NotImplementedError

    def draw_bitmap(self, bitmap, x: float, y: float) -> None:
        raise NotImplementedError

    def measure_text(self, text: str, style: TextStyle) -> float:
        """Width of text in pixels"""
        raise NotImplementedError


class PilSurface(Surface):
    """
    Draws into a Pillow image. Anti-aliasing follows each TextStyle.
    """

    FONT_PATHS = {
        'sans': [
            '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
            '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
        ],
        'sans-italic': [
            '/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf',
            '/usr/share/fonts/truetype/liberation/LiberationSans-Italic.ttf',
        ],
        'mono-bold': [
            '/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf',
            '/usr/share/fonts/truetype/liberation/LiberationMono-Bold.ttf',
        ],
    }

    def __init__(self, width: int, height: int, image: Optional[Image.Image] = None):
        self.image = image or Image.new('RGB', (width, height), (0, 0, 0))
        self._draw = ImageDraw.Draw(self.image)
        self._font_cache: Dict[Tuple[str, int], ImageFont.ImageFont] = {}

    @property
    def bounds(self) -> Rect:
        return Rect(0, 0, self.image.width, self.image.height)

    def _font(self, style: TextStyle):
        key = (style.typeface, int(style.size))
        font = self._font_cache.get(key)
        if font is None:
            font = self._load_font(*key)
            self._font_cache[key] = font
        return font

    def _load_font(self, typeface: str, size: int):
        for path in self.FONT_PATHS.get(typeface, self.FONT_PATHS['sans']):
            if os.path.exists(path):
                return ImageFont.truetype(path, max(1, size))
        return ImageFont.load_default()

    def fill(self, color: Color, bounds: Rect) -> None:
        self._draw.rectangle(
            [bounds.left, bounds.top, bounds.right - 1, bounds.bottom - 1], fill=color
        )

    def draw_text(self, text: str, x: float, y: float, style: TextStyle) -> None:
        if not text:
            return
        self._draw.fontmode = 'L' if style.anti_alias else '1'
        self._draw.text((x, y), text, font=self._font(style), fill=style.color)

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, color: Color) -> None:
        self._draw.line([(x0, y0), (x1, y1)], fill=color, width=1)

    def draw_bitmap(self, bitmap, x: float, y: float) -> None:
        mask = bitmap if bitmap.mode == 'RGBA' else None
        self.image.paste(bitmap, (int(x), int(y)), mask)

    def measure_text(self, text: str, style: TextStyle) -> float:
        if not text:
            return 0
        return self._draw.textlength(text, font=self._font(style))

    def save(self, path: str) -> None:
        self.image.save(path)
