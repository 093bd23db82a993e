"""
Theme - face colors and text styles derived from tap count and power mode
Nothing here is mutated by events; a theme is recomputed for every frame.
"""
from typing import Dict, Tuple

from ..core.states import PowerMode


Color = Tuple[int, int, int]


class Palette:
    """Face color resources"""

    BACKGROUND = (0x03, 0xA9, 0xF4)      # light blue
    BACKGROUND2 = (0x01, 0x57, 0x9B)     # dark blue
    PRIMARY = (0xFF, 0xFF, 0xFF)
    SECONDARY = (0xB3, 0xE5, 0xFC)
    DIVIDER = (0x81, 0xD4, 0xFA)
    AMBIENT_BACKGROUND = (0x00, 0x00, 0x00)
    AMBIENT_TEXT = (0xFF, 0xFF, 0xFF)


class Typeface:
    NORMAL = 'sans'
    BOLD = 'mono-bold'
    ITALIC = 'sans-italic'


class TextStyle:
    """Resolved paint for one text element."""

    __slots__ = ('color', 'typeface', 'size', 'anti_alias')

    def __init__(self, color: Color, typeface: str, size: float, anti_alias: bool):
        self.color = color
        self.typeface = typeface
        self.size = size
        self.anti_alias = anti_alias

    def __repr__(self) -> str:
        return (f"TextStyle(color={self.color}, typeface={self.typeface!r}, "
                f"size={self.size}, anti_alias={self.anti_alias})")


class FaceTheme:
    """
    Active look of the face.

    Completed taps alternate between the 'background' and 'background2'
    variants; the second one also swaps the divider color and hides the
    weather icon. Low-bit ambient displays get no anti-aliasing.
    """

    TEXT_ELEMENTS = ('time', 'date', 'high', 'low')

    def __init__(
        self,
        tap_count: int,
        power_mode: PowerMode,
        low_bit_ambient: bool,
        text_sizes: Dict[str, float]
    ):
        self.tap_count = tap_count
        self.power_mode = power_mode
        self.low_bit_ambient = low_bit_ambient
        self._text_sizes = text_sizes

    @property
    def ambient(self) -> bool:
        return self.power_mode == PowerMode.AMBIENT

    @property
    def selector(self) -> str:
        """'background' after an even number of taps, 'background2' after an odd one"""
        return 'background' if self.tap_count % 2 == 0 else 'background2'

    @property
    def background_color(self) -> Color:
        if self.ambient:
            return Palette.AMBIENT_BACKGROUND
        return Palette.BACKGROUND if self.selector == 'background' else Palette.BACKGROUND2

    @property
    def divider_color(self) -> Color:
        return Palette.DIVIDER if self.selector == 'background' else Palette.SECONDARY

    @property
    def show_icon(self) -> bool:
        return self.selector == 'background'

    @property
    def anti_alias(self) -> bool:
        return not (self.low_bit_ambient and self.ambient)

    def text_style(self, element: str) -> TextStyle:
        """
        Style for 'time', 'date', 'high' or 'low'.
        """
        if element not in self.TEXT_ELEMENTS:
            raise ValueError(f"Unknown text element: {element}")

        typeface = {
            'time': Typeface.BOLD,
            'date': Typeface.ITALIC,
        }.get(element, Typeface.NORMAL)

        if self.ambient:
            color = Palette.AMBIENT_TEXT
        elif element in ('time', 'high'):
            color = Palette.PRIMARY
        else:
            color = Palette.SECONDARY

        return TextStyle(color, typeface, self._text_sizes.get(element, 16), self.anti_alias)

    def text_styles(self) -> Dict[str, TextStyle]:
        return {name: self.text_style(name) for name in self.TEXT_ELEMENTS}
