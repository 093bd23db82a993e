"""
Layout - element positions for square and round faces
"""
from typing import Dict

from .surface import Rect


class FaceLayout:
    """
    Positions as fractions of the face bounds. Round faces use slightly
    smaller text so the time fits inside the circle.
    """

    # Top edge of each row, as a fraction of height
    ROWS = {
        'time': 0.22,
        'date': 0.44,
        'divider': 0.58,
        'temp': 0.64,
    }

    TEXT_SIZES = {
        'square': {'time': 0.17, 'date': 0.07, 'high': 0.12, 'low': 0.12},
        'round': {'time': 0.15, 'date': 0.065, 'high': 0.11, 'low': 0.11},
    }

    def __init__(self, is_round: bool = False):
        self._is_round = is_round

    def set_round(self, is_round: bool) -> None:
        self._is_round = is_round

    @property
    def is_round(self) -> bool:
        return self._is_round

    def text_sizes(self, bounds: Rect) -> Dict[str, float]:
        """
        Text sizes in pixels for the current shape.

        Args:
            bounds: Face bounds
        """
        fractions = self.TEXT_SIZES['round' if self._is_round else 'square']
        return {name: max(1.0, frac * bounds.height) for name, frac in fractions.items()}

    def row_y(self, row: str, bounds: Rect) -> float:
        return bounds.top + self.ROWS[row] * bounds.height

    def low_x(self, bounds: Rect) -> float:
        return bounds.center_x + bounds.width / 5

    def icon_x(self, bounds: Rect) -> float:
        return bounds.center_x - bounds.width / 2.5
