"""
Face states - visibility, power mode and tap gesture types
"""
from enum import Enum


class PowerMode(Enum):
    INTERACTIVE = 'interactive'
    AMBIENT = 'ambient'


class Visibility(Enum):
    VISIBLE = 'visible'
    HIDDEN = 'hidden'


class TapType(Enum):
    """Tap gesture phases reported by the host"""
    TOUCH = 'touch'            # finger down
    TOUCH_CANCEL = 'cancel'    # gesture became something else
    TAP = 'tap'                # completed tap


class WatchFaceError(Exception):
    """Base error for the watch face"""


class TransportError(WatchFaceError):
    """Companion channel could not connect or deliver"""
