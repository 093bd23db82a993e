"""
Shared fixtures: a manual clock, a message loop, a loopback transport
and a surface that records draw calls.
"""
from datetime import datetime, timezone

import pytest

from watchface.core.clock_service import ClockService
from watchface.core.message_loop import ManualClock, SimpleMessageLoop
from watchface.companion.transport import LoopbackTransport
from watchface.ui.face_controller import FaceController
from watchface.ui.surface import Rect, Surface


START_MS = 1_700_000_000_250
FIXED_NOW = datetime(2024, 6, 3, 9, 41, 7, tzinfo=timezone.utc)


class RecordingSurface(Surface):
    """Surface that keeps every draw call as a tuple."""

    def __init__(self):
        self.calls = []

    def fill(self, color, bounds):
        self.calls.append(('fill', color, bounds))

    def draw_text(self, text, x, y, style):
        self.calls.append(('text', text, x, y, style))

    def draw_line(self, x0, y0, x1, y1, color):
        self.calls.append(('line', x0, y0, x1, y1, color))

    def draw_bitmap(self, bitmap, x, y):
        self.calls.append(('bitmap', bitmap, x, y))

    def measure_text(self, text, style):
        return len(text) * style.size * 0.6

    def of_kind(self, kind):
        return [c for c in self.calls if c[0] == kind]

    def texts(self):
        return [c[1] for c in self.of_kind('text')]


class Icon:
    def __init__(self, name, width=24, height=24):
        self.name = name
        self.width = width
        self.height = height

    def __repr__(self):
        return f"Icon({self.name})"


@pytest.fixture
def clock():
    return ManualClock(START_MS)


@pytest.fixture
def loop(clock):
    return SimpleMessageLoop(clock=clock)


@pytest.fixture
def transport(loop):
    return LoopbackTransport(loop)


@pytest.fixture
def clock_service():
    return ClockService(now=lambda: FIXED_NOW)


@pytest.fixture
def bounds():
    return Rect(0, 0, 320, 320)


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def face(loop, transport, clock_service):
    return FaceController(
        loop,
        transport,
        clock_service=clock_service,
        icon_lookup=lambda weather_id: Icon(f"mapped({weather_id})"),
    )
