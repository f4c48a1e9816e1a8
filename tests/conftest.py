import logging
import os

# pygame must never try to open a real window under test.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pytest


class RecordingCanvas:
    """Drawing context that remembers what it was asked to draw."""

    def __init__(self):
        self.clears = 0
        self.circles = []
        self.lines = []

    def clear(self):
        self.clears += 1
        self.circles.clear()
        self.lines.clear()

    def fill_circle(self, x, y, radius, color, alpha):
        self.circles.append((x, y, radius, color, alpha))

    def stroke_line(self, x1, y1, x2, y2, color, alpha, width=1):
        self.lines.append(((x1, y1), (x2, y2), color, alpha, width))

    def resize(self, width, height):
        pass


class FakeEvents:
    """Event source whose notifications are fired by the test."""

    def __init__(self):
        self.handlers = {}

    def subscribe(self, kind, handler):
        self.handlers.setdefault(kind, []).append(handler)

    def fire(self, kind, *args):
        for handler in self.handlers.get(kind, []):
            handler(*args)


@pytest.fixture
def canvas():
    return RecordingCanvas()


@pytest.fixture
def events():
    return FakeEvents()


@pytest.fixture
def restore_root_logger():
    """Puts back the root logger's handlers after setup_logging replaced them."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
