# visualization.py
"""
Hosts the particle field in a pygame window.

Provides the drawing context the field renders on (SurfaceCanvas), the
translation of pygame events into field reactions (EventRouter), and the
window itself, which composites and presents each frame (Visualizer).
"""
import logging
import math
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

import pygame

from constants import (
    BACKGROUND_COLOR, DEFAULT_WINDOW_SIZE, FPS, FULLSCREEN, WINDOW_TITLE
)
from particle import Bounds

# --- Data Contracts ---
#
# class SurfaceCanvas:
#   - __init__(self, width: int, height: int, background_color)
#     - Side Effects: Allocates an opaque layer filled with background_color.
#   - fill_circle(x, y, radius, color, alpha) / stroke_line(x1, y1, x2, y2,
#     color, alpha, width=1):
#     - alpha is a float in [0, 1]; the shape is blended over the layer.
#   - clear(): Refills the layer with the background color.
#
# class EventRouter:
#   - subscribe(kind: str, handler: Callable) -> None
#     - kind is one of "pointer_move" (handler(x, y)), "pointer_leave"
#       (handler()) and "resize" (handler(Bounds)).
#   - route(event: pygame.event.Event) -> bool:
#     - Outputs: False if the event asks the application to quit.
#
# class Visualizer:
#   - draw(self) -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Dispatches pending events, presents the canvas and
#       waits for the next frame slot.

POINTER_MOVE = 'pointer_move'
POINTER_LEAVE = 'pointer_leave'
RESIZE = 'resize'


def _to_rgba(color: Tuple[int, int, int], alpha: float) -> Tuple[int, int, int, int]:
    a = int(max(0.0, min(alpha, 1.0)) * 255)
    return (color[0], color[1], color[2], a)


class SurfaceCanvas:
    """
    A drawing context backed by an opaque pygame surface.

    Each primitive is drawn into its own small SRCALPHA surface and blitted
    onto the layer, so translucent shapes blend with what is already there
    instead of replacing it.
    """
    def __init__(self, width: int, height: int, background_color: Tuple[int, int, int] = BACKGROUND_COLOR):
        self.background_color = tuple(background_color)
        self.surface = self._make_layer(width, height)
        self.clear()

    @staticmethod
    def _make_layer(width: int, height: int) -> pygame.Surface:
        return pygame.Surface((max(width, 1), max(height, 1)))

    def resize(self, width: int, height: int) -> None:
        self.surface = self._make_layer(width, height)
        self.clear()
        logging.debug(f"Canvas layer reallocated at {width}x{height}.")

    def clear(self) -> None:
        self.surface.fill(self.background_color)

    def fill_circle(self, x: float, y: float, radius: float, color: Tuple[int, int, int], alpha: float) -> None:
        # One pixel of margin keeps the antialiased rim inside the scratch surface.
        extent = int(math.ceil(max(radius, 0.0))) + 1
        left = int(math.floor(x)) - extent
        top = int(math.floor(y)) - extent
        scratch = pygame.Surface((extent * 2 + 1, extent * 2 + 1), pygame.SRCALPHA)
        pygame.draw.circle(scratch, _to_rgba(color, alpha), (x - left, y - top), radius)
        self.surface.blit(scratch, (left, top))

    def stroke_line(
        self, x1: float, y1: float, x2: float, y2: float,
        color: Tuple[int, int, int], alpha: float, width: int = 1
    ) -> None:
        left = int(math.floor(min(x1, x2))) - width
        top = int(math.floor(min(y1, y2))) - width
        right = int(math.ceil(max(x1, x2))) + width
        bottom = int(math.ceil(max(y1, y2))) + width
        scratch = pygame.Surface((right - left + 1, bottom - top + 1), pygame.SRCALPHA)
        pygame.draw.line(
            scratch, _to_rgba(color, alpha), (x1 - left, y1 - top), (x2 - left, y2 - top), width
        )
        self.surface.blit(scratch, (left, top))


class EventRouter:
    """
    Turns pygame events into pointer and resize notifications.
    """
    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)

    def subscribe(self, kind: str, handler: Callable) -> None:
        if kind not in (POINTER_MOVE, POINTER_LEAVE, RESIZE):
            raise ValueError(f"Unknown event kind: {kind!r}")
        self._handlers[kind].append(handler)
        logging.debug(f"Subscribed {getattr(handler, '__qualname__', handler)} to '{kind}'.")

    def _emit(self, kind: str, *args) -> None:
        for handler in self._handlers[kind]:
            handler(*args)

    def route(self, event: pygame.event.Event) -> bool:
        """
        Dispatches a single pygame event.

        Returns:
            bool: False if the event requests shutdown, True otherwise.
        """
        if event.type == pygame.QUIT:
            logging.info("Quit event received.")
            return False
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            logging.info("ESC key pressed.")
            return False

        if event.type == pygame.MOUSEMOTION:
            x, y = event.pos
            self._emit(POINTER_MOVE, x, y)
        elif event.type == pygame.WINDOWLEAVE:
            self._emit(POINTER_LEAVE)
        elif event.type == pygame.VIDEORESIZE:
            width, height = event.size
            self._emit(RESIZE, Bounds(width, height))
        return True


class Visualizer:
    """
    Owns the pygame window and presents the canvas once per frame.
    """
    def __init__(self, params: Optional[dict] = None):
        """
        Initializes pygame and opens the display window.

        Args:
            params (dict): The "visualization" section of the config.
        """
        params = params if params is not None else {}
        pygame.init()

        fullscreen = params.get('fullscreen', FULLSCREEN)
        if fullscreen:
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width = params.get('width', DEFAULT_WINDOW_SIZE[0])
            height = params.get('height', DEFAULT_WINDOW_SIZE[1])
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        self.width = width
        self.height = height
        self.fps = params.get('fps', FPS)
        self.background_color = tuple(params.get('background_color', BACKGROUND_COLOR))

        pygame.display.set_caption(WINDOW_TITLE)
        self.clock = pygame.time.Clock()
        self.canvas = SurfaceCanvas(width, height, self.background_color)
        self.events = EventRouter()
        # The canvas must follow the window before the field adjusts to it.
        self.events.subscribe(RESIZE, self._on_resize)

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    @property
    def bounds(self) -> Bounds:
        return Bounds(self.width, self.height)

    def _on_resize(self, bounds: Bounds) -> None:
        self.width, self.height = bounds.width, bounds.height
        self.canvas.resize(bounds.width, bounds.height)

    def draw(self) -> bool:
        """
        Handles pending events and shows the current frame.

        Returns:
            bool: False if the application should exit, True otherwise.
        """
        for event in pygame.event.get():
            if not self.events.route(event):
                return False

        self.screen.blit(self.canvas.surface, (0, 0))
        pygame.display.flip()
        self.clock.tick(self.fps)
        return True

    def close(self):
        """Shuts down Pygame."""
        pygame.quit()
