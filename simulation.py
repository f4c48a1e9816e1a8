# simulation.py
"""
Owns the particle collection and advances it frame by frame.

This module defines the ParticleField class, which keeps the number of
particles proportional to the surface area, reacts to pointer and resize
events, and runs one animation frame per call to step(). It also provides
the proximity scan used to connect nearby particles with lines.
"""
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from numba import jit

from constants import (
    DEFAULT_DENSITY, DEFAULT_CONNECTION_DISTANCE, DEFAULT_REPULSION_RADIUS,
    DEFAULT_MAX_PARTICLE_SIZE, CONNECTION_COLOR, CONNECTION_LINE_WIDTH
)
from particle import Bounds, Particle, PointerState, spawn_particles, update

# --- Data Contracts ---
#
# class ParticleField:
#   - __init__(self, canvas, params: Dict[str, Any]):
#     - Inputs:
#       - canvas: drawing context with clear(), fill_circle() and stroke_line().
#       - params: the "field" section of config.json.
#         - "density": float > 0
#         - "connection_distance": float > 0
#         - "repulsion_radius": float > 0
#         - "max_particle_size": float >= 1
#         - "seed": Optional[int]
#         - "draw_connections": bool
#     - Raises: ValueError on an invalid parameter.
#
#   - initialize(self, bounds: Bounds, events=None) -> None:
#     - Side Effects: Populates the collection. Subscribes the pointer and
#       resize reactions to `events` when given.
#
#   - adjust_particle_count(self) -> None:
#     - Invariants: afterwards len(self.particles) equals
#       max(0, floor(width * height / density)). Shrinking drops trailing
#       particles only; the leading ones keep their identity.
#
#   - step(self) -> None:
#     - Raises: RuntimeError if called before initialize().
#     - Side Effects: Clears the canvas, replaces every particle with its
#       next state and draws it. Membership of the collection is unchanged.
#
# find_connections(particles, threshold) -> List[Tuple[int, int, float]]:
#   - Outputs: (i, j, alpha) for every unordered pair closer than threshold,
#     each pair exactly once, alpha = 1 - distance / threshold.


@jit(nopython=True)
def _scan_connections_numba(xs, ys, order, threshold, out_i, out_j, out_alpha, fill):
    """
    Numba-jitted sweep over particles ordered by x.

    Once the x gap alone exceeds the threshold, every later particle in the
    order is even further away, so the inner loop stops. Returns the number
    of connections found; when `fill` is set they are also written to the
    output arrays, which must be large enough to hold them.
    """
    count = 0
    n = order.shape[0]
    for a in range(n):
        i = order[a]
        for b in range(a + 1, n):
            j = order[b]
            dx = xs[j] - xs[i]
            if dx > threshold:
                break
            dy = ys[j] - ys[i]
            distance = np.sqrt(dx * dx + dy * dy)
            if distance < threshold:
                if fill:
                    out_i[count] = i
                    out_j[count] = j
                    out_alpha[count] = 1.0 - distance / threshold
                count += 1
    return count


def find_connections(particles: List[Particle], threshold: float) -> List[Tuple[int, int, float]]:
    """
    Finds every pair of particles closer than `threshold`.

    Returns:
        List[Tuple[int, int, float]]: Indices into `particles` and the line
        opacity, which falls off linearly to zero at the threshold.
    """
    xs = np.array([p.x for p in particles], dtype=np.float64)
    ys = np.array([p.y for p in particles], dtype=np.float64)
    order = np.argsort(xs, kind='stable').astype(np.int64)
    threshold = float(threshold)

    # First pass counts, second pass fills arrays of exactly that size.
    empty_idx = np.empty(0, dtype=np.int64)
    empty_alpha = np.empty(0, dtype=np.float64)
    count = _scan_connections_numba(xs, ys, order, threshold, empty_idx, empty_idx, empty_alpha, False)

    out_i = np.empty(count, dtype=np.int64)
    out_j = np.empty(count, dtype=np.int64)
    out_alpha = np.empty(count, dtype=np.float64)
    _scan_connections_numba(xs, ys, order, threshold, out_i, out_j, out_alpha, True)

    return [(int(out_i[k]), int(out_j[k]), float(out_alpha[k])) for k in range(count)]


class ParticleField:
    """
    A field of drifting particles whose density follows the surface area.
    """
    def __init__(self, canvas, params: Optional[Dict[str, Any]] = None):
        """
        Reads and validates the field parameters.

        Args:
            canvas: Drawing context the particles render on.
            params (Dict[str, Any]): The "field" section of the config.
        """
        params = params if params is not None else {}
        self.canvas = canvas
        self.density = params.get('density', DEFAULT_DENSITY)
        self.connection_distance = params.get('connection_distance', DEFAULT_CONNECTION_DISTANCE)
        self.repulsion_radius = params.get('repulsion_radius', DEFAULT_REPULSION_RADIUS)
        self.max_particle_size = params.get('max_particle_size', DEFAULT_MAX_PARTICLE_SIZE)
        self.connections_enabled = bool(params.get('draw_connections', False))
        self.seed = params.get('seed')

        for name in ('density', 'connection_distance', 'repulsion_radius'):
            value = getattr(self, name)
            if value <= 0:
                msg = f"Configuration error: '{name}' must be positive, got {value}."
                logging.critical(msg)
                raise ValueError(msg)
        if self.max_particle_size < 1:
            msg = (
                f"Configuration error: 'max_particle_size' must be at least 1, "
                f"got {self.max_particle_size}."
            )
            logging.critical(msg)
            raise ValueError(msg)

        self.rng = np.random.default_rng(self.seed)
        self.particles: List[Particle] = []
        self.bounds: Optional[Bounds] = None
        self.pointer: Optional[PointerState] = None
        self.running = False
        # Event reactions may arrive from another thread than the frame loop.
        self._lock = threading.RLock()

        logging.info(
            f"ParticleField configured: density={self.density}, "
            f"repulsion_radius={self.repulsion_radius}, "
            f"connection_distance={self.connection_distance}, "
            f"max_particle_size={self.max_particle_size}, "
            f"connections={'on' if self.connections_enabled else 'off'}."
        )

    @property
    def initialized(self) -> bool:
        return self.bounds is not None

    def initialize(self, bounds: Bounds, events=None) -> None:
        """
        Sizes the field to the surface, populates it and hooks up reactions.

        Args:
            bounds (Bounds): Size of the drawing surface.
            events: Optional event source exposing subscribe(kind, handler).
        """
        with self._lock:
            self.bounds = bounds
            self.adjust_particle_count()

        if events is not None:
            events.subscribe('pointer_move', self.on_pointer_move)
            events.subscribe('pointer_leave', self.on_pointer_leave)
            events.subscribe('resize', self.on_resize)

        logging.info(
            f"ParticleField initialized on a {bounds.width}x{bounds.height} surface "
            f"with {len(self.particles)} particles."
        )

    def start(self) -> None:
        """Marks the field as running. Frames are driven by the caller via step()."""
        if not self.initialized:
            raise RuntimeError("ParticleField.start() called before initialize().")
        self.running = True
        logging.info("ParticleField started.")

    def target_count(self) -> int:
        width, height = self.bounds.width, self.bounds.height
        if width <= 0 or height <= 0:
            return 0
        return int(width * height // self.density)

    def adjust_particle_count(self) -> None:
        """
        Grows or shrinks the collection to match the surface area.

        New particles are appended at the end. Surplus particles are dropped
        from the end: the last `current - target` entries go, and the first
        `target` stay exactly as they were.
        """
        with self._lock:
            target = self.target_count()
            current = len(self.particles)
            difference = target - current

            if difference > 0:
                self.particles.extend(
                    spawn_particles(self.rng, difference, self.bounds, self.max_particle_size)
                )
                logging.debug(f"Added {difference} particles ({current} -> {target}).")
            elif difference < 0:
                # Guarded: del lst[-0:] would empty the whole list.
                surplus = -difference
                del self.particles[-surplus:]
                logging.debug(f"Removed {surplus} trailing particles ({current} -> {target}).")

    def step(self) -> None:
        """
        Runs one animation frame.
        """
        with self._lock:
            if not self.initialized:
                raise RuntimeError("ParticleField.step() called before initialize().")

            pointer = self.pointer
            bounds = self.bounds
            radius = self.repulsion_radius

            self.canvas.clear()
            for i, particle in enumerate(self.particles):
                self.particles[i] = update(particle, pointer, bounds, radius, self.canvas)

            if self.connections_enabled:
                self.draw_connections()

    def draw_connections(self) -> None:
        """Strokes a line between every pair closer than the connection distance."""
        particles = self.particles
        for i, j, alpha in find_connections(particles, self.connection_distance):
            a, b = particles[i], particles[j]
            self.canvas.stroke_line(
                a.x, a.y, b.x, b.y, CONNECTION_COLOR, alpha, CONNECTION_LINE_WIDTH
            )

    def on_pointer_move(self, x: float, y: float) -> None:
        with self._lock:
            self.pointer = PointerState(x, y)

    def on_pointer_leave(self) -> None:
        with self._lock:
            self.pointer = None

    def on_resize(self, bounds: Bounds) -> None:
        """Adopts the new surface size and rebalances the particle count."""
        with self._lock:
            self.bounds = bounds
            self.adjust_particle_count()
        logging.info(
            f"Surface resized to {bounds.width}x{bounds.height}; "
            f"field now holds {len(self.particles)} particles."
        )
