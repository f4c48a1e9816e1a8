# particle.py
"""
State and motion of a single particle.

A particle is an immutable record. Each frame it is replaced by a new record
computed from its old state, the surface bounds and the pointer, which keeps
the motion math free of side effects. Drawing is a separate, explicit step.
"""
import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np

from constants import MAX_SPAWN_SPEED
from utils import clamp

# --- Data Contracts ---
#
# advance(particle, pointer, bounds, repulsion_radius) -> Particle:
#   - Inputs:
#     - particle: current state.
#     - pointer: PointerState or None when the pointer is not tracked.
#     - bounds: Bounds of the drawing surface.
#     - repulsion_radius: float > 0.
#   - Outputs: the particle's state one frame later.
#   - Order: reflect off the edges, repel from the pointer, integrate.
#   - Invariants: size, color and alpha never change.
#
# update(particle, pointer, bounds, repulsion_radius, canvas) -> Particle:
#   - Same as advance, then draws the new state on the canvas.
#
# spawn_particles(rng, count, bounds, max_size) -> List[Particle]:
#   - Invariants: 1 <= size <= max_size, alpha == 1 - size / max_size,
#     |vx|, |vy| <= MAX_SPAWN_SPEED.


@dataclass(frozen=True)
class Bounds:
    width: int
    height: int


@dataclass(frozen=True)
class PointerState:
    x: float
    y: float


@dataclass(frozen=True)
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    size: float
    color: Tuple[int, int, int]
    alpha: float


def reflect(particle: Particle, bounds: Bounds) -> Particle:
    """
    Bounces the particle off the surface edges.

    Both axes are tested on every call, so a particle outside a corner flips
    both velocity components. An outside particle always ends up heading back
    in: a particle left outside by a shrinking surface would otherwise flip
    back and forth on every frame without ever re-entering.
    """
    vx, vy = particle.vx, particle.vy
    if particle.x < 0:
        vx = abs(vx)
    elif particle.x > bounds.width:
        vx = -abs(vx)
    if particle.y < 0:
        vy = abs(vy)
    elif particle.y > bounds.height:
        vy = -abs(vy)
    if vx == particle.vx and vy == particle.vy:
        return particle
    return replace(particle, vx=vx, vy=vy)


def repel(
    particle: Particle,
    pointer: Optional[PointerState],
    bounds: Bounds,
    repulsion_radius: float,
) -> Particle:
    """
    Pushes the particle out to the edge of the pointer's repulsion circle.

    This is a teleport, not a force: a particle strictly inside the circle is
    placed exactly `repulsion_radius` away from the pointer along the
    pointer-to-particle direction, then clamped to the surface. When the
    pointer sits exactly on the particle, atan2(0, 0) == 0 and the particle
    is moved along +x.
    """
    if pointer is None:
        return particle

    dx = particle.x - pointer.x
    dy = particle.y - pointer.y
    if dx * dx + dy * dy >= repulsion_radius * repulsion_radius:
        return particle

    angle = math.atan2(dy, dx)
    x = clamp(pointer.x + repulsion_radius * math.cos(angle), 0, bounds.width)
    y = clamp(pointer.y + repulsion_radius * math.sin(angle), 0, bounds.height)
    return replace(particle, x=x, y=y)


def integrate(particle: Particle) -> Particle:
    # One frame is one time unit; speed therefore scales with the frame rate.
    return replace(particle, x=particle.x + particle.vx, y=particle.y + particle.vy)


def advance(
    particle: Particle,
    pointer: Optional[PointerState],
    bounds: Bounds,
    repulsion_radius: float,
) -> Particle:
    """Returns the particle's state after one frame."""
    particle = reflect(particle, bounds)
    particle = repel(particle, pointer, bounds, repulsion_radius)
    return integrate(particle)


def draw(particle: Particle, canvas) -> None:
    canvas.fill_circle(particle.x, particle.y, particle.size, particle.color, particle.alpha)


def update(
    particle: Particle,
    pointer: Optional[PointerState],
    bounds: Bounds,
    repulsion_radius: float,
    canvas,
) -> Particle:
    """Advances the particle by one frame and draws the result."""
    particle = advance(particle, pointer, bounds, repulsion_radius)
    draw(particle, canvas)
    return particle


def spawn_particles(
    rng: np.random.Generator, count: int, bounds: Bounds, max_size: float
) -> List[Particle]:
    """
    Creates `count` particles spread uniformly over the surface.

    Args:
        rng (np.random.Generator): Source of all randomness.
        count (int): Number of particles to create.
        bounds (Bounds): Surface the particles are placed on.
        max_size (float): Largest radius a particle may get.

    Returns:
        List[Particle]: The new particles. Larger ones are more transparent.
    """
    if count <= 0:
        return []

    positions = rng.uniform(low=[0, 0], high=[bounds.width, bounds.height], size=(count, 2))
    velocities = rng.uniform(low=-MAX_SPAWN_SPEED, high=MAX_SPAWN_SPEED, size=(count, 2))
    sizes = rng.uniform(low=1.0, high=max_size, size=count)
    colors = rng.integers(low=0, high=256, size=(count, 3))

    particles = [
        Particle(
            x=float(positions[i, 0]),
            y=float(positions[i, 1]),
            vx=float(velocities[i, 0]),
            vy=float(velocities[i, 1]),
            size=float(sizes[i]),
            color=(int(colors[i, 0]), int(colors[i, 1]), int(colors[i, 2])),
            alpha=1.0 - float(sizes[i]) / max_size,
        )
        for i in range(count)
    ]
    logging.debug(f"Spawned {count} particles on a {bounds.width}x{bounds.height} surface.")
    return particles
