# constants.py
"""
Application-level constants.

These values are static and do not change between runs. The field tunables
below are only defaults: the "field" section of config.json overrides them.
"""

# --- Field Tunables (defaults) ---
# Area per particle in square pixels. Larger values mean sparser fields.
DEFAULT_DENSITY = 25000
# Distance under which two particles are joined by a line.
DEFAULT_CONNECTION_DISTANCE = 150
# Distance within which the pointer pushes particles away.
DEFAULT_REPULSION_RADIUS = 200
# Upper bound for a particle's radius. The lower bound is always 1.
DEFAULT_MAX_PARTICLE_SIZE = 10

# Per-axis speed range for freshly spawned particles, in pixels per frame.
MAX_SPAWN_SPEED = 1.0

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a resizable window of DEFAULT_WINDOW_SIZE.
FULLSCREEN = False
DEFAULT_WINDOW_SIZE = (1280, 720)
FPS = 60
BACKGROUND_COLOR = (10, 10, 20) # Near black
WINDOW_TITLE = "Particle Field"

# Lines drawn by the connection pass.
CONNECTION_COLOR = (255, 255, 255)
CONNECTION_LINE_WIDTH = 1
