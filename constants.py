# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They describe the fixed geometry of spawning and wrapping, the rendering
colours and the collision heuristic, none of which are part of the
tunable configuration in config.ini.
"""

# Visualization settings
WINDOW_TITLE = "Snowrest"
BACKGROUND_COLOR = (0, 0, 0)        # Black
PARTICLE_COLOR = (255, 255, 255)    # White, used for both active and settled

# --- Spawning ---
# New particles appear slightly above the visible area so they fall into view.
SPAWN_Y = -10.0
# Ambient spawns are spread this far past both side edges.
SPAWN_X_MARGIN = 40.0

# --- Horizontal wraparound ---
# A particle that drifts this far past an edge is moved to the other side...
WRAP_TRIGGER_MARGIN = 50.0
# ...and placed this far outside the opposite edge, so the jump is never visible.
WRAP_LANDING_MARGIN = 40.0

# --- Wind ---
# The wind magnitude is clamped to WIND_CAP_FACTOR * wind step size.
WIND_CAP_FACTOR = 10.0

# --- Stacking collision heuristic ---
# The settled scan window covers this many full pile rows.
SCAN_ROWS = 4
# Resting offset direction ranges: x in [-0.5, 0.5), y in (-1, 0].
REST_SPREAD_X = 0.5
REST_SPREAD_Y = 1.0

# --- Eviction ---
# Share of max_particles trimmed when the pile is full (1/10).
EVICTION_DIVISOR = 10

# Default location of the configuration file, relative to the working directory.
CONFIG_PATH = "config.ini"
