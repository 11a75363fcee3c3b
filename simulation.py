# simulation.py
"""
Handles the core simulation logic: falling, wrapping, settling and the pile.

This module defines the Simulation class, which owns the falling (active)
particles, the settled pile and the wind, and advances them by one frame at
a time. The per-particle settling pass runs in a Numba-jitted kernel because
it is inherently sequential: a particle that settles early in the pass is
already part of the pile for every particle checked after it.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from numba import jit

from config import SimulationConfig
from constants import (
    SPAWN_Y, SPAWN_X_MARGIN, WRAP_TRIGGER_MARGIN, WRAP_LANDING_MARGIN,
    WIND_CAP_FACTOR, SCAN_ROWS, REST_SPREAD_X, REST_SPREAD_Y, EVICTION_DIVISOR
)
from particle import ParticleCollection, spawn_particle

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, config: SimulationConfig, width: int, height: int,
#              rng: Optional[np.random.Generator] = None):
#     - Inputs:
#       - config: engine parameters (gravity, wind, particle_size, ...).
#       - width, height: viewport size in the same units as positions.
#       - rng: random source for every draw the engine makes. Defaults to
#         np.random.default_rng(config.seed).
#     - Side Effects: Creates empty active and settled collections and a
#       zero wind vector.
#
#   - tick(self) -> TickStats:
#     - Side Effects: wind step, integration, settling, eviction, in that
#       order. Reads self.config exactly once.
#     - Invariants:
#       - No particle is in both collections.
#       - |wind| <= WIND_CAP_FACTOR * config.wind.
#       - len(settled) < max_particles after eviction unless the batch is 0.
#
#   - resize(self, width, height) -> None:
#     - Side Effects: every settled particle moves back to the active set.

# Per-particle outcomes of the settling pass.
STILL_ACTIVE = 0
SETTLED = 1
DISCARDED = 2


@jit(nopython=True)
def _find_resting_point(x, y, speed_sq, dir_x, dir_y, settled, settled_count, scan_limit, particle_size):
    """
    Scans the most recent `scan_limit` settled particles, newest first, for
    one within a single step's reach of (x, y). A negative `scan_limit`
    scans the whole pile.

    Returns (found, rest_x, rest_y).
    """
    stop = 0
    if scan_limit >= 0:
        stop = max(settled_count - scan_limit, 0)
    for j in range(settled_count - 1, stop - 1, -1):
        dx = x - settled[j, 0]
        dy = y - settled[j, 1]
        # Squared distance against squared speed: "would have swept through it".
        if dx * dx + dy * dy <= speed_sq:
            norm = np.sqrt(dir_x * dir_x + dir_y * dir_y)
            if norm == 0.0:
                # No direction to rest in; the particle is re-tested next tick.
                return False, 0.0, 0.0
            rest_x = settled[j, 0] + dir_x / norm * particle_size
            rest_y = settled[j, 1] + dir_y / norm * particle_size
            return True, rest_x, rest_y
    return False, 0.0, 0.0


@jit(nopython=True)
def settle_particles(positions, velocities, directions, settled, settled_count,
                     width, height, particle_size, scan_limit):
    """
    Numba-jitted settling pass over the active particles.

    `settled` is a buffer whose first `settled_count` rows hold the current
    pile and which has room for every active particle after them. Settled
    particles are appended in active-index order. Positions of particles
    that land are updated in place.

    Returns (outcome, settled_count), where outcome[i] is one of
    STILL_ACTIVE, SETTLED or DISCARDED.
    """
    n = positions.shape[0]
    outcome = np.zeros(n, dtype=np.int8)
    for i in range(n):
        x = positions[i, 0]
        y = positions[i, 1]

        if y >= height:
            positions[i, 1] = height
            y = height
            inside_x = x >= -particle_size and x <= width + particle_size
            inside_y = y >= -particle_size and y <= height + particle_size
            if inside_x and inside_y:
                settled[settled_count, 0] = x
                settled[settled_count, 1] = y
                settled_count += 1
                outcome[i] = SETTLED
            else:
                outcome[i] = DISCARDED
            continue

        speed_sq = velocities[i, 0] ** 2 + velocities[i, 1] ** 2
        found, rest_x, rest_y = _find_resting_point(
            x, y, speed_sq, directions[i, 0], directions[i, 1],
            settled, settled_count, scan_limit, particle_size
        )
        if found:
            positions[i, 0] = rest_x
            positions[i, 1] = rest_y
            settled[settled_count, 0] = rest_x
            settled[settled_count, 1] = rest_y
            settled_count += 1
            outcome[i] = SETTLED
    return outcome, settled_count


@dataclass
class TickStats:
    settled: int = 0
    discarded: int = 0
    evicted: int = 0


class Simulation:
    """
    Owns the falling particles, the settled pile and the wind, and advances
    them one frame at a time.
    """
    def __init__(self, config: SimulationConfig, width: int, height: int,
                 rng: Optional[np.random.Generator] = None):
        """
        Initializes the simulation environment.

        Args:
            config (SimulationConfig): Engine parameters.
            width (int): The width of the viewport.
            height (int): The height of the viewport.
            rng (np.random.Generator, optional): Source of all randomness.
        """
        self.config = config
        self.width = width
        self.height = height
        # All randomness goes through one generator so runs can be replayed.
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        self.active = ParticleCollection()
        self.settled = ParticleCollection()
        self.wind = np.zeros(2, dtype=np.float64)

        logging.info(
            f"Simulation initialized for a {width}x{height} viewport "
            f"(max_particles={config.max_particles}, particle_size={config.particle_size})."
        )

    # --- Host-facing operations ---

    def reload(self, config: SimulationConfig) -> None:
        """Replaces the configuration. Takes effect from the next tick."""
        self.config = config
        logging.info("Simulation configuration replaced.")
        logging.debug(f"New simulation configuration: {config}")

    def resize(self, width: int, height: int) -> None:
        """
        Updates the viewport and drops the whole pile back into the active
        set, since it was built against the old floor.
        """
        self.width = width
        self.height = height
        moved = self.settled.take_all()
        self.active.extend(moved)
        logging.info(f"Viewport resized to {width}x{height}; {len(moved)} settled particles released.")

    def spawn(self, position: Sequence[float]) -> None:
        self.active.append(spawn_particle(position, self.config.starting_speed, self.rng))

    def spawn_at(self, x: float, y: float) -> None:
        self.spawn((x, y))

    def clear_settled(self) -> None:
        count = len(self.settled)
        self.settled.clear()
        logging.info(f"Cleared {count} settled particles.")

    def ambient_spawn_tick(self) -> int:
        """
        Spawns this frame's share of ambient particles along the top edge.

        A rate of 2.3 gives exactly 2 spawns plus a 30% chance of a third.

        Returns:
            int: The number of particles spawned.
        """
        rate = self.config.new_particles
        whole = int(math.floor(rate))
        count = whole + (1 if self.rng.random() < rate - whole else 0)
        for _ in range(count):
            x = self.rng.uniform(-SPAWN_X_MARGIN, self.width + SPAWN_X_MARGIN)
            self.spawn((x, SPAWN_Y))
        return count

    def step(self) -> TickStats:
        """Executes one full frame: ambient spawning followed by a tick."""
        self.ambient_spawn_tick()
        return self.tick()

    def tick(self) -> TickStats:
        """
        Executes one time step of the simulation.
        """
        # Read once so a reload can never change parameters mid-tick.
        config = self.config

        # 1. Wind random walk, clamped to the cap.
        self._evolve_wind(config)

        # 2. Move active particles (vectorised with NumPy)
        self._integrate(config)

        # 3. Settle particles on the floor or on the pile (using Numba)
        stats = self._settle(config)

        # 4. Trim the oldest part of the pile once it is full
        stats.evicted = self._evict(config)
        return stats

    # --- Read-only views for rendering ---

    @property
    def particle_size(self) -> float:
        return self.config.particle_size

    @property
    def active_positions(self) -> np.ndarray:
        return _read_only(self.active.positions)

    @property
    def settled_positions(self) -> np.ndarray:
        return _read_only(self.settled.positions)

    # --- Collision helpers ---

    def scan_window(self) -> Optional[int]:
        """
        Number of settled particles, newest first, that a falling particle
        is checked against: roughly SCAN_ROWS full rows of the pile.
        None means the whole pile (degenerate zero particle size).
        """
        size = self.config.particle_size
        if size <= 0:
            return None
        per_row = self.width / size
        if not math.isfinite(per_row):
            return None
        return int(per_row) * SCAN_ROWS

    def _scan_limit(self, capacity: int) -> int:
        """
        The scan window as a kernel argument: -1 for the whole pile, and
        never more than `capacity`, the most settled particles the scan can
        see, so it always fits a machine integer.
        """
        window = self.scan_window()
        if window is None:
            return -1
        return min(window, capacity)

    def random_rest_directions(self, count: int) -> np.ndarray:
        """Draws `count` upward-and-sideways offset directions (not normalized)."""
        directions = np.empty((count, 2), dtype=np.float64)
        directions[:, 0] = self.rng.uniform(-REST_SPREAD_X, REST_SPREAD_X, count)
        directions[:, 1] = -self.rng.uniform(0.0, REST_SPREAD_Y, count)
        return directions

    def touching_settled_particle(self, position: Sequence[float], velocity: Sequence[float],
                                  direction: Optional[Sequence[float]] = None) -> Optional[Tuple[float, float]]:
        """
        Checks a falling particle against the recent part of the pile.

        Args:
            position: Current position of the falling particle.
            velocity: Its velocity; its squared length is the reach.
            direction: Offset direction for the resting point. Drawn from
                the engine's generator when omitted.

        Returns:
            The resting point, or None if nothing was touched or the
            direction was the zero vector.
        """
        if direction is None:
            direction = self.random_rest_directions(1)[0]
        speed_sq = float(velocity[0]) ** 2 + float(velocity[1]) ** 2
        found, rest_x, rest_y = _find_resting_point(
            float(position[0]), float(position[1]), speed_sq,
            float(direction[0]), float(direction[1]),
            self.settled.positions, len(self.settled),
            self._scan_limit(len(self.settled)), float(self.config.particle_size)
        )
        return (rest_x, rest_y) if found else None

    # --- Tick phases ---

    def _evolve_wind(self, config: SimulationConfig) -> None:
        strength = config.wind
        self.wind += self.rng.uniform(-strength, strength, 2)
        cap = WIND_CAP_FACTOR * strength
        magnitude = np.hypot(self.wind[0], self.wind[1])
        # cap >= 0, so magnitude > 0 here.
        if magnitude > cap:
            self.wind *= cap / magnitude

    def _integrate(self, config: SimulationConfig) -> None:
        if len(self.active) == 0:
            return
        pos = self.active.positions
        vel = self.active.velocities

        # Wind drifts positions only; it never feeds into velocity.
        pos += vel + self.wind

        # Horizontal wraparound, landing just outside the opposite edge
        x = pos[:, 0]
        past_right = x >= self.width + WRAP_TRIGGER_MARGIN
        past_left = x <= -WRAP_TRIGGER_MARGIN
        x[past_right] = -WRAP_LANDING_MARGIN
        x[past_left] = self.width + WRAP_LANDING_MARGIN

        vel[:, 1] += config.gravity

    def _settle(self, config: SimulationConfig) -> TickStats:
        n = len(self.active)
        if n == 0:
            return TickStats()

        # The kernel appends straight into the pile's spare rows.
        settled_before = len(self.settled)
        self.settled.reserve(n)
        outcome, settled_count = settle_particles(
            self.active.positions, self.active.velocities,
            self.random_rest_directions(n), self.settled.spare_buffer(), settled_before,
            float(self.width), float(self.height),
            float(config.particle_size), self._scan_limit(settled_before + n)
        )

        landed = outcome == SETTLED
        self.settled.commit(self.active.velocities[landed])
        self.active.keep(outcome == STILL_ACTIVE)

        return TickStats(
            settled=settled_count - settled_before,
            discarded=int(np.count_nonzero(outcome == DISCARDED)),
        )

    def _evict(self, config: SimulationConfig) -> int:
        if len(self.settled) < config.max_particles:
            return 0
        batch = config.eviction_batch
        if batch is None:
            batch = config.max_particles // EVICTION_DIVISOR + int(math.floor(config.new_particles))
        evicted = self.settled.drop_oldest(batch)
        logging.debug(f"Pile full; evicted the {evicted} oldest settled particles.")
        return evicted


def _read_only(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view
