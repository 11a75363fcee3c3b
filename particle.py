# particle.py
"""
Particle data and the collections that hold them.

A Particle is plain position/velocity data. The simulation keeps two
ordered ParticleCollections, one for falling particles and one for the
settled pile, each backed by a pair of NumPy arrays so that the engine can
integrate them in bulk and hand them to Numba-compiled kernels.
"""
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

# --- Data Contracts ---
#
# spawn_particle(position, starting_speed: float, rng: np.random.Generator) -> Particle:
#   - Outputs: a Particle at `position` whose velocity components are drawn
#     independently from U[-starting_speed/2, starting_speed/2).
#
# class ParticleCollection:
#   - Invariants:
#     - self.positions is a NumPy array of shape (N, 2) of dtype float64.
#     - self.velocities is a NumPy array of shape (N, 2) of dtype float64.
#     - Row i of both arrays describes the same particle; rows are kept in
#       insertion order (oldest first).
#     - Both are views into buffers that may be reallocated by any append,
#       so callers must not hold them across mutations.


@dataclass
class Particle:
    position: np.ndarray
    velocity: np.ndarray

    def __eq__(self, other) -> bool:
        if not isinstance(other, Particle):
            return NotImplemented
        return (
            np.array_equal(self.position, other.position)
            and np.array_equal(self.velocity, other.velocity)
        )


def spawn_particle(position: Sequence[float], starting_speed: float, rng: np.random.Generator) -> Particle:
    """Creates a particle at `position` with a small random starting velocity."""
    velocity = (rng.random(2) - 0.5) * starting_speed
    return Particle(np.array(position, dtype=np.float64), velocity.astype(np.float64))


def _empty() -> np.ndarray:
    return np.zeros((0, 2), dtype=np.float64)


MIN_CAPACITY = 64


class ParticleCollection:
    """
    An ordered set of particles stored as parallel NumPy arrays.

    Rows live in preallocated buffers that grow geometrically, so appending
    is amortised O(1) and dropping the oldest particles only moves a start
    index. `positions` and `velocities` are views of the live rows.
    """
    def __init__(self, positions=None, velocities=None):
        if positions is None:
            positions = _empty()
        positions = np.array(positions, dtype=np.float64).reshape(-1, 2)
        if velocities is None:
            velocities = np.zeros_like(positions)
        velocities = np.array(velocities, dtype=np.float64).reshape(-1, 2)
        if positions.shape != velocities.shape:
            raise ValueError(
                f"positions {positions.shape} and velocities {velocities.shape} "
                f"must have the same shape."
            )
        capacity = max(MIN_CAPACITY, positions.shape[0])
        self._positions = np.zeros((capacity, 2), dtype=np.float64)
        self._velocities = np.zeros((capacity, 2), dtype=np.float64)
        self._start = 0
        self._end = positions.shape[0]
        self._positions[:self._end] = positions
        self._velocities[:self._end] = velocities

    @property
    def positions(self) -> np.ndarray:
        return self._positions[self._start:self._end]

    @property
    def velocities(self) -> np.ndarray:
        return self._velocities[self._start:self._end]

    def __len__(self) -> int:
        return self._end - self._start

    def __iter__(self) -> Iterator[Particle]:
        for pos, vel in zip(self.positions, self.velocities):
            yield Particle(pos.copy(), vel.copy())

    def __repr__(self) -> str:
        return f"ParticleCollection({len(self)} particles)"

    def reserve(self, count: int) -> None:
        """Makes room for `count` more rows after the live ones."""
        live = len(self)
        capacity = self._positions.shape[0]
        if self._end + count <= capacity:
            return
        if live + count > capacity // 2:
            capacity = max(2 * capacity, live + count)
        positions = np.zeros((capacity, 2), dtype=np.float64)
        velocities = np.zeros((capacity, 2), dtype=np.float64)
        positions[:live] = self.positions
        velocities[:live] = self.velocities
        self._positions, self._velocities = positions, velocities
        self._start, self._end = 0, live

    def spare_buffer(self) -> np.ndarray:
        """
        Writable view of the position rows from the oldest live particle to
        the end of the buffer. Rows past len(self) may be filled and then
        committed with commit().
        """
        return self._positions[self._start:]

    def commit(self, velocities: np.ndarray) -> None:
        """
        Marks rows already written into spare_buffer() as live, giving them
        `velocities`.
        """
        count = len(velocities)
        if self._end + count > self._positions.shape[0]:
            raise ValueError(f"Cannot commit {count} rows past the reserved capacity.")
        self._velocities[self._end:self._end + count] = velocities
        self._end += count

    def append(self, particle: Particle) -> None:
        self.reserve(1)
        self._positions[self._end] = np.reshape(particle.position, 2)
        self._velocities[self._end] = np.reshape(particle.velocity, 2)
        self._end += 1

    def extend(self, other: "ParticleCollection") -> None:
        """Appends every particle of `other`, preserving its order."""
        count = len(other)
        if count == 0:
            return
        self.reserve(count)
        self._positions[self._end:self._end + count] = other.positions
        self._velocities[self._end:self._end + count] = other.velocities
        self._end += count

    def take_all(self) -> "ParticleCollection":
        """Moves every particle out into a new collection, leaving this one empty."""
        taken = ParticleCollection(self.positions, self.velocities)
        self.clear()
        return taken

    def keep(self, mask: np.ndarray) -> None:
        """Keeps only the particles where `mask` is True, in their current order."""
        positions = self.positions[mask]
        velocities = self.velocities[mask]
        count = positions.shape[0]
        self._positions[:count] = positions
        self._velocities[:count] = velocities
        self._start, self._end = 0, count

    def drop_oldest(self, count: int) -> int:
        """
        Removes up to `count` particles from the front (oldest end).

        Returns:
            int: The number of particles actually removed.
        """
        count = max(0, min(int(count), len(self)))
        self._start += count
        if self._start == self._end:
            self._start = self._end = 0
        return count

    def clear(self) -> None:
        self._start = self._end = 0
