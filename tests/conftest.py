import numpy as np
import pytest

from config import SimulationConfig
from simulation import Simulation


@pytest.fixture
def make_sim():
    """Builds a seeded Simulation with any SimulationConfig fields overridden."""
    def _make(width=640, height=360, seed=1234, **overrides):
        config = SimulationConfig(**overrides)
        return Simulation(config, width, height, rng=np.random.default_rng(seed))
    return _make


@pytest.fixture
def calm_sim(make_sim):
    """No wind and no starting velocity, so motion is fully predictable."""
    return make_sim(wind=0.0, starting_speed=0.0)
