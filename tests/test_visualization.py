import numpy as np
import pytest

pygame = pytest.importorskip("pygame")

from config import AppConfig, ConfigProvider, SimulationConfig  # noqa: E402
from simulation import Simulation  # noqa: E402


@pytest.fixture
def visualizer(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    from visualization import Visualizer
    vis = Visualizer(AppConfig(simulation=SimulationConfig(window_width=320, window_height=200)))
    yield vis
    vis.close()


@pytest.fixture
def sim():
    return Simulation(SimulationConfig(starting_speed=0.0), 320, 200, rng=np.random.default_rng(3))


def _key(key):
    return pygame.event.Event(pygame.KEYDOWN, key=key, mod=0, scancode=0, unicode="")


def test_window_uses_configured_size(visualizer):
    assert visualizer.size == (320, 200)
    assert visualizer.sleep_ms == 30


def test_quit_and_escape_stop_the_loop(visualizer, sim):
    assert visualizer.dispatch(pygame.event.Event(pygame.QUIT), sim) is False
    assert visualizer.dispatch(_key(pygame.K_ESCAPE), sim) is False


def test_mouse_release_spawns_at_pointer(visualizer, sim):
    event = pygame.event.Event(pygame.MOUSEBUTTONUP, pos=(12, 34), button=1)

    assert visualizer.dispatch(event, sim) is True

    np.testing.assert_array_equal(sim.active.positions, [[12.0, 34.0]])


def test_space_clears_the_pile(visualizer, sim):
    sim.spawn_at(100.0, 199.0)
    sim.active.velocities[0] = (0.0, 2.0)
    sim.tick()
    assert len(sim.settled) == 1

    visualizer.dispatch(_key(pygame.K_SPACE), sim)

    assert len(sim.settled) == 0


def test_resize_event_resizes_simulation(visualizer, sim):
    event = pygame.event.Event(pygame.VIDEORESIZE, w=400, h=300, size=(400, 300))

    visualizer.dispatch(event, sim)

    assert (sim.width, sim.height) == (400, 300)


def test_reload_key_pushes_new_config(tmp_path, visualizer, sim):
    path = tmp_path / "config.ini"
    path.write_text("[default]\ngravity = 0.5\nsleep_ms_per_frame = 5\n")
    provider = ConfigProvider(str(path))

    visualizer.dispatch(_key(pygame.K_r), sim, provider)

    assert sim.config.gravity == 0.5
    assert visualizer.sleep_ms == 5


def test_failed_reload_leaves_simulation_config(tmp_path, visualizer, sim):
    path = tmp_path / "config.ini"
    path.write_text("[default]\ngravity = 0.5\n")
    provider = ConfigProvider(str(path))
    path.write_text("[default]\ngravity = broken\n")
    before = sim.config

    visualizer.dispatch(_key(pygame.K_r), sim, provider)

    assert sim.config is before


def test_draw_does_not_change_simulation(visualizer, sim):
    sim.spawn_at(10.0, 10.0)
    sim.settled.append(next(iter(sim.active)))
    active, settled = sim.active.positions.copy(), sim.settled.positions.copy()

    visualizer.draw(sim)

    np.testing.assert_array_equal(sim.active.positions, active)
    np.testing.assert_array_equal(sim.settled.positions, settled)


@pytest.mark.parametrize("button", [4, 5])
def test_wheel_release_does_not_spawn(visualizer, sim, button):
    event = pygame.event.Event(pygame.MOUSEBUTTONUP, pos=(12, 34), button=button)

    visualizer.dispatch(event, sim)

    assert len(sim.active) == 0
