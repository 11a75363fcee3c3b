# visualization.py
"""
Handles the window, user input and rendering of the simulation using Pygame.
"""
import logging
from typing import Optional, Tuple

import pygame

from config import AppConfig, ConfigProvider
from constants import BACKGROUND_COLOR, PARTICLE_COLOR, WINDOW_TITLE

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import Simulation


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, config: AppConfig):
#     - Inputs:
#       - config: application configuration; the window size, frame delay
#         and "decorations" flag are read from config.simulation.
#     - Outputs: None
#     - Side Effects: Initializes Pygame and creates a resizable display
#       surface. Raises pygame.error if no display can be created.
#
#   - handle_events(self, simulation, provider=None) -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Forwards resize, spawn, clear and reload actions to
#       the simulation. Never touches particle state directly.
#
#   - draw(self, simulation) -> None:
#     - Side Effects: Renders settled then active particles. Read-only
#       with respect to the simulation.

class Visualizer:
    """
    Owns the Pygame window: turns input events into simulation calls and
    renders both particle sets each frame.
    """
    def __init__(self, config: AppConfig):
        """
        Initializes Pygame and the display window.
        """
        sim_config = config.simulation
        pygame.init()

        flags = pygame.RESIZABLE
        if not sim_config.decorations:
            flags |= pygame.NOFRAME

        size = (sim_config.window_width, sim_config.window_height)
        try:
            self.screen = pygame.display.set_mode(size, flags)
        except pygame.error as e:
            logging.critical(f"Could not create a {size[0]}x{size[1]} display: {e}")
            pygame.quit()
            raise

        pygame.display.set_caption(WINDOW_TITLE)
        self.sleep_ms = sim_config.sleep_ms_per_frame
        self.mouse_pos: Tuple[int, int] = (0, 0)

        logging.info(f"Visualizer initialized with Pygame display ({size[0]}x{size[1]}).")

    @property
    def size(self) -> Tuple[int, int]:
        return self.screen.get_size()

    def handle_events(self, simulation: "Simulation", provider: Optional[ConfigProvider] = None) -> bool:
        """
        Drains the Pygame event queue.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        for event in pygame.event.get():
            if not self.dispatch(event, simulation, provider):
                return False
        return True

    def dispatch(self, event: pygame.event.Event, simulation: "Simulation",
                 provider: Optional[ConfigProvider] = None) -> bool:
        """Applies a single event. Returns False if it asks the loop to stop."""
        if event.type == pygame.QUIT:
            logging.info("Quit event received. Shutting down visualizer.")
            return False

        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False
            elif event.key == pygame.K_SPACE:
                simulation.clear_settled()
            elif event.key == pygame.K_r:
                self._reload(simulation, provider)
            else:
                logging.debug(f"Key: {pygame.key.name(event.key)}, scancode: {getattr(event, 'scancode', None)}")

        elif event.type == pygame.VIDEORESIZE:
            simulation.resize(event.w, event.h)

        elif event.type == pygame.MOUSEMOTION:
            self.mouse_pos = event.pos

        elif event.type == pygame.MOUSEBUTTONUP:
            self.mouse_pos = event.pos
            # Buttons 4 and 5 are the legacy wheel events.
            if event.button not in (4, 5):
                simulation.spawn_at(*self.mouse_pos)

        return True

    def _reload(self, simulation: "Simulation", provider: Optional[ConfigProvider]) -> None:
        if provider is None:
            logging.warning("Reload requested but no configuration provider is attached.")
            return
        if provider.reload():
            simulation.reload(provider.config.simulation)
            self.sleep_ms = provider.config.simulation.sleep_ms_per_frame

    def draw(self, simulation: "Simulation") -> None:
        """
        Draws every settled particle, then every falling one.
        """
        self.screen.fill(BACKGROUND_COLOR)
        radius = simulation.particle_size

        for x, y in simulation.settled_positions:
            pygame.draw.circle(self.screen, PARTICLE_COLOR, (x, y), radius)

        for x, y in simulation.active_positions:
            pygame.draw.circle(self.screen, PARTICLE_COLOR, (x, y), radius)

        pygame.display.flip()

    def wait_frame(self) -> None:
        """Paces the loop by the configured per-frame delay."""
        pygame.time.wait(self.sleep_ms)

    def close(self):
        """Shuts down Pygame."""
        pygame.quit()
