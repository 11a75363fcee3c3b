# main.py
"""
Main entry point for the Snowrest simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.ini`.
2. Initializes the logging system.
3. Sets up the simulation engine and the window.
4. Runs the main frame loop.
5. Handles clean shutdown.
"""
import cProfile
import io
import logging
import pstats
import sys

from config import ConfigError, ConfigProvider
from constants import CONFIG_PATH
from utils import setup_logging


def main(config_path: str = CONFIG_PATH) -> int:
    """
    The main function to run the simulation.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        provider = ConfigProvider(config_path)
    except ConfigError as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return 1

    config = provider.config
    setup_logging(config.logging)

    logging.info("--- Snowrest Simulation Starting ---")

    from simulation import Simulation
    from visualization import Visualizer

    # --- Component Initialization ---
    # The window is created first; the engine uses its actual size.
    visualizer = Visualizer(config)
    width, height = visualizer.size
    sim = Simulation(config.simulation, width, height)

    run_params = config.run_control
    log_throttle = run_params.log_throttle_steps
    max_steps = run_params.max_steps

    profiler = cProfile.Profile() if run_params.profile else None

    running = True
    step_num = 0

    if profiler is not None:
        profiler.enable()
    while running:
        if not visualizer.handle_events(sim, provider):
            break

        sim.step()
        step_num += 1

        visualizer.draw(sim)

        # Hot loops must throttle logs
        if step_num % log_throttle == 0:
            logging.info(f"Simulation step {step_num}")
            logging.debug(
                f"Step {step_num} | Active: {len(sim.active)} | "
                f"Settled: {len(sim.settled)} | Wind: ({sim.wind[0]:.3f}, {sim.wind[1]:.3f})"
            )

        if max_steps and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
            running = False

        visualizer.wait_frame()
    if profiler is not None:
        profiler.disable()

    visualizer.close()
    logging.info("Simulation loop finished.")

    if profiler is not None:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Snowrest Simulation Shutting Down ---")
    return 0


if __name__ == "__main__":
    sys.exit(main())
