# config.py
"""
Loads and holds the tunable parameters of the simulation.

The configuration lives in an INI file with a [default] section for the
engine and window, plus [logging] and [run_control] sections for the
application shell. Every value is optional: a missing file or a missing
key silently falls back to the defaults below. A value that is present but
malformed is a hard error, and a failed reload never replaces the
configuration that is already in use.
"""
import configparser
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

# --- Data Contracts ---
#
# load_config(path: str) -> AppConfig:
#   - Inputs: path to an INI file. The file does not need to exist.
#   - Outputs: a fully populated, immutable AppConfig.
#   - Raises: ConfigError if a present value cannot be parsed or is out
#     of range.
#
# class ConfigProvider:
#   - __init__(self, path: str): loads the file once; raises ConfigError.
#   - reload(self) -> bool:
#     - Side Effects: replaces self.config with a freshly loaded AppConfig
#       only if the whole file parsed successfully.
#     - Invariants: self.config is never a partially updated mix of old
#       and new values.

DEFAULT_SECTION = "default"
LOGGING_SECTION = "logging"
RUN_CONTROL_SECTION = "run_control"


class ConfigError(ValueError):
    """A configuration value is present but malformed or out of range."""


@dataclass(frozen=True)
class SimulationConfig:
    sleep_ms_per_frame: int = 30
    window_width: int = 640
    window_height: int = 360
    decorations: bool = False

    particle_size: float = 1.0
    new_particles: float = 0.05     # ambient spawns per tick, may be fractional
    gravity: float = 0.04
    wind: float = 0.3               # random-walk step size of the wind
    starting_speed: float = 0.7
    max_particles: int = 2000
    eviction_batch: Optional[int] = None   # None derives it from max_particles
    seed: Optional[int] = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(levelname)s - %(message)s"
    log_file: str = "logs/simulation.log"


@dataclass(frozen=True)
class RunControl:
    log_throttle_steps: int = 100
    max_steps: int = 0              # 0 runs until the window is closed
    profile: bool = False


@dataclass(frozen=True)
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    run_control: RunControl = field(default_factory=RunControl)


def _get(parser: configparser.ConfigParser, section: str, key: str, getter: str, default, minimum=None, strict=False):
    """Reads one typed option, falling back to `default` when it is absent."""
    if not parser.has_option(section, key):
        return default
    raw = parser.get(section, key)
    try:
        value = getattr(parser, getter)(section, key)
    except ValueError as e:
        raise ConfigError(f"[{section}] {key} = {raw!r} is not a valid value: {e}") from e
    if minimum is not None and (value < minimum or (strict and value == minimum)):
        bound = ">" if strict else ">="
        raise ConfigError(f"[{section}] {key} = {raw!r} must be {bound} {minimum}.")
    return value


def _parse_simulation(parser: configparser.ConfigParser) -> SimulationConfig:
    d = SimulationConfig()
    s = DEFAULT_SECTION
    return SimulationConfig(
        sleep_ms_per_frame=_get(parser, s, "sleep_ms_per_frame", "getint", d.sleep_ms_per_frame, minimum=0),
        window_width=_get(parser, s, "window_width", "getint", d.window_width, minimum=0, strict=True),
        window_height=_get(parser, s, "window_height", "getint", d.window_height, minimum=0, strict=True),
        decorations=_get(parser, s, "decorations", "getboolean", d.decorations),
        particle_size=_get(parser, s, "particle_size", "getfloat", d.particle_size, minimum=0.0),
        new_particles=_get(parser, s, "new_particles", "getfloat", d.new_particles, minimum=0.0),
        gravity=_get(parser, s, "gravity", "getfloat", d.gravity),
        wind=_get(parser, s, "wind", "getfloat", d.wind, minimum=0.0),
        starting_speed=_get(parser, s, "starting_speed", "getfloat", d.starting_speed, minimum=0.0),
        max_particles=_get(parser, s, "max_particles", "getint", d.max_particles, minimum=0),
        eviction_batch=_get(parser, s, "eviction_batch", "getint", d.eviction_batch, minimum=0),
        seed=_get(parser, s, "seed", "getint", d.seed, minimum=0),
    )


def _parse_logging(parser: configparser.ConfigParser) -> LoggingConfig:
    d = LoggingConfig()
    s = LOGGING_SECTION
    level = _get(parser, s, "level", "get", d.level).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"[{s}] level = {level!r} is not a known logging level.")
    return LoggingConfig(
        level=level,
        format=_get(parser, s, "format", "get", d.format),
        log_file=_get(parser, s, "log_file", "get", d.log_file),
    )


def _parse_run_control(parser: configparser.ConfigParser) -> RunControl:
    d = RunControl()
    s = RUN_CONTROL_SECTION
    return RunControl(
        log_throttle_steps=_get(parser, s, "log_throttle_steps", "getint", d.log_throttle_steps, minimum=0, strict=True),
        max_steps=_get(parser, s, "max_steps", "getint", d.max_steps, minimum=0),
        profile=_get(parser, s, "profile", "getboolean", d.profile),
    )


def load_config(path: str) -> AppConfig:
    """Loads an INI configuration file, using defaults for anything missing."""
    logging.info(f"Loading configuration from {path}...")
    # Interpolation is off so log formats can contain '%(...)s' verbatim.
    parser = configparser.ConfigParser(interpolation=None)
    if not os.path.isfile(path):
        logging.info(f"No configuration file at {path}. Using defaults.")
        return AppConfig()

    try:
        with open(path, "r") as f:
            parser.read_file(f)
    except configparser.Error as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    config = AppConfig(
        simulation=_parse_simulation(parser),
        logging=_parse_logging(parser),
        run_control=_parse_run_control(parser),
    )
    logging.info("Configuration loaded successfully.")
    return config


class ConfigProvider:
    """
    Owns the current configuration and swaps it atomically on reload.
    """
    def __init__(self, path: str):
        self.path = path
        self.config = load_config(path)

    def reload(self) -> bool:
        """
        Re-reads the configuration file.

        Returns:
            bool: True if the new configuration is now active, False if the
            file was malformed and the previous configuration was kept.
        """
        try:
            new_config = load_config(self.path)
        except ConfigError as e:
            logging.error(f"Configuration reload failed, keeping previous settings: {e}")
            return False
        self.config = new_config
        logging.info("Configuration reloaded.")
        return True
