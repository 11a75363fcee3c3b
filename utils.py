# utils.py
"""
Utility functions for the simulation framework.

This module provides helper functions, such as logging setup, that are
used across different parts of the application but do not belong to a
specific domain like physics or rendering.
"""
import logging
import logging.handlers
import os

from config import LoggingConfig

# --- Data Contracts ---
#
# setup_logging(log_config: LoggingConfig) -> None:
#   - Inputs:
#     - log_config: the [logging] section of the application config, with
#       "level", "format" and "log_file".
#   - Outputs: None
#   - Side Effects: Configures the root Python logger. Creates a log
#     directory if it doesn't exist. Sets up a console handler and a
#     rotating file handler.
#   - Invariants: After this function runs, the logging system is
#     initialized and ready for use throughout the application.

def setup_logging(log_config: LoggingConfig) -> None:
    """
    Configures the logging system from the [logging] configuration section.

    Sets up logging to both the console and a rotating file.
    """
    log_level = log_config.level.upper()
    log_file_path = log_config.log_file

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(log_config.format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Rotates when the log reaches 1MB, keeps 5 backup logs.
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=1024*1024, backupCount=5
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")
