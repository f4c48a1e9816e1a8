# utils.py
"""
Utility functions for the particle field.

Helpers shared by several modules that do not belong to the simulation or
the rendering layer: logging setup, config loading and numeric clamping.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary that may contain a "logging" key with "level",
#       "format", "log_file", "max_bytes" and "backup_count" sub-keys.
#   - Outputs: None
#   - Side Effects: Replaces the root logger's handlers with a console
#     handler and a rotating file handler. Creates the log directory.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Raises FileNotFoundError / json.JSONDecodeError after logging them.
#
# clamp(value, low, high) -> float:
#   - Invariant: low <= result <= high whenever low <= high.

def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the root logger from the "logging" section of the config.

    Messages go both to the console and to a size-rotated log file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/particle_field.log')
    max_bytes = log_config.get('max_bytes', 1024*1024)
    backup_count = log_config.get('backup_count', 5)

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Re-running setup must not stack handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=max_bytes, backupCount=backup_count
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}, writing to {log_file_path} "
                  f"(rotating at {max_bytes} bytes, {backup_count} backups).")

def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise
    logging.info("Configuration loaded successfully.")
    return config

def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(value, high))
