"""
Logging utilities for the interview coach.
"""
import os
import logging


def setup_logging(log_file_path: str, level: str = "DEBUG") -> str:
    """
    Set up logging to file with minimal console output.

    Args:
        log_file_path: Full path to the log file
        level: Level for the file handler

    Returns:
        Path to the log file
    """
    workdir = os.path.dirname(log_file_path)
    if workdir:
        os.makedirs(workdir, exist_ok=True)

    logging.getLogger().handlers.clear()

    # File handler for detailed logs
    file_handler = logging.FileHandler(log_file_path, mode='a')
    file_handler.setLevel(getattr(logging, str(level).upper(), logging.DEBUG))
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s'))

    # Console only shows critical problems; the session itself prints to stdout
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.CRITICAL)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    return log_file_path
