"""Logging configuration for the phasegate command line."""

from __future__ import annotations

import logging
import os

ROOT_LOGGER = "phasegate"


def setup_logging(
    log_file: str | None = None,
    verbose: bool = False,
    logger_name: str = ROOT_LOGGER,
) -> logging.Logger:
    """
    Configure dual-handler logging (console + file).

    Args:
        log_file: Path to log file (None for no file logging)
        verbose: Enable DEBUG level on console (default WARNING)
        logger_name: Logger to attach handlers to (module loggers propagate to it)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    # Repeated CLI invocations in one process (tests) must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler writes to stderr.
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter("%(levelname)-8s | %(name)s | %(message)s")
    )
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    # Suppress noisy 3rd party loggers
    for noisy in ["markdown_it", "urllib3"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
