"""Logging setup for applications embedding agentmem."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(level: int = logging.INFO, verbose: bool = False) -> None:
    """
    Configure root logging.

    Args:
        level: Log level for agentmem loggers
        verbose: Force DEBUG and keep third-party HTTP logs
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format=LOG_FORMAT,
    )

    if not verbose:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
