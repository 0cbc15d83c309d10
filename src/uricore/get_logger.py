import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given uricore module."""
    return logging.getLogger(f"uricore.{name}")
