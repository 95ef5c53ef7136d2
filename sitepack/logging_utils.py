from __future__ import annotations

import logging


def init_logging(level: str = "INFO") -> None:
    """Route all SitePack logging to stderr with a single formatter."""
    root_logger = logging.getLogger()

    level_value = logging.getLevelNamesMapping().get(level.upper())
    if level_value is None:
        raise ValueError(f"Invalid logging level: {level}")

    root_logger.setLevel(level_value)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        fmt="[%(asctime)s][%(levelname)s][%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level_value)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)


__all__ = ["init_logging"]
