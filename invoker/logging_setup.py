"""Process-wide logging configuration."""

import logging
import sys

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def setup_logging(debug: bool = False) -> None:
    """Log to stdout at INFO, or DEBUG when requested."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    if debug:
        logging.getLogger(__name__).debug("Debug logging is enabled")
