"""Process-wide logging setup."""

import logging

from broker.config import settings


def setup_logging():
    """Configure the root logger from settings.log_level."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request line (including query strings carrying Pi-hole sids) at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
