"""
Logging setup shared by the API and the scripts.
"""

import logging

from app.core.config import get_settings

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


def configure_logging(level: str = None) -> None:
    """Configure root logging once (later calls only adjust the level)."""
    settings = get_settings()
    level = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)

    # openai/httpx log every request at INFO
    if level != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)
