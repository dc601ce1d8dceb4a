import logging
import os
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_env_file() -> None:
    """Load environment variables from .env file if not already set.

    WHAT:
        Loads variables from a local .env file into os.environ.
        Does NOT overwrite existing environment variables.
    WHY:
        Lets a local .env configure the query engine during development
        without clobbering variables set by the host process.
    """
    loaded = load_dotenv(override=False)

    if loaded:
        logger.info("Loaded local .env file (existing variables were NOT overwritten)")
    else:
        logger.debug("No local .env file found or loaded")


def optional_env(name: str) -> Optional[str]:
    """Return a stripped environment variable, or None when unset/blank."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()
