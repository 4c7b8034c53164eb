"""
Progress Store Factory
Centralizes the logic for selecting the progress store implementation.
"""

import logging

from recall.application.config import AppConfig
from recall.domain.ports import ProgressStore
from recall.infrastructure.adapters import InMemoryProgressStore, JsonFileProgressStore

logger = logging.getLogger(__name__)


def get_progress_store(config: AppConfig) -> ProgressStore:
    """
    Returns the ProgressStore implementation selected by config.backend.
    """
    if config.backend == "memory":
        logger.debug("Using in-memory progress store")
        return InMemoryProgressStore(max_history=config.max_history)

    logger.debug(f"Using JSON progress store at {config.data_dir}")
    return JsonFileProgressStore(config.data_dir, max_history=config.max_history)
