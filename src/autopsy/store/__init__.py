"""
Persistence layer for autopsy

Stores alerts, incidents and services behind the AlertStore contract.
"""

import logging
from typing import Optional

from ..config import AutopsyConfig, get_config
from .base import AlertStore, RecordNotFoundError, StoreError
from .local import LocalFileStore
from .memory import MemoryStore

logger = logging.getLogger(__name__)


def create_store(config: Optional[AutopsyConfig] = None) -> AlertStore:
    """Create the store backend selected by configuration"""
    config = config or get_config()
    backend = config.store.backend

    if backend == "memory":
        return MemoryStore()
    if backend == "local":
        logger.info(f"Using local file store at {config.store.path}")
        return LocalFileStore(config.store.path)

    raise ValueError(f"Unknown store backend '{backend}' (expected 'memory' or 'local')")


__all__ = [
    "AlertStore",
    "StoreError",
    "RecordNotFoundError",
    "MemoryStore",
    "LocalFileStore",
    "create_store",
]
