"""BGPsec Filter Database Module"""
import logging

from bgpsec_filter.utils.error_handling import ConfigurationError

from .core import DatabaseManager, MAX_COMMENT_LENGTH
from .exceptions import DatabaseError, SchemaError, StoreUnavailable
from .sqlite_store import SqliteFilterStore
from .store import BgpsecFilterSection, FilterSet, FilterStore, MemoryFilterStore

logger = logging.getLogger('bgpsec_filter.database')


def create_store(store_config=None) -> FilterStore:
    """
    Factory resolver for selecting the filter store backend.

    Args:
        store_config: StoreConfig instance (default: global configuration)
    """
    if store_config is None:
        from bgpsec_filter.utils.config import get_config
        store_config = get_config().store

    backend = store_config.backend
    if backend == "memory":
        logger.info("Using in-memory BGPsec filter store")
        return MemoryFilterStore(store_config.max_comment_length)

    if backend == "sqlite":
        logger.info(f"Using SQLite BGPsec filter store at {store_config.db_path}")
        return SqliteFilterStore(store_config.db_path, store_config.max_comment_length)

    raise ConfigurationError(
        f"Unknown filter store backend: {backend}",
        guidance="Set store.backend to 'sqlite' or 'memory'"
    )


__all__ = [
    'DatabaseManager',
    'MAX_COMMENT_LENGTH',
    'DatabaseError',
    'SchemaError',
    'StoreUnavailable',
    'FilterStore',
    'FilterSet',
    'BgpsecFilterSection',
    'MemoryFilterStore',
    'SqliteFilterStore',
    'create_store'
]
