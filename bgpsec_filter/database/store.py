"""SLURM BGPsec filter store contract and the in-memory implementation"""
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Tuple, TypeVar

from bgpsec_filter.models import FilterRecord

logger = logging.getLogger('bgpsec_filter.database.store')

R = TypeVar('R')

# Immutable (filter id, record) pairs in insertion order
FilterSet = Tuple[Tuple[int, FilterRecord], ...]


class BgpsecFilterSection:
    """
    Mutable view of the BGPsec filter section handed to an update transaction.

    Transactions may edit ``filters`` in place or assign a new list; the
    store compares the result with the state it loaded and only writes when
    they differ.
    """

    def __init__(self, filters: FilterSet):
        self.filters: List[Tuple[int, FilterRecord]] = list(filters)

    def append(self, filter_id: int, record: FilterRecord) -> None:
        self.filters.append((filter_id, record))

    def snapshot(self) -> FilterSet:
        return tuple(self.filters)


class FilterStore(ABC):
    """
    Transactional storage for the BGPsec filter section of a SLURM store.

    ``update`` calls are serialized against each other. ``read`` may run
    concurrently and returns either the state before or after an update.
    """

    def __init__(self, max_comment_length: int = 500):
        self.max_comment_length = max_comment_length
        self._write_lock = threading.RLock()

    @abstractmethod
    def next_id(self) -> int:
        """Allocate a fresh filter identifier; identifiers are never reused."""
        ...

    @abstractmethod
    def read(self) -> FilterSet:
        """Return a consistent read-only snapshot of the filter section."""
        ...

    @property
    @abstractmethod
    def revision(self) -> int:
        """Number of committed writes to the filter section."""
        ...

    @abstractmethod
    def _load(self) -> FilterSet:
        """Load the current section inside an update transaction."""
        ...

    @abstractmethod
    def _write(self, filters: FilterSet) -> None:
        """Persist a changed section inside an update transaction."""
        ...

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        yield

    def update(self, tx: Callable[[BgpsecFilterSection], R]) -> R:
        """
        Run ``tx`` with exclusive access to the BGPsec filter section.

        Commits when ``tx`` returns normally. If ``tx`` raises, nothing is
        written and the exception propagates.
        """
        with self._write_lock, self._transaction():
            current = self._load()
            section = BgpsecFilterSection(current)
            result = tx(section)
            updated = section.snapshot()
            if updated != current:
                self._write(updated)
                logger.debug(
                    f"Committed BGPsec filter section: {len(current)} -> {len(updated)} entries"
                )
            return result

    def close(self) -> None:
        """Release store resources"""
        pass


class MemoryFilterStore(FilterStore):
    """Process-local filter store; snapshots are swapped atomically on commit"""

    def __init__(self, max_comment_length: int = 500):
        super().__init__(max_comment_length)
        self._filters: FilterSet = ()
        self._revision = 0
        self._next_id = 0
        self._id_lock = threading.Lock()
        self._pending: Optional[FilterSet] = None

    def next_id(self) -> int:
        with self._id_lock:
            filter_id = self._next_id
            self._next_id += 1
            return filter_id

    def read(self) -> FilterSet:
        return self._filters

    @property
    def revision(self) -> int:
        return self._revision

    def _load(self) -> FilterSet:
        return self._filters

    def _write(self, filters: FilterSet) -> None:
        self._pending = filters

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        self._pending = None
        try:
            yield
            if self._pending is not None:
                self._filters = self._pending
                self._revision += 1
        finally:
            self._pending = None
