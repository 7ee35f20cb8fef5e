"""BGPsec filter management with atomic store transactions"""
import logging
from typing import Iterable, Iterator, List, Optional, Tuple

from bgpsec_filter.database.store import BgpsecFilterSection, FilterStore
from bgpsec_filter.models import AddFilter, FilterRecord, RouterCertificate
from bgpsec_filter.utils.asn import format_asn
from bgpsec_filter.utils.error_handling import InvalidFilter
from .engine import filter_certificates

logger = logging.getLogger('bgpsec_filter.filters.service')


class FilterService:
    """Manages local BGPsec filters and applies them to router certificates"""

    def __init__(self, store: FilterStore):
        self.store = store

    def _validate_comment(self, comment: Optional[str]) -> None:
        """Check the comment against the store's length limit"""
        limit = self.store.max_comment_length
        if comment is not None and len(comment) > limit:
            raise InvalidFilter(
                f"Comment exceeds {limit} characters",
                "comment",
                f"Shorten the comment to at most {limit} characters"
            )

    def add(self, command: AddFilter) -> int:
        """Create a filter from a command; returns the allocated filter id"""
        record = FilterRecord.from_command(command)
        self._validate_comment(record.comment)

        filter_id = self.store.next_id()

        def append(section: BgpsecFilterSection) -> int:
            section.append(filter_id, record)
            return filter_id

        self.store.update(append)
        logger.info(f"Added BGPsec filter {filter_id}: {_describe(record)}")
        return filter_id

    def remove(self, filter_id: int) -> bool:
        """Remove a filter by id; unknown ids are ignored"""
        def drop(section: BgpsecFilterSection) -> bool:
            kept = [entry for entry in section.filters if entry[0] != filter_id]
            if len(kept) < len(section.filters):
                section.filters = kept
                return True
            return False

        removed = self.store.update(drop)
        if removed:
            logger.info(f"Removed BGPsec filter {filter_id}")
        else:
            logger.debug(f"BGPsec filter {filter_id} not present, nothing removed")
        return removed

    def entries(self) -> Iterator[Tuple[int, FilterRecord]]:
        """Snapshot of (filter id, record) pairs in insertion order"""
        return iter(self.store.read())

    def list(self) -> Iterator[FilterRecord]:
        """Snapshot of filter records in insertion order"""
        snapshot = self.store.read()
        return (record for _, record in snapshot)

    def get(self, filter_id: int) -> Optional[FilterRecord]:
        """Look up a single filter"""
        for entry_id, record in self.store.read():
            if entry_id == filter_id:
                return record
        return None

    def clear(self) -> None:
        """Remove all BGPsec filters"""
        def empty(section: BgpsecFilterSection) -> None:
            section.filters.clear()

        self.store.update(empty)
        logger.info("Cleared all BGPsec filters")

    def replace(self, records: Iterable[FilterRecord]) -> List[int]:
        """Replace the whole filter section in one transaction"""
        records = list(records)
        for record in records:
            self._validate_comment(record.comment)

        filter_ids = [self.store.next_id() for _ in records]

        def swap(section: BgpsecFilterSection) -> List[int]:
            section.filters = list(zip(filter_ids, records))
            return filter_ids

        self.store.update(swap)
        logger.info(f"Replaced BGPsec filters with {len(records)} entries")
        return filter_ids

    def apply(self, certificates: Iterable[RouterCertificate]) -> Iterator[RouterCertificate]:
        """
        Filter a router certificate stream.

        The filter set is read once, when this method is called; later
        changes to the store do not affect the returned iterator.
        """
        snapshot = tuple(record for _, record in self.store.read())
        logger.debug(f"Applying {len(snapshot)} BGPsec filters")
        return filter_certificates(certificates, snapshot)


def _describe(record: FilterRecord) -> str:
    parts = []
    if record.asn is not None:
        parts.append(format_asn(record.asn))
    if record.ski is not None:
        parts.append(f"SKI {record.ski_hex}")
    return ", ".join(parts)


def create_filter_service(config=None) -> FilterService:
    """Build a FilterService on the store selected by configuration"""
    from bgpsec_filter.database import create_store

    if config is None:
        from bgpsec_filter.utils.config import get_config
        config = get_config()
    return FilterService(create_store(config.store))
