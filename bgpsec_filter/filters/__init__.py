"""
BGPsec Filter Module

Provides local SLURM BGPsec filter management and application:
- Filter CRUD against a transactional store
- ASN-only, SKI-only and combined filter matching
- Lazy, snapshot-isolated certificate stream filtering
"""

from .engine import filter_certificates, filter_matches, is_suppressed
from .service import FilterService, create_filter_service

__all__ = [
    "FilterService",
    "create_filter_service",
    "filter_certificates",
    "filter_matches",
    "is_suppressed"
]
