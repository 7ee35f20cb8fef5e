"""
BGPsec Filter - local SLURM overrides for BGPsec router certificates.

Provides operator-controlled suppression of validated router certificates with:
- RFC 8416 BGPsec filter management backed by a transactional store
- ASN-only, SKI-only and combined (AND) filter semantics
- Lazy, snapshot-isolated filtering of router certificate streams
- SLURM document import/export and a FastAPI management API
"""

__version__ = "0.3.2"
__author__ = "BGP Toolkit Project"
