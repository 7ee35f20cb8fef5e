"""
BGPsec filter application (RFC 8416 section 3.3.2)

A filter matches a router certificate when every attribute the filter sets
agrees with the certificate: the filter ASN must be one of the certificate's
ASNs and the filter SKI must equal the certificate SKI. Certificates matched
by any filter are suppressed; everything else passes through in input order.
"""

import logging
from typing import Iterable, Iterator, Sequence, Tuple

from bgpsec_filter.models import FilterRecord, RouterCertificate
from bgpsec_filter.utils.logging import log_apply_summary

logger = logging.getLogger('bgpsec_filter.filters.engine')


def filter_matches(bgpsec_filter: FilterRecord, certificate: RouterCertificate) -> bool:
    """Return True when the filter suppresses the certificate"""
    if bgpsec_filter.asn is not None:
        if not certificate.asn or bgpsec_filter.asn not in certificate.asn:
            return False
    if bgpsec_filter.ski is not None:
        if bgpsec_filter.ski != certificate.subject_key_identifier:
            return False
    return True


def is_suppressed(certificate: RouterCertificate, filters: Sequence[FilterRecord]) -> bool:
    """Return True when any filter matches the certificate"""
    return any(filter_matches(f, certificate) for f in filters)


def filter_certificates(
        certificates: Iterable[RouterCertificate],
        filters: Sequence[FilterRecord]
) -> Iterator[RouterCertificate]:
    """
    Lazily drop every certificate matched by a filter.

    The filters are copied when this function is called, the certificates
    only as the returned iterator is advanced.

    Args:
        certificates: Router certificate stream, consumed one item at a time
        filters: Filter snapshot; held only while the returned iterator lives

    Returns:
        Iterator over surviving certificates in input order
    """
    return _surviving(certificates, tuple(filters))


def _surviving(
        certificates: Iterable[RouterCertificate],
        filters: Tuple[FilterRecord, ...]
) -> Iterator[RouterCertificate]:
    emitted = 0
    suppressed = 0

    for certificate in certificates:
        if filters and is_suppressed(certificate, filters):
            suppressed += 1
            continue
        emitted += 1
        yield certificate

    log_apply_summary(logger, len(filters), emitted, suppressed)
