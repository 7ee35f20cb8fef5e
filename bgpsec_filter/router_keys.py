#!/usr/bin/env python3
"""
Router certificate streams for BGPsec filtering

Reads validated router keys from relying-party JSON output without loading
the whole document:
- rpki-client ``bgpsec_keys`` (one ASN per entry, hex ``ski``)
- Routinator ``routerKeys`` (``"AS<n>"`` ASNs, ``SKI``)
- native ``routerCertificates`` dumps written by ``write_router_keys``

Entries that cannot be parsed are skipped and logged at debug level.
"""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Optional, Union

import ijson

from bgpsec_filter.models import RouterCertificate
from bgpsec_filter.utils.error_handling import FilterError, RouterKeyFormatError

logger = logging.getLogger('bgpsec_filter.router_keys')

# JSON member holding the router key array, keyed by format name
FORMAT_PREFIXES = {
    'native': 'routerCertificates',
    'rpki-client': 'bgpsec_keys',
    'routinator': 'routerKeys',
}


def _native_certificate(entry: Dict[str, Any]) -> RouterCertificate:
    known = {'asn', 'ski', 'subject', 'routerPublicKey', 'ta'}
    return RouterCertificate(
        asn=entry.get('asn'),
        subject_key_identifier=entry['ski'],
        subject=entry.get('subject'),
        router_public_key=entry.get('routerPublicKey'),
        trust_anchor=entry.get('ta'),
        extra={k: v for k, v in entry.items() if k not in known}
    )


def _rpki_client_certificate(entry: Dict[str, Any]) -> RouterCertificate:
    extra = {}
    if 'expires' in entry:
        extra['expires'] = entry['expires']
    return RouterCertificate(
        asn=entry['asn'],
        subject_key_identifier=entry['ski'],
        router_public_key=entry.get('pubkey'),
        trust_anchor=entry.get('ta'),
        extra=extra
    )


def _routinator_certificate(entry: Dict[str, Any]) -> RouterCertificate:
    sources = entry.get('source') or []
    return RouterCertificate(
        asn=entry['asn'],
        subject_key_identifier=entry['SKI'],
        router_public_key=entry.get('routerPublicKey'),
        trust_anchor=sources[0].get('tal') if sources else None
    )


_CONVERTERS = {
    'native': _native_certificate,
    'rpki-client': _rpki_client_certificate,
    'routinator': _routinator_certificate,
}


def detect_format(sample: bytes) -> Optional[str]:
    """Guess the router key format from the start of a JSON document"""
    for format_name, member in FORMAT_PREFIXES.items():
        if f'"{member}"'.encode() in sample:
            return format_name
    return None


def stream_router_keys(
        source: Union[str, Path],
        source_format: str = "auto",
        sample_size: int = 64 * 1024
) -> Iterator[RouterCertificate]:
    """
    Stream router certificates from a JSON file

    Args:
        source: Path to the relying-party JSON output
        source_format: 'native', 'rpki-client', 'routinator' or 'auto'
        sample_size: Bytes inspected when detecting the format

    Yields:
        RouterCertificate per parsable entry, in file order
    """
    path = Path(source)
    with open(path, 'rb') as f:
        if source_format == "auto":
            source_format = detect_format(f.read(sample_size))
            f.seek(0)
            if source_format is None:
                raise RouterKeyFormatError(
                    f"Unrecognized router key file format: {path}",
                    guidance="Pass --format native, rpki-client or routinator"
                )
        if source_format not in _CONVERTERS:
            raise RouterKeyFormatError(f"Unsupported router key format: {source_format}")

        logger.debug(f"Streaming {source_format} router keys from {path}")
        convert = _CONVERTERS[source_format]
        skipped = 0

        try:
            for entry in ijson.items(f, f"{FORMAT_PREFIXES[source_format]}.item", use_float=True):
                try:
                    yield convert(entry)
                except (KeyError, TypeError, ValueError, FilterError) as e:
                    skipped += 1
                    logger.debug(f"Skipping invalid router key entry: {e}")
        except ijson.JSONError as e:
            raise RouterKeyFormatError(
                f"Malformed JSON in router key file {path}", technical_details=str(e)
            ) from e

        if skipped:
            logger.warning(f"Skipped {skipped} invalid router key entries in {path}")


def write_router_keys(
        certificates: Iterable[RouterCertificate],
        destination: Union[str, Path]
) -> int:
    """
    Write certificates in the native format, one entry at a time

    The destination is replaced only once the whole stream has been
    written; on error any existing file is left untouched.

    Returns:
        Number of certificates written
    """
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0

    with tempfile.NamedTemporaryFile('w', dir=str(path.parent), prefix=f'.{path.name}.',
                                     delete=False) as tmp:
        tmp_path = tmp.name
        try:
            tmp.write('{"routerCertificates": [')
            for certificate in certificates:
                if count:
                    tmp.write(',')
                tmp.write('\n  ')
                tmp.write(json.dumps(certificate.to_dict(), sort_keys=True))
                count += 1
            tmp.write('\n]}\n')
        except BaseException:
            tmp.close()
            os.unlink(tmp_path)
            raise

    if path.exists():
        shutil.copystat(path, tmp_path)
    os.replace(tmp_path, path)

    logger.debug(f"Wrote {count} router certificates to {path}")
    return count
