"""
BGPsec Filter Data Models

This module contains the value types shared by the store, the filter engine
and the service: local filter records, the add command and validated router
certificates.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

from bgpsec_filter.utils.asn import parse_asn
from bgpsec_filter.utils.error_handling import InvalidFilter

# One colon or a run of whitespace between octet groups
_SKI_SEPARATOR = re.compile(r'\s*:\s*|\s+')
_OCTETS_PATTERN = re.compile(r'^(?:[0-9a-fA-F]{2})+$')


def parse_ski(value: Union[str, bytes, bytearray], parameter_name: str = "ski") -> bytes:
    """
    Normalize a Subject Key Identifier to raw bytes.

    Text is case-insensitive hex. Octet groups may be separated by one colon
    or by whitespace (``"AB:CD"``, ``"ab cd"`` and ``"abcd"`` are the same
    SKI); a separator inside an octet is rejected.
    """
    if isinstance(value, (bytes, bytearray)):
        ski = bytes(value)
    elif isinstance(value, str):
        text = value.strip()
        groups = _SKI_SEPARATOR.split(text) if text else []
        if not all(_OCTETS_PATTERN.match(group) for group in groups):
            raise InvalidFilter(
                f"SKI must be an even-length hexadecimal string, got '{value}'",
                parameter_name,
                "Use the 40 hex digit SHA-1 key identifier of the router key"
            )
        ski = bytes.fromhex(''.join(groups))
    else:
        raise InvalidFilter(
            f"SKI must be text or bytes, got {type(value).__name__}", parameter_name
        )

    if not ski:
        raise InvalidFilter("SKI must not be empty", parameter_name)
    return ski


@dataclass(frozen=True)
class AddFilter:
    """Command to create a local BGPsec filter; all fields are raw text"""
    asn: Optional[str] = None
    ski: Optional[str] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class FilterRecord:
    """
    One locally-authored BGPsec filter (RFC 8416 section 3.3.2).

    An absent ``asn`` matches any ASN and an absent ``ski`` matches any SKI,
    so at least one of them must be present.
    """
    asn: Optional[int] = None
    ski: Optional[bytes] = None
    comment: Optional[str] = None

    def __post_init__(self):
        """Validate the filter and normalize the SKI to bytes."""
        if self.asn is None and self.ski is None:
            raise InvalidFilter(
                "BGPsec filter needs at least one of asn or SKI",
                guidance="Provide an AS number, a Subject Key Identifier, or both"
            )
        if self.asn is not None:
            object.__setattr__(self, 'asn', parse_asn(self.asn))
        if self.ski is not None:
            object.__setattr__(self, 'ski', parse_ski(self.ski))

    @property
    def ski_hex(self) -> Optional[str]:
        """Lowercase hex form of the SKI"""
        return self.ski.hex() if self.ski is not None else None

    @classmethod
    def from_command(cls, command: AddFilter) -> 'FilterRecord':
        """Build a record from textual command input."""
        asn = _blank_to_none(command.asn)
        ski = _blank_to_none(command.ski)
        return cls(
            asn=parse_asn(asn) if asn is not None else None,
            ski=ski,
            comment=command.comment
        )

    def to_slurm(self) -> Dict[str, Any]:
        """Convert to the SLURM bgpsecFilters member representation."""
        data = {}
        if self.asn is not None:
            data['asn'] = self.asn
        if self.ski is not None:
            data['SKI'] = self.ski_hex
        if self.comment is not None:
            data['comment'] = self.comment
        return data


@dataclass(frozen=True)
class RouterCertificate:
    """
    Validated BGPsec router certificate as produced by the validation pipeline.

    Only ``asn`` and ``subject_key_identifier`` take part in filtering; the
    remaining fields are carried through untouched.
    """
    asn: Optional[FrozenSet[int]]
    subject_key_identifier: bytes
    subject: Optional[str] = None
    router_public_key: Optional[str] = None
    trust_anchor: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        """Normalize textual ASNs and a hex SKI."""
        if self.asn is not None:
            object.__setattr__(self, 'asn', _asn_set(self.asn))
        object.__setattr__(
            self, 'subject_key_identifier',
            parse_ski(self.subject_key_identifier, 'subject_key_identifier')
        )

    def to_dict(self) -> dict:
        """Convert RouterCertificate to dictionary for JSON serialization."""
        data = {
            'asn': sorted(self.asn) if self.asn is not None else None,
            'ski': self.subject_key_identifier.hex(),
        }
        if self.subject is not None:
            data['subject'] = self.subject
        if self.router_public_key is not None:
            data['routerPublicKey'] = self.router_public_key
        if self.trust_anchor is not None:
            data['ta'] = self.trust_anchor
        data.update(self.extra)
        return data


def _asn_set(values: Union[int, str, Iterable[Union[int, str]]]) -> FrozenSet[int]:
    if isinstance(values, (int, str)):
        values = [values]
    return frozenset(parse_asn(value) for value in values)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return value
