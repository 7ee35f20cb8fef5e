"""AS number parsing, formatting and comparison (RFC 5396 notations)"""
import re
from typing import Union

from .error_handling import InvalidAsn

# RFC 6793: AS numbers are 32-bit unsigned integers
MAX_ASN = 4294967295

_ASPLAIN_PATTERN = re.compile(r'^(?:AS)?([0-9]+)$', re.IGNORECASE | re.ASCII)
_ASDOT_PATTERN = re.compile(r'^(?:AS)?([0-9]+)\.([0-9]+)$', re.IGNORECASE | re.ASCII)


def parse_asn(value: Union[str, int], parameter_name: str = "asn") -> int:
    """
    Parse an AS number into its unsigned 32-bit value

    Accepts integers, asplain text ("64500", "AS64500") and asdot text
    ("0.64500", "AS1.10"). Raises InvalidAsn for anything else.
    """
    if isinstance(value, bool):
        raise InvalidAsn(f"AS number must be an integer, got {value!r}", parameter_name)

    if isinstance(value, int):
        as_num = value
    elif isinstance(value, str):
        text = value.strip()
        plain = _ASPLAIN_PATTERN.match(text)
        dotted = _ASDOT_PATTERN.match(text)
        if plain:
            as_num = int(plain.group(1))
        elif dotted:
            high, low = int(dotted.group(1)), int(dotted.group(2))
            if high > 0xFFFF or low > 0xFFFF:
                raise InvalidAsn(
                    f"asdot halves must be within 0-65535, got '{value}'", parameter_name
                )
            as_num = (high << 16) | low
        else:
            raise InvalidAsn(f"Unrecognized AS number '{value}'", parameter_name)
    else:
        raise InvalidAsn(
            f"AS number must be text or an integer, got {type(value).__name__}", parameter_name
        )

    if not (0 <= as_num <= MAX_ASN):
        raise InvalidAsn(
            f"AS number out of valid range (0-{MAX_ASN}), got {as_num}", parameter_name
        )

    return as_num


def format_asn(as_number: int) -> str:
    """Render an AS number in asplain form with the AS prefix"""
    return f"AS{parse_asn(as_number)}"


def asn_equal(left: Union[str, int], right: Union[str, int]) -> bool:
    """Compare two AS numbers numerically regardless of notation"""
    return parse_asn(left) == parse_asn(right)
