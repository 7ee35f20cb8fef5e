"""
Tests for AS number parsing and formatting

Covers the asplain, AS-prefixed and asdot notations, range limits and
the rejection of non-numeric input.
"""

import unittest

from bgpsec_filter.utils.asn import MAX_ASN, asn_equal, format_asn, parse_asn
from bgpsec_filter.utils.error_handling import InvalidAsn, InvalidFilter, ValidationError


class TestParseAsn(unittest.TestCase):
    """Test parse_asn across notations."""

    def test_plain_and_prefixed_forms(self):
        """Test asplain text with and without the AS prefix."""
        self.assertEqual(parse_asn("64500"), 64500)
        self.assertEqual(parse_asn("AS64500"), 64500)
        self.assertEqual(parse_asn("as64500"), 64500)
        self.assertEqual(parse_asn("  AS64500 "), 64500)
        self.assertEqual(parse_asn(64500), 64500)

    def test_asdot_forms(self):
        """Test asdot <high>.<low> notation."""
        self.assertEqual(parse_asn("0.64500"), 64500)
        self.assertEqual(parse_asn("1.0"), 65536)
        self.assertEqual(parse_asn("AS1.10"), 65546)
        self.assertEqual(parse_asn("65535.65535"), MAX_ASN)

    def test_notations_are_equivalent(self):
        """Test that every notation of the same ASN compares equal."""
        values = ["AS64500", "64500", "0.64500", 64500]
        self.assertEqual(len({parse_asn(v) for v in values}), 1)
        self.assertTrue(asn_equal("AS64500", "0.64500"))
        self.assertFalse(asn_equal("AS64500", "AS64501"))

    def test_range_limits(self):
        """Test the 32-bit boundaries."""
        self.assertEqual(parse_asn(0), 0)
        self.assertEqual(parse_asn(str(MAX_ASN)), MAX_ASN)
        for value in (MAX_ASN + 1, str(MAX_ASN + 1), -1, "65536.0", "1.65536"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidAsn):
                    parse_asn(value)

    def test_rejects_malformed_text(self):
        """Test garbage input."""
        for value in ("", "AS", "-1", "64500x", "AS 64500", "1.2.3", "ASN64500",
                      "AS６４５００", "٦٤٥٠٠",
                      "0.６４５００", "Aſ64500"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidAsn):
                    parse_asn(value)

    def test_rejects_non_numeric_types(self):
        """Test that booleans, floats and None are not AS numbers."""
        for value in (True, False, 1.5, None, [64500]):
            with self.subTest(value=value):
                with self.assertRaises(InvalidAsn):
                    parse_asn(value)

    def test_error_taxonomy(self):
        """Test that InvalidAsn is reported as an invalid filter."""
        with self.assertRaises(InvalidAsn) as ctx:
            parse_asn("bogus", "peer_asn")
        error = ctx.exception
        self.assertIsInstance(error, InvalidFilter)
        self.assertIsInstance(error, ValidationError)
        self.assertEqual(error.parameter, "peer_asn")
        self.assertIsNotNone(error.guidance)


class TestFormatAsn(unittest.TestCase):
    """Test format_asn rendering."""

    def test_format(self):
        self.assertEqual(format_asn(64500), "AS64500")
        self.assertEqual(format_asn(65536), "AS65536")


if __name__ == '__main__':
    unittest.main()
