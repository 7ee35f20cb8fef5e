"""
Tests for BGPsec filter application

A filter suppresses a router certificate only when every attribute it
sets matches; any matching filter suppresses the certificate.
"""

import itertools
import unittest

from bgpsec_filter.filters.engine import filter_certificates, filter_matches, is_suppressed
from bgpsec_filter.models import FilterRecord, RouterCertificate

RC1 = RouterCertificate(asn={65001}, subject_key_identifier=b"\xaa")
RC2 = RouterCertificate(asn={65002}, subject_key_identifier=b"\xbb")


def apply(filters, certificates=(RC1, RC2)):
    return list(filter_certificates(certificates, filters))


class TestFilterScenarios(unittest.TestCase):
    """Test the reference filtering scenarios on a two-certificate input."""

    def test_empty_filter_set_passes_everything(self):
        self.assertEqual(apply([]), [RC1, RC2])

    def test_asn_filter(self):
        self.assertEqual(apply([FilterRecord(asn=65001)]), [RC2])

    def test_ski_filter(self):
        self.assertEqual(apply([FilterRecord(ski=b"\xbb")]), [RC1])

    def test_asn_and_ski_must_both_match(self):
        """Test that a filter with both attributes needs both to match."""
        self.assertEqual(apply([FilterRecord(asn=65001, ski=b"\xbb")]), [RC1, RC2])
        self.assertEqual(apply([FilterRecord(asn=65001, ski=b"\xaa")]), [RC2])

    def test_any_matching_filter_suppresses(self):
        filters = [FilterRecord(asn=65001), FilterRecord(ski=b"\xbb")]
        self.assertEqual(apply(filters), [])

    def test_everything_suppressed_is_logged(self):
        filters = [FilterRecord(asn=65001), FilterRecord(asn=65002)]
        with self.assertLogs('bgpsec_filter.filters.engine', level='WARNING') as logs:
            apply(filters)
        self.assertIn("0/2 router certificates emitted", logs.output[0])


class TestFilterMatches(unittest.TestCase):
    """Test the single-filter predicate."""

    def test_multi_asn_certificate(self):
        """Test that an ASN filter matches any of the certificate's ASNs."""
        cert = RouterCertificate(asn={65001, 65002, 65003}, subject_key_identifier="01")
        self.assertTrue(filter_matches(FilterRecord(asn=65002), cert))
        self.assertFalse(filter_matches(FilterRecord(asn=65004), cert))

    def test_certificate_without_asn(self):
        """Test that ASN filters never match certificates without ASNs."""
        for asn in (None, frozenset()):
            with self.subTest(asn=asn):
                cert = RouterCertificate(asn=asn, subject_key_identifier="01")
                self.assertFalse(filter_matches(FilterRecord(asn=65001), cert))
                self.assertTrue(filter_matches(FilterRecord(ski="01"), cert))
                self.assertFalse(filter_matches(FilterRecord(asn=65001, ski="01"), cert))

    def test_four_byte_asn(self):
        """Test ASNs above 2^31 compare by their full unsigned value."""
        high = 4200000000
        cert = RouterCertificate(asn={high}, subject_key_identifier="01")
        self.assertTrue(filter_matches(FilterRecord(asn="64086.59904"), cert))
        self.assertFalse(filter_matches(FilterRecord(asn=high - 2 ** 32 + 2 ** 31), cert))

    def test_ski_bytewise_equality(self):
        cert = RouterCertificate(asn={1}, subject_key_identifier="aabb")
        self.assertTrue(filter_matches(FilterRecord(ski="AA:BB"), cert))
        self.assertFalse(filter_matches(FilterRecord(ski="aabb00"), cert))
        self.assertFalse(filter_matches(FilterRecord(ski="aa"), cert))

    def test_is_suppressed(self):
        self.assertFalse(is_suppressed(RC1, []))
        self.assertTrue(is_suppressed(RC1, [FilterRecord(asn=9), FilterRecord(ski="aa")]))


class TestFilterCertificatesStream(unittest.TestCase):
    """Test streaming behaviour of filter_certificates."""

    def test_lazy_over_unbounded_input(self):
        """Test that an infinite input can be consumed incrementally."""
        def endless():
            for n in itertools.count(1):
                yield RouterCertificate(asn={n}, subject_key_identifier=n.to_bytes(4, "big"))

        stream = filter_certificates(endless(), [FilterRecord(asn=2), FilterRecord(asn=4)])
        first = list(itertools.islice(stream, 3))
        self.assertEqual([sorted(c.asn) for c in first], [[1], [3], [5]])

    def test_input_not_consumed_before_iteration(self):
        consumed = []

        def source():
            for cert in (RC1, RC2):
                consumed.append(cert)
                yield cert

        stream = filter_certificates(source(), [])
        self.assertEqual(consumed, [])
        self.assertEqual(next(stream), RC1)
        self.assertEqual(consumed, [RC1])

    def test_order_preserved(self):
        certs = [
            RouterCertificate(asn={n}, subject_key_identifier=bytes([n]))
            for n in range(1, 11)
        ]
        result = apply([FilterRecord(asn=3), FilterRecord(asn=8)], certs)
        self.assertEqual([sorted(c.asn)[0] for c in result], [1, 2, 4, 5, 6, 7, 9, 10])

    def test_filters_snapshotted(self):
        """Test that mutating the filter list after the call has no effect."""
        filters = [FilterRecord(asn=65001)]
        stream = filter_certificates([RC1, RC2], filters)
        filters.append(FilterRecord(asn=65002))
        self.assertEqual(list(stream), [RC2])


if __name__ == '__main__':
    unittest.main()
