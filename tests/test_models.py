"""Test the shared data model."""

# Standard Python Libraries
import unittest

# siteinspect Libraries
from siteinspect.canonical import canonicalize
from siteinspect.models import (
    ENDPOINT_KEYS,
    HTTP_ROOT,
    HTTP_WWW,
    HTTPS_ROOT,
    HTTPS_WWW,
    EndpointKey,
    Protocol,
    RedirectDetail,
    Subdomain,
    TlsDetail,
)

from fakes import DOMAIN, endpoint_set, record


class TestEndpointKey(unittest.TestCase):
    """Test the four endpoint keys."""

    def test_urls(self):
        """Test the URL of each key."""
        self.assertEqual(
            [key.url_for(DOMAIN) for key in ENDPOINT_KEYS],
            [
                "http://example.org",
                "http://www.example.org",
                "https://example.org",
                "https://www.example.org",
            ],
        )

    def test_names(self):
        """Test the short names used as serialization keys."""
        self.assertEqual(
            [str(key) for key in ENDPOINT_KEYS],
            ["http", "httpwww", "https", "httpswww"],
        )

    def test_is_https(self):
        """Test telling HTTPS keys apart."""
        self.assertFalse(HTTP_WWW.is_https)
        self.assertTrue(HTTPS_WWW.is_https)


class TestDetails(unittest.TestCase):
    """Test the derived flags of detail records."""

    def test_verification_axes(self):
        """Test which axes stay enabled after a failure."""
        tls = TlsDetail(bad_hostname=True)
        self.assertTrue(tls.verify_chain)
        self.assertFalse(tls.verify_hostname)

    def test_unknown_redirect(self):
        """Test a redirect whose target couldn't be worked out."""
        redirect = RedirectDetail.unknown("broken")

        self.assertFalse(redirect.resolved)
        self.assertIsNone(redirect.immediate_target)
        self.assertEqual(redirect.to_object()["error"], "broken")


class TestEndpointSet(unittest.TestCase):
    """Test looking records up by key."""

    def test_lookup_and_order(self):
        """Test indexing by key and iterating in key order."""
        endpoints = endpoint_set(https=record(HTTPS_ROOT))

        self.assertIs(endpoints[HTTPS_ROOT], endpoints.https)
        self.assertIs(endpoints[HTTP_ROOT], endpoints.http)
        self.assertEqual([r.key for r in endpoints], list(ENDPOINT_KEYS))

    def test_down_record_serializes(self):
        """Test that a down HTTPS record still has TLS and HSTS fields."""
        obj = record(HTTPS_WWW, up=False).to_object()

        self.assertFalse(obj["up"])
        self.assertFalse(obj["tls"]["valid"])
        self.assertFalse(obj["hsts"]["enabled"])
        self.assertNotIn("tls", record(HTTP_ROOT, up=False).to_object())


class TestDomainVerdict(unittest.TestCase):
    """Test the verdict's derived key."""

    def test_canonical_key(self):
        """Test that the canonical key matches the canonical fields."""
        verdict = canonicalize(DOMAIN, endpoint_set(https=record(HTTPS_ROOT)))

        self.assertEqual(verdict.canonical_key, EndpointKey(Protocol.HTTP, Subdomain.ROOT))
        self.assertEqual(verdict.to_object()["canonical_protocol"], "http")


if __name__ == "__main__":
    unittest.main()
