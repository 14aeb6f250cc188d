"""Test whole-domain inspections."""

# Standard Python Libraries
import shutil
import tempfile
import threading
import unittest
from unittest import mock

# siteinspect Libraries
from siteinspect import inspector
from siteinspect.cache import DiskCache, MemoryCache
from siteinspect.inspector import (
    DomainInspection,
    InspectionCancelled,
    inspect,
    inspect_domains,
    prober_factory,
)
from siteinspect.models import (
    ENDPOINT_KEYS,
    HTTP_ROOT,
    HTTP_WWW,
    HTTPS_ROOT,
    Protocol,
    Subdomain,
)

from fakes import DOMAIN, FakeProber, response


def https_site():
    """A script for a site canonically at https://example.org."""
    upgrade = {"Location": "https://example.org/"}
    return {
        HTTP_ROOT: response(HTTP_ROOT, status=301, headers=upgrade),
        (HTTP_ROOT, True): response(HTTP_ROOT, url="https://example.org/"),
        HTTP_WWW: response(HTTP_WWW, status=301, headers=upgrade),
        (HTTP_WWW, True): response(HTTP_WWW, url="https://example.org/"),
        HTTPS_ROOT: response(HTTPS_ROOT),
    }


class BlockingProber(FakeProber):
    """A FakeProber whose probes wait until released."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.started = threading.Event()
        self.release = threading.Event()

    def probe(self, *args, **kwargs):
        self.started.set()
        self.release.wait(5)
        return super().probe(*args, **kwargs)


class TestDomainInspection(unittest.TestCase):
    """Test evaluating and judging one domain."""

    def test_verdict(self):
        """Test the verdict for a simple HTTPS site."""
        inspection = DomainInspection(DOMAIN, prober=FakeProber(https_site()))
        verdict = inspection.verdict()

        self.assertEqual(verdict.domain, DOMAIN)
        self.assertEqual(verdict.canonical_protocol, Protocol.HTTPS)
        self.assertEqual(verdict.canonical_endpoint, Subdomain.ROOT)
        self.assertTrue(verdict.enforce_https)

    def test_memoized(self):
        """Test that each endpoint is probed only once."""
        prober = FakeProber(https_site())
        inspection = DomainInspection(DOMAIN, prober=prober)

        first = inspection.endpoint(HTTPS_ROOT)
        calls = len(prober.calls)
        self.assertIs(inspection.endpoint(HTTPS_ROOT), first)
        self.assertEqual(len(prober.calls), calls)

        inspection.verdict()
        calls = len(prober.calls)
        self.assertIs(inspection.verdict(), inspection.verdict())
        self.assertEqual(len(prober.calls), calls)

    def test_concurrent_matches_sequential(self):
        """Test that concurrent evaluation reaches the same verdict."""
        sequential = DomainInspection(DOMAIN, prober=FakeProber(https_site()))
        concurrent = DomainInspection(
            DOMAIN, prober=FakeProber(https_site()), max_workers=4
        )

        self.assertEqual(concurrent.verdict(), sequential.verdict())
        self.assertEqual(concurrent.endpoints(), sequential.endpoints())

    def test_concurrent_probes_once(self):
        """Test that concurrent evaluation probes each endpoint once."""
        prober = FakeProber(https_site())
        DomainInspection(DOMAIN, prober=prober, max_workers=4).endpoints()

        non_following = [call for call in prober.calls if not call[1]]
        self.assertEqual(len(non_following), len(ENDPOINT_KEYS))

    def test_cancel_before_start(self):
        """Test that a cancelled inspection refuses to probe."""
        prober = FakeProber(https_site())
        inspection = DomainInspection(DOMAIN, prober=prober)
        inspection.cancel()

        self.assertTrue(inspection.cancelled)
        with self.assertRaises(InspectionCancelled):
            inspection.verdict()
        self.assertEqual(prober.calls, [])

    def test_cancel_while_running(self):
        """Test cancelling from another thread mid-inspection."""
        prober = BlockingProber(https_site())
        inspection = DomainInspection(DOMAIN, prober=prober, max_workers=4)

        def cancel():
            prober.started.wait(5)
            inspection.cancel()

        canceller = threading.Thread(target=cancel)
        canceller.start()
        try:
            with self.assertRaises(InspectionCancelled):
                inspection.endpoints()
        finally:
            prober.release.set()
            canceller.join()

    def test_timeout(self):
        """Test that a concurrent inspection gives up after its timeout."""
        prober = BlockingProber(https_site())
        inspection = DomainInspection(DOMAIN, prober=prober, max_workers=2)

        try:
            with self.assertRaises(InspectionCancelled):
                inspection.endpoints(timeout=0.2)
        finally:
            prober.release.set()
        self.assertTrue(inspection.cancelled)

    def test_to_object(self):
        """Test the serializable form."""
        obj = DomainInspection(DOMAIN, prober=FakeProber(https_site())).to_object()

        self.assertEqual(obj["domain"], DOMAIN)
        self.assertEqual(obj["canonical_url"], "https://example.org")
        self.assertTrue(obj["enforce_https"])
        self.assertEqual(
            set(obj["endpoints"]), {"http", "httpwww", "https", "httpswww"}
        )
        self.assertEqual(obj["endpoints"]["http"]["redirect_immediately_to"], "https://example.org/")
        self.assertFalse(obj["endpoints"]["httpswww"]["up"])


class TestProberFactory(unittest.TestCase):
    """Test building probers from options."""

    def test_defaults(self):
        """Test building with no options."""
        prober = prober_factory({})("example.org")

        self.assertEqual(prober.domain, "example.org")
        self.assertEqual(prober.timeout, inspector.TIMEOUT)
        self.assertEqual(prober.user_agent, inspector.USER_AGENT)
        self.assertIsNone(prober.ca_file)
        self.assertIsInstance(prober.cache, MemoryCache)

    def test_options(self):
        """Test that options reach the prober."""
        directory = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, directory)
        build = prober_factory(
            {
                "timeout": "5",
                "user_agent": "agent",
                "ca_file": "/etc/ca.pem",
                "cache_dir": directory,
            }
        )
        prober = build("example.org")

        self.assertEqual(prober.timeout, 5)
        self.assertEqual(prober.user_agent, "agent")
        self.assertEqual(prober.ca_file, "/etc/ca.pem")
        self.assertIsInstance(prober.cache, DiskCache)
        self.assertIs(build("example.net").cache, prober.cache)


class TestInspect(unittest.TestCase):
    """Test the module-level entry points."""

    def setUp(self):
        """Perform initial setup."""
        patcher = mock.patch.object(
            inspector,
            "prober_factory",
            return_value=lambda domain: FakeProber(https_site(), domain=domain),
        )
        self.addCleanup(patcher.stop)
        patcher.start()

    def test_inspect(self):
        """Test that the domain is normalized before inspecting."""
        inspection = inspect("https://www.Example.org/")

        self.assertEqual(inspection.domain, "example.org")
        self.assertTrue(inspection.verdict().up)

    def test_inspect_domains(self):
        """Test inspecting several domains in order."""
        inspections = list(
            inspect_domains(["example.org", "WWW.example.net"], {"max_workers": 2})
        )

        self.assertEqual(
            [inspection.domain for inspection in inspections],
            ["example.org", "example.net"],
        )
        self.assertEqual(inspections[1].max_workers, 2)


if __name__ == "__main__":
    unittest.main()
