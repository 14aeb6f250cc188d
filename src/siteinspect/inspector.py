"""Inspect a domain: evaluate its four endpoints once, then judge it."""

# Standard Python Libraries
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
import logging
import threading
import time

from . import utils
from .cache import DiskCache, MemoryCache
from .canonical import canonicalize
from .endpoint import evaluate
from .models import ENDPOINT_KEYS, EndpointSet
from .prober import TIMEOUT, USER_AGENT, Prober


class InspectionCancelled(RuntimeError):
    """The inspection was cancelled before all endpoints were evaluated."""


class DomainInspection:
    """One inspection of one domain.

    Endpoint records live in an arena keyed by EndpointKey. Each is
    evaluated at most once, under its own lock, and only read after that.
    """

    # How often a waiting caller checks for cancellation, in seconds.
    poll_interval = 0.1

    def __init__(self, domain, prober=None, max_workers=1, suffix_list=None):
        self.domain = domain
        self.prober = prober or Prober(domain)
        self.max_workers = max_workers
        self.suffix_list = suffix_list

        self._records = {}
        self._locks = {key: threading.Lock() for key in ENDPOINT_KEYS}
        self._cancelled = threading.Event()
        self._endpoints = None
        self._verdict = None

    def endpoint(self, key):
        """Return the record for ``key``, evaluating it on first use."""
        record = self._records.get(key)
        if record is not None:
            return record

        with self._locks[key]:
            if key not in self._records:
                if self._cancelled.is_set():
                    raise InspectionCancelled(self.domain)
                self._records[key] = evaluate(self.prober, key, self.suffix_list)
            return self._records[key]

    def endpoints(self, timeout=None):
        """Evaluate all four endpoints and return them as an EndpointSet.

        With ``max_workers`` above 1 the endpoints are probed concurrently;
        either way this only returns once every record exists. ``timeout``
        bounds the wait on concurrent evaluation, in seconds.
        """
        if self._endpoints is None:
            if self.max_workers > 1:
                self._evaluate_concurrently(timeout)
            records = [self.endpoint(key) for key in ENDPOINT_KEYS]
            self._endpoints = EndpointSet(*records)
        return self._endpoints

    def _evaluate_concurrently(self, timeout):
        deadline = None if timeout is None else time.monotonic() + timeout
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(ENDPOINT_KEYS)),
            thread_name_prefix="siteinspect",
        )
        pending = {executor.submit(self.endpoint, key) for key in ENDPOINT_KEYS}

        try:
            while pending:
                if self._cancelled.is_set():
                    raise InspectionCancelled(self.domain)
                if deadline is not None and time.monotonic() >= deadline:
                    self._cancelled.set()
                    raise InspectionCancelled(
                        "%s: timed out after %s seconds" % (self.domain, timeout)
                    )

                done, pending = wait(
                    pending, timeout=self.poll_interval, return_when=FIRST_COMPLETED
                )
                for future in done:
                    # Surface anything unexpected raised in a worker.
                    future.result()
        except BaseException:
            # Don't wait on probes still in flight; they time out on their own.
            executor.shutdown(wait=False, cancel_futures=True)
            raise

        executor.shutdown(wait=True)

    def cancel(self):
        """Abandon the inspection; safe to call from any thread."""
        logging.warning("%s: Inspection cancelled.", self.domain)
        self._cancelled.set()

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    def verdict(self, timeout=None):
        """Return the DomainVerdict, evaluating endpoints if needed."""
        if self._verdict is None:
            self._verdict = canonicalize(self.domain, self.endpoints(timeout))
        return self._verdict

    def to_object(self):
        result = self.verdict().to_object()

        # But also capture the extended data for those who want it.
        result["endpoints"] = self.endpoints().to_object()
        return result


def prober_factory(options):
    """Return a callable building a Prober per domain from ``options``.

    Recognized options: ``timeout``, ``user_agent``, ``ca_file`` and
    ``cache_dir``. The response cache is shared by every prober built.
    """
    timeout = int(options["timeout"]) if options.get("timeout") else TIMEOUT
    user_agent = options.get("user_agent") or USER_AGENT
    ca_file = options.get("ca_file")

    if options.get("cache_dir"):
        cache = DiskCache(options["cache_dir"])
    else:
        cache = MemoryCache()

    def build(domain):
        return Prober(
            domain, timeout=timeout, user_agent=user_agent, ca_file=ca_file, cache=cache
        )

    return build


def inspect(domain, options=None):
    """Inspect a single domain and return its finished DomainInspection."""
    options = options or {}
    domain = utils.format_domain(domain)
    inspection = DomainInspection(
        domain,
        prober=prober_factory(options)(domain),
        max_workers=int(options.get("max_workers") or 1),
    )
    inspection.verdict()
    return inspection


def inspect_domains(domains, options=None):
    """Yield a finished DomainInspection for every given domain."""
    options = options or {}
    build = prober_factory(options)
    max_workers = int(options.get("max_workers") or 1)

    for domain in utils.format_domains(domains):
        inspection = DomainInspection(
            domain, prober=build(domain), max_workers=max_workers
        )
        inspection.verdict()
        yield inspection
