"""Response caches the prober can be given.

Probing the same URL with different verification settings yields different
outcomes, so a cache entry is keyed by the full request signature, TLS
verification flags included.
"""

# Standard Python Libraries
from collections import namedtuple
import hashlib
import json
import logging
import os
import threading

from . import utils
from .models import ProbeOutcome

RequestSignature = namedtuple(
    "RequestSignature",
    [
        "method",
        "url",
        "headers",
        "follow_redirects",
        "verify_chain",
        "verify_hostname",
    ],
)


def signature_for(
    url, headers, follow_redirects, verify_chain, verify_hostname, method="GET"
):
    """Build the cache key for one probe."""
    return RequestSignature(
        method=method.upper(),
        url=url,
        headers=tuple(sorted((k.lower(), v) for k, v in headers.items())),
        follow_redirects=bool(follow_redirects),
        verify_chain=bool(verify_chain),
        verify_hostname=bool(verify_hostname),
    )


class ResponseCache:
    """Interface for probe outcome caches."""

    def get(self, signature):
        """Return the cached ProbeOutcome for ``signature``, or None."""
        raise NotImplementedError

    def put(self, signature, outcome):
        """Remember ``outcome`` as the result of ``signature``."""
        raise NotImplementedError


class MemoryCache(ResponseCache):
    """Keeps outcomes for the lifetime of the object."""

    def __init__(self):
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, signature):
        with self._lock:
            return self._entries.get(signature)

    def put(self, signature, outcome):
        with self._lock:
            self._entries[signature] = outcome

    def __len__(self):
        with self._lock:
            return len(self._entries)


class DiskCache(ResponseCache):
    """Stores one JSON file per request signature under ``directory``."""

    def __init__(self, directory):
        self.directory = directory
        utils.mkdir_p(directory)

    def path_for(self, signature):
        digest = hashlib.sha256(
            json.dumps(list(signature), sort_keys=True).encode("utf-8")
        ).hexdigest()
        return os.path.join(self.directory, "%s.json" % digest)

    def get(self, signature):
        path = self.path_for(signature)
        if not os.path.exists(path):
            return None

        try:
            with open(path, encoding="utf-8") as f:
                return ProbeOutcome.from_object(json.load(f))
        except (OSError, ValueError, KeyError):
            logging.warning("Ignoring unreadable cache entry %s.", path)
            return None

    def put(self, signature, outcome):
        utils.write(utils.json_for(outcome.to_object()), self.path_for(signature))
