"""Data model shared by the prober, the evaluator and the canonicalizer."""

# Standard Python Libraries
from dataclasses import dataclass, field
import enum
from typing import Optional

# Third-Party Libraries
from requests.structures import CaseInsensitiveDict


class Protocol(enum.Enum):
    HTTP = "http"
    HTTPS = "https"


class Subdomain(enum.Enum):
    ROOT = "root"
    WWW = "www"


class TlsOutcome(enum.Enum):
    """Raw TLS result of a single connection attempt."""

    OK = "ok"
    BAD_CHAIN = "bad_chain"
    BAD_HOSTNAME = "bad_hostname"
    OTHER = "other"
    NOT_APPLICABLE = "n/a"


@dataclass(frozen=True)
class EndpointKey:
    """One of the four probe targets for a domain."""

    protocol: Protocol
    subdomain: Subdomain

    @property
    def is_https(self):
        return self.protocol is Protocol.HTTPS

    def host_for(self, domain):
        if self.subdomain is Subdomain.WWW:
            return "www.%s" % domain
        return domain

    def url_for(self, domain):
        return "%s://%s" % (self.protocol.value, self.host_for(domain))

    def __str__(self):
        return "%s%s" % (
            self.protocol.value,
            "www" if self.subdomain is Subdomain.WWW else "",
        )


HTTP_ROOT = EndpointKey(Protocol.HTTP, Subdomain.ROOT)
HTTP_WWW = EndpointKey(Protocol.HTTP, Subdomain.WWW)
HTTPS_ROOT = EndpointKey(Protocol.HTTPS, Subdomain.ROOT)
HTTPS_WWW = EndpointKey(Protocol.HTTPS, Subdomain.WWW)

ENDPOINT_KEYS = (HTTP_ROOT, HTTP_WWW, HTTPS_ROOT, HTTPS_WWW)


@dataclass(frozen=True)
class ProbeOutcome:
    """Normalized result of one network attempt.

    ``status`` is 0 whenever no HTTP response was obtained, in which case
    ``error`` carries the raw failure code (``"timeout"``, ``"connection"``,
    an SSL reason, ...).
    """

    request_url: str
    status: int = 0
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    url: Optional[str] = None
    tls: TlsOutcome = TlsOutcome.NOT_APPLICABLE
    error: Optional[str] = None

    @property
    def reachable(self):
        return self.status != 0

    def to_object(self):
        return {
            "request_url": self.request_url,
            "status": self.status,
            "headers": dict(self.headers),
            "url": self.url,
            "tls": self.tls.value,
            "error": self.error,
        }

    @classmethod
    def from_object(cls, obj):
        return cls(
            request_url=obj["request_url"],
            status=obj["status"],
            headers=CaseInsensitiveDict(obj.get("headers") or {}),
            url=obj.get("url"),
            tls=TlsOutcome(obj["tls"]),
            error=obj.get("error"),
        )


@dataclass(frozen=True)
class TlsDetail:
    """What is wrong, if anything, with an HTTPS endpoint's certificate.

    ``bad_chain`` and ``bad_hostname`` are independent and may both be set.
    """

    valid: bool = False
    bad_chain: bool = False
    bad_hostname: bool = False
    unknown_issue: Optional[str] = None

    # The verification axes that can stay enabled on follow-up probes.
    @property
    def verify_chain(self):
        return not self.bad_chain

    @property
    def verify_hostname(self):
        return not self.bad_hostname

    def to_object(self):
        return {
            "valid": self.valid,
            "bad_chain": self.bad_chain,
            "bad_hostname": self.bad_hostname,
            "unknown_issue": self.unknown_issue,
        }


@dataclass(frozen=True)
class RedirectDetail:
    """Where a redirecting endpoint sends its visitors.

    A redirect whose target could not be worked out is still a redirect: its
    targets are ``None`` and ``error`` says why.
    """

    immediate_target: Optional[str] = None
    immediate_is_www: bool = False
    immediate_is_https: bool = False
    immediate_is_http: bool = False
    immediate_is_external: bool = False
    eventual_target: Optional[str] = None
    eventual_is_https: bool = False
    eventual_is_external: bool = False
    error: Optional[str] = None

    @classmethod
    def unknown(cls, reason):
        return cls(error=reason)

    @property
    def resolved(self):
        return self.error is None

    def to_object(self):
        return {
            "immediate_target": self.immediate_target,
            "immediate_is_www": self.immediate_is_www,
            "immediate_is_https": self.immediate_is_https,
            "immediate_is_http": self.immediate_is_http,
            "immediate_is_external": self.immediate_is_external,
            "eventual_target": self.eventual_target,
            "eventual_is_https": self.eventual_is_https,
            "eventual_is_external": self.eventual_is_external,
            "error": self.error,
        }


@dataclass(frozen=True)
class HstsDetail:
    enabled: bool = False
    max_age: Optional[int] = None
    include_subdomains: bool = False
    preload: bool = False
    preload_ready: bool = False

    def to_object(self):
        return {
            "enabled": self.enabled,
            "max_age": self.max_age,
            "include_subdomains": self.include_subdomains,
            "preload": self.preload,
            "preload_ready": self.preload_ready,
        }


@dataclass(frozen=True)
class EndpointRecord:
    """Everything observed about one endpoint during an inspection."""

    key: EndpointKey
    url: str
    up: bool = False
    status: int = 0
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    tls: Optional[TlsDetail] = None
    hsts: HstsDetail = field(default_factory=HstsDetail)
    hsts_header: Optional[str] = None
    redirect: Optional[RedirectDetail] = None
    unknown_error: bool = False

    @classmethod
    def down(cls, key, url, tls=None):
        """An unreachable endpoint; every derived field keeps its default."""
        return cls(key=key, url=url, tls=tls)

    @property
    def protocol(self):
        return self.key.protocol

    @property
    def subdomain(self):
        return self.key.subdomain

    @property
    def is_redirect(self):
        return self.redirect is not None

    @property
    def redirect_immediately_to(self):
        return self.redirect.immediate_target if self.redirect else None

    @property
    def redirect_immediately_to_www(self):
        return self.redirect is not None and self.redirect.immediate_is_www

    @property
    def redirect_immediately_to_https(self):
        return self.redirect is not None and self.redirect.immediate_is_https

    @property
    def redirect_immediately_to_http(self):
        return self.redirect is not None and self.redirect.immediate_is_http

    @property
    def redirect_immediately_to_external(self):
        return self.redirect is not None and self.redirect.immediate_is_external

    @property
    def redirect_eventually_to(self):
        return self.redirect.eventual_target if self.redirect else None

    @property
    def redirect_eventually_to_https(self):
        return self.redirect is not None and self.redirect.eventual_is_https

    @property
    def redirect_eventually_to_external(self):
        return self.redirect is not None and self.redirect.eventual_is_external

    # HTTPS-only properties are False for plain HTTP endpoints.
    @property
    def https_valid(self):
        return self.tls is not None and self.tls.valid

    @property
    def https_bad_chain(self):
        return self.tls is not None and self.tls.bad_chain

    @property
    def https_bad_hostname(self):
        return self.tls is not None and self.tls.bad_hostname

    def to_object(self):
        obj = {
            "url": self.url,
            "up": self.up,
            "status": self.status,
            "headers": dict(self.headers),
            "redirect": self.is_redirect,
            "redirect_immediately_to": self.redirect_immediately_to,
            "redirect_immediately_to_www": self.redirect_immediately_to_www,
            "redirect_immediately_to_https": self.redirect_immediately_to_https,
            "redirect_immediately_to_http": self.redirect_immediately_to_http,
            "redirect_immediately_to_external": self.redirect_immediately_to_external,
            "redirect_eventually_to": self.redirect_eventually_to,
            "redirect_eventually_to_https": self.redirect_eventually_to_https,
            "redirect_eventually_to_external": self.redirect_eventually_to_external,
            "redirect_error": self.redirect.error if self.redirect else None,
            "unknown_error": self.unknown_error,
        }

        if self.protocol is Protocol.HTTPS:
            obj["tls"] = (self.tls or TlsDetail()).to_object()
            obj["hsts"] = self.hsts.to_object()
            obj["hsts_header"] = self.hsts_header

        return obj


@dataclass(frozen=True)
class EndpointSet:
    """The four endpoint records of one domain."""

    http: EndpointRecord
    httpwww: EndpointRecord
    https: EndpointRecord
    httpswww: EndpointRecord

    def __getitem__(self, key):
        if key.protocol is Protocol.HTTPS:
            return self.httpswww if key.subdomain is Subdomain.WWW else self.https
        return self.httpwww if key.subdomain is Subdomain.WWW else self.http

    def __iter__(self):
        return iter((self.http, self.httpwww, self.https, self.httpswww))

    def to_object(self):
        return {
            "https": self.https.to_object(),
            "httpswww": self.httpswww.to_object(),
            "http": self.http.to_object(),
            "httpwww": self.httpwww.to_object(),
        }


@dataclass(frozen=True)
class DomainVerdict:
    """Domain-level judgments derived from the four endpoint records."""

    domain: str
    canonical_endpoint: Subdomain
    canonical_protocol: Protocol
    canonical_url: str
    up: bool
    broken_root: bool
    broken_www: bool
    https_live: bool
    support_https: bool
    default_https: bool
    downgrade_https: bool
    enforce_https: bool
    valid_https: bool
    https_bad_chain: bool
    https_bad_hostname: bool
    is_redirect_domain: bool
    redirect_target: Optional[str]
    hsts_on_canonical: bool
    hsts_header_on_canonical: Optional[str]
    hsts_max_age: Optional[int]
    hsts_entire_domain: bool
    hsts_entire_domain_preload: bool
    unknown_error: bool

    @property
    def canonical_key(self):
        return EndpointKey(self.canonical_protocol, self.canonical_endpoint)

    def to_object(self):
        return {
            "domain": self.domain,
            "canonical_endpoint": self.canonical_endpoint.value,
            "canonical_protocol": self.canonical_protocol.value,
            "canonical_url": self.canonical_url,
            "up": self.up,
            "broken_root": self.broken_root,
            "broken_www": self.broken_www,
            "https_live": self.https_live,
            "support_https": self.support_https,
            "default_https": self.default_https,
            "downgrade_https": self.downgrade_https,
            "enforce_https": self.enforce_https,
            "valid_https": self.valid_https,
            "https_bad_chain": self.https_bad_chain,
            "https_bad_hostname": self.https_bad_hostname,
            "redirect": self.is_redirect_domain,
            "redirect_to": self.redirect_target,
            "hsts": self.hsts_on_canonical,
            "hsts_header": self.hsts_header_on_canonical,
            "hsts_max_age": self.hsts_max_age,
            "hsts_entire_domain": self.hsts_entire_domain,
            "hsts_entire_domain_preload": self.hsts_entire_domain_preload,
            "unknown_error": self.unknown_error,
        }
