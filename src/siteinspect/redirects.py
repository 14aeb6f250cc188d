"""Resolve where a redirecting endpoint sends its visitors."""

# Standard Python Libraries
import logging
from urllib import parse as urlparse

# Third-Party Libraries
from requests.utils import requote_uri

from .models import RedirectDetail, TlsOutcome
from .suffix import same_registrable_domain


def is_redirect_status(status):
    return 300 <= status < 400


def normalize_location(location, request_url):
    """Turn a Location header into an absolute URL.

    Scheme and host are lower-cased and percent-escapes made consistent;
    relative redirects (e.g. "Location: /Index.aspx") are resolved against
    the original request.
    """
    location = requote_uri(location.strip())

    if not location.lower().startswith(("http:", "https:")):
        location = urlparse.urljoin(request_url, location)

    parts = urlparse.urlsplit(location)
    return urlparse.urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, parts.fragment)
    )


def hostname_of(url):
    return urlparse.urlsplit(url).hostname or ""


def resolve_redirect(prober, key, outcome, tls=None, suffix_list=None):
    """Characterize the redirect ``outcome`` represents.

    ``tls`` is the endpoint's TlsDetail; the axes it found broken are not
    verified while chasing the chain, so an untrusted-but-usable certificate
    does not hide where the redirects lead.
    """
    location = outcome.headers.get("Location")
    if not location:
        return RedirectDetail.unknown("missing Location header")

    immediate = normalize_location(location, outcome.request_url)

    # The hostname of the endpoint (e.g. "www.agency.gov")
    subdomain_original = hostname_of(outcome.request_url)
    subdomain_immediate = hostname_of(immediate)
    if not subdomain_immediate:
        return RedirectDetail.unknown("unparseable Location header: %s" % location)

    immediate_is_external = not same_registrable_domain(
        subdomain_original, subdomain_immediate, suffix_list
    )

    detail = {
        "immediate_target": immediate,
        "immediate_is_www": subdomain_immediate.startswith("www."),
        "immediate_is_https": immediate.startswith("https://"),
        "immediate_is_http": immediate.startswith("http://"),
        "immediate_is_external": immediate_is_external,
    }

    # Chase down the ultimate destination.
    verify_chain = tls.verify_chain if tls else True
    verify_hostname = tls.verify_hostname if tls else True
    ultimate = prober.probe(
        key,
        follow_redirects=True,
        verify_chain=verify_chain,
        verify_hostname=verify_hostname,
    )

    # Follow on past an untrusted chain, still checking hostnames.
    if ultimate.tls is TlsOutcome.BAD_CHAIN and verify_chain:
        logging.warning(
            "%s: Bad certificate chain while following redirects.",
            outcome.request_url,
        )
        ultimate = prober.probe(
            key,
            follow_redirects=True,
            verify_chain=False,
            verify_hostname=verify_hostname,
        )

    if ultimate.reachable and ultimate.url:
        # For ultimate destination, use the URL we arrived at,
        # not Location header. Auto-resolves relative redirects.
        eventual = ultimate.url
        detail.update(
            eventual_target=eventual,
            eventual_is_https=eventual.startswith("https://"),
            eventual_is_external=not same_registrable_domain(
                subdomain_original, hostname_of(eventual), suffix_list
            ),
        )
        return RedirectDetail(**detail)

    logging.warning(
        "%s: Unable to follow redirects to the end (%s).",
        outcome.request_url,
        ultimate.error,
    )
    # If the first hop already leaves the domain, that is where the domain
    # sends people, whatever state the other site is in.
    if immediate_is_external:
        detail.update(
            eventual_target=immediate,
            eventual_is_https=detail["immediate_is_https"],
            eventual_is_external=True,
        )
    detail["error"] = "eventual target unknown: %s" % ultimate.error
    return RedirectDetail(**detail)
