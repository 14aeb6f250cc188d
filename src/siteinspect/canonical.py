"""Domain-level judgments over the four endpoint records.

Nothing here touches the network. Every rule prefers evidence from the
first, internal redirect hop over the eventual destination: later hops can
pass through third parties, the first hop is the site operator's own doing.
"""

from .models import DomainVerdict, Protocol, Subdomain


def _is_2xx(endpoint):
    return 200 <= endpoint.status < 300


def _is_2xx_or_3xx(endpoint):
    return 200 <= endpoint.status < 400


def _redirects_internally_to_www(endpoint):
    return endpoint.redirect_immediately_to_www and (
        not endpoint.redirect_immediately_to_external
    )


def _redirects_internally_to_https(endpoint):
    return endpoint.redirect_immediately_to_https and (
        not endpoint.redirect_immediately_to_external
    )


def is_canonically_www(endpoints):
    """
    A domain is "canonically" at www if:
     * at least one of its www endpoints responds
     * both root endpoints are either down or redirect *somewhere*
     * either both root endpoints are down, *or* at least one
       root endpoint redirect should immediately go to
       an *internal* www endpoint
    This is meant to affirm situations like:
      http:// -> https:// -> https://www
      https:// -> http:// -> https://www
    and meant to avoid affirming situations like:
      http:// -> http://non-www,
      http://www -> http://non-www
    or like:
      https:// -> 200, http:// -> http://www
    """
    http, httpwww, https, httpswww = endpoints

    at_least_one_www_used = httpswww.up or httpwww.up

    def root_unused(endpoint):
        return (
            endpoint.is_redirect
            or (not endpoint.up)
            or endpoint.https_bad_hostname  # harmless for http endpoints
            or (not _is_2xx(endpoint))
        )

    def root_down(endpoint):
        return (
            (not endpoint.up)
            or endpoint.https_bad_hostname
            or (not _is_2xx_or_3xx(endpoint))
        )

    all_roots_unused = root_unused(https) and root_unused(http)
    all_roots_down = root_down(https) and root_down(http)

    return (
        at_least_one_www_used
        and all_roots_unused
        and (
            all_roots_down
            or _redirects_internally_to_www(https)
            or _redirects_internally_to_www(http)
        )
    )


def is_canonically_https(endpoints):
    """
    A domain is "canonically" at https if:
     * at least one of its https endpoints is live and
       doesn't have an invalid hostname
     * both http endpoints are either down or redirect *somewhere*
     * at least one http endpoint redirects immediately to
       an *internal* https endpoint

    A valid hostname is enough, the chain may still be invalid.
    """
    http, httpwww, https, httpswww = endpoints

    def https_used(endpoint):
        return endpoint.up and (not endpoint.https_bad_hostname)

    def http_unused(endpoint):
        return endpoint.is_redirect or (not endpoint.up) or (not _is_2xx(endpoint))

    return (
        (https_used(https) or https_used(httpswww))
        and http_unused(http)
        and http_unused(httpwww)
        and (_redirects_internally_to_https(http) or _redirects_internally_to_https(httpwww))
    )


def canonical_endpoint(endpoints):
    """
    Given behavior for the 4 endpoints, make a best guess
    as to which is the "canonical" site for the domain.

    Most of the domain-level decisions rely on this guess in some way.
    With nothing to go on, that is plain http:// at the root.
    """
    subdomain = Subdomain.WWW if is_canonically_www(endpoints) else Subdomain.ROOT
    protocol = Protocol.HTTPS if is_canonically_https(endpoints) else Protocol.HTTP

    if protocol is Protocol.HTTPS:
        return endpoints.httpswww if subdomain is Subdomain.WWW else endpoints.https
    return endpoints.httpwww if subdomain is Subdomain.WWW else endpoints.http


def canonical_https(endpoints, canonical):
    """The HTTPS endpoint for the canonical hostname."""
    if canonical.subdomain is Subdomain.WWW:
        return endpoints.httpswww
    return endpoints.https


##
# Judgment calls based on observed endpoint data.
##


def is_live(endpoints):
    """Domain is "live" if *any* endpoint is live."""
    return any(endpoint.up for endpoint in endpoints)


def is_https_live(endpoints):
    """Domain is https live if any https endpoint is live."""
    return endpoints.https.up or endpoints.httpswww.up


def is_broken_root(endpoints):
    return (not endpoints.http.up) and (not endpoints.https.up)


def is_broken_www(endpoints):
    return (not endpoints.httpwww.up) and (not endpoints.httpswww.up)


def is_supports_https(endpoints):
    """
    The domain "supports" HTTPS if any HTTPS endpoint responds with
    a certificate valid for its hostname. A bad chain alone is fine.
    """
    return any(
        endpoint.up and (not endpoint.https_bad_hostname)
        for endpoint in (endpoints.https, endpoints.httpswww)
    )


def is_downgrades_https(endpoints, canonical):
    """
    Domain downgrades if HTTPS is supported in some way, but
    its canonical HTTPS endpoint immediately redirects internally to HTTP.
    """
    endpoint = canonical_https(endpoints, canonical)

    return (
        is_supports_https(endpoints)
        and endpoint.redirect_immediately_to_http
        and (not endpoint.redirect_immediately_to_external)
    )


def is_enforces_https(endpoints):
    """
    A domain enforces HTTPS if one of the HTTPS endpoints is
    "live", and if both *HTTP* endpoints are either:

     * down, or
     * redirect immediately to an HTTPS URI.

    This is different than whether a domain "Defaults" to HTTPS.

    * An HTTP redirect can go to HTTPS on another domain, as long
      as it's immediate.
    * A domain with an invalid cert can still be enforcing HTTPS.
    """

    def down_or_redirects(endpoint):
        return (not endpoint.up) or endpoint.redirect_immediately_to_https

    return (
        is_https_live(endpoints)
        and down_or_redirects(endpoints.http)
        and down_or_redirects(endpoints.httpwww)
    )


def is_redirect_or_down(endpoint):
    """
    Endpoint is a redirect or down if it is a redirect to an external site or
    it is down in any of 3 ways: it is not live, it is HTTPS and has a bad
    hostname in the cert, or it responds with a 4xx/5xx error code.
    """
    return (
        endpoint.redirect_eventually_to_external
        or (not endpoint.up)
        or endpoint.https_bad_hostname
        or endpoint.status >= 400
    )


def is_redirect_domain(endpoints):
    """
    Domain is "a redirect domain" if it is live and every endpoint
    is either an external redirect or down.
    """
    return is_live(endpoints) and all(
        is_redirect_or_down(endpoint) for endpoint in endpoints
    )


def redirects_to(endpoints, canonical):
    """If a domain is a "redirect domain", where does it redirect to?"""
    if is_redirect_domain(endpoints):
        return canonical.redirect_eventually_to
    return None


def is_valid_https(endpoints, canonical):
    """
    A domain has "valid HTTPS" if it responds on port 443 at its canonical
    hostname with a valid certificate for the hostname.
    """
    endpoint = canonical_https(endpoints, canonical)
    return endpoint.up and endpoint.https_valid


def is_hsts_entire_domain(endpoints):
    """Whether a domain's ROOT endpoint includes all subdomains."""
    hsts = endpoints.https.hsts
    return hsts.enabled and hsts.include_subdomains


def is_hsts_entire_domain_preload(endpoints):
    """Whether a domain's ROOT endpoint is preload-ready."""
    return is_hsts_entire_domain(endpoints) and endpoints.https.hsts.preload_ready


def did_domain_error(endpoints):
    """Whether an unexpected error came up anywhere during evaluation."""
    return any(endpoint.unknown_error for endpoint in endpoints)


def canonicalize(domain, endpoints):
    """Combine the four endpoint records of ``domain`` into a DomainVerdict."""
    # Because it will inform many other judgments, first identify
    # an acceptable "canonical" URL for the domain.
    canonical = canonical_endpoint(endpoints)
    canonical_https_endpoint = canonical_https(endpoints, canonical)

    return DomainVerdict(
        domain=domain,
        canonical_endpoint=canonical.subdomain,
        canonical_protocol=canonical.protocol,
        canonical_url=canonical.url,
        up=is_live(endpoints),
        broken_root=is_broken_root(endpoints),
        broken_www=is_broken_www(endpoints),
        https_live=is_https_live(endpoints),
        support_https=is_supports_https(endpoints),
        default_https=canonical.protocol is Protocol.HTTPS,
        downgrade_https=is_downgrades_https(endpoints, canonical),
        enforce_https=is_enforces_https(endpoints),
        valid_https=is_valid_https(endpoints, canonical),
        https_bad_chain=(
            canonical_https_endpoint.up and canonical_https_endpoint.https_bad_chain
        ),
        https_bad_hostname=(
            canonical_https_endpoint.up and canonical_https_endpoint.https_bad_hostname
        ),
        is_redirect_domain=is_redirect_domain(endpoints),
        redirect_target=redirects_to(endpoints, canonical),
        hsts_on_canonical=canonical.hsts.enabled,
        hsts_header_on_canonical=canonical.hsts_header,
        hsts_max_age=canonical.hsts.max_age,
        hsts_entire_domain=is_hsts_entire_domain(endpoints),
        hsts_entire_domain_preload=is_hsts_entire_domain_preload(endpoints),
        unknown_error=did_domain_error(endpoints),
    )
