"""Evaluate a single endpoint into an EndpointRecord."""

# Standard Python Libraries
import logging

from . import utils
from .hsts import parse_hsts
from .models import EndpointRecord, HstsDetail, RedirectDetail
from .redirects import is_redirect_status, resolve_redirect
from .tls import classify_tls


def evaluate(prober, key, suffix_list=None):
    """Test the endpoint.

    * Don't follow redirects at first, so that any errors (e.g. TLS errors)
      are scoped to the endpoint itself. A 3XX is followed separately.

    * Validate certificates, and work out what is wrong when that fails.
    """
    url = key.url_for(prober.domain)
    utils.debug("Evaluating %s...", url, divider=True)

    tls = None
    if key.is_https:
        tls, outcome = classify_tls(prober, key)
    else:
        outcome = prober.probe(key)

    if not outcome.reachable:
        utils.debug("%s: Endpoint is down (%s).", url, outcome.error)
        return EndpointRecord.down(key, url, tls)

    # HSTS is only honored over HTTPS with a certificate browsers accept.
    hsts_header = None
    hsts = HstsDetail()
    if key.is_https:
        hsts_header = outcome.headers.get("Strict-Transport-Security")
        if tls.valid:
            hsts = parse_hsts(hsts_header)

    redirect = None
    unknown_error = False
    if is_redirect_status(outcome.status) and outcome.headers.get("Location"):
        logging.warning("%s: Found redirect.", url)
        try:
            redirect = resolve_redirect(prober, key, outcome, tls, suffix_list)
        except Exception as err:
            logging.exception("%s: Unexpected exception when resolving redirect.", url)
            redirect = RedirectDetail.unknown("%s: %s" % (type(err).__name__, err))
            unknown_error = True

    return EndpointRecord(
        key=key,
        url=url,
        up=True,
        status=outcome.status,
        headers=outcome.headers,
        tls=tls,
        hsts=hsts,
        hsts_header=hsts_header,
        redirect=redirect,
        unknown_error=unknown_error,
    )
