"""Work out which TLS verification axis, if any, an HTTPS endpoint fails.

A single failed connection only reports the first problem OpenSSL ran into.
Re-probing with one axis switched off at a time tells a bad chain apart from
a bad hostname, and whether an endpoint has both.
"""

# Standard Python Libraries
import logging

from .models import TlsDetail, TlsOutcome


def classify_tls(prober, key):
    """Probe an HTTPS endpoint until its TLS problems are known.

    Returns ``(TlsDetail, ProbeOutcome)``: the outcome is the most useful
    response obtained, made with every axis known to be broken switched off.
    """
    outcome = prober.probe(key)

    if outcome.tls is TlsOutcome.OK:
        return TlsDetail(valid=True), outcome

    if outcome.tls is TlsOutcome.BAD_CHAIN:
        logging.warning("%s: Bad certificate chain.", outcome.request_url)
        retry = prober.probe(key, verify_chain=False, verify_hostname=True)
        if retry.tls is TlsOutcome.BAD_HOSTNAME:
            logging.warning("%s: Bad hostname as well.", outcome.request_url)
            retry = prober.probe(key, verify_chain=False, verify_hostname=False)
            return TlsDetail(bad_chain=True, bad_hostname=True), retry
        return TlsDetail(bad_chain=True), retry

    if outcome.tls is TlsOutcome.BAD_HOSTNAME:
        logging.warning("%s: Bad hostname.", outcome.request_url)
        retry = prober.probe(key, verify_chain=True, verify_hostname=False)
        if retry.tls is TlsOutcome.BAD_CHAIN:
            logging.warning("%s: Bad certificate chain as well.", outcome.request_url)
            retry = prober.probe(key, verify_chain=False, verify_hostname=False)
            return TlsDetail(bad_chain=True, bad_hostname=True), retry
        return TlsDetail(bad_hostname=True), retry

    return TlsDetail(unknown_issue=outcome.error or outcome.tls.value), outcome
