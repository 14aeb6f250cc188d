"""Issue single HTTP(S) requests against a domain's four endpoints.

Certificate chain verification and hostname verification are toggled
independently:

* chain verification is requests' ``verify`` flag;
* hostname verification is urllib3's ``assert_hostname``, set on the
  connection pools of a mounted adapter;
* when the chain is not verified OpenSSL never looks at the hostname, so the
  certificate presented on the socket is matched by hand.

Nothing in here raises on a network failure; the outcome carries status 0
and a failure code instead.
"""

# Standard Python Libraries
import logging
import ssl

# Third-Party Libraries
from cryptography import x509
import OpenSSL
import requests
from requests.adapters import DEFAULT_POOLBLOCK, HTTPAdapter
from requests.structures import CaseInsensitiveDict
from requests.utils import DEFAULT_CA_BUNDLE_PATH
import urllib3
from urllib3.connection import HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool
from urllib3.util.ssl_ import create_urllib3_context
from urllib3.util.ssl_match_hostname import CertificateError, match_hostname

from . import utils
from ._version import __version__
from .cache import signature_for
from .models import ProbeOutcome, TlsOutcome

# We're going to be making requests with certificate validation disabled.
urllib3.disable_warnings()

# Default, overrideable via the user_agent option
USER_AGENT = "siteinspect/%s (HTTPS compliance scanning)" % __version__

# Defaults to 10 seconds, overrideable via the timeout option
TIMEOUT = 10

# X509_V_ERR_HOSTNAME_MISMATCH and X509_V_ERR_IP_ADDRESS_MISMATCH
HOSTNAME_VERIFY_CODES = (62, 64)


class PeerCertificateConnection(HTTPSConnection):
    """An HTTPSConnection that keeps the certificate sent during the handshake.

    http.client drops the socket once a response ends the connection
    (HTTP/1.0, "Connection: close"), so it is read right after connecting.
    """

    peer_certificate = None

    def connect(self):
        super().connect()
        getpeercert = getattr(self.sock, "getpeercert", None)
        if getpeercert is not None:
            self.peer_certificate = getpeercert(binary_form=True)


class PeerCertificatePool(HTTPSConnectionPool):
    ConnectionCls = PeerCertificateConnection


class VerificationAdapter(HTTPAdapter):
    """An HTTPAdapter with its own SSL context and hostname policy."""

    def __init__(self, verify_chain=True, verify_hostname=True, ca_file=None, **kwargs):
        # HTTPAdapter.__init__ calls init_poolmanager, so set these first.
        self.verify_chain = verify_chain
        self.verify_hostname = verify_hostname
        self.ca_file = ca_file
        super().__init__(**kwargs)

    def init_poolmanager(
        self, connections, maxsize, block=DEFAULT_POOLBLOCK, **pool_kwargs
    ):
        pool_kwargs["ssl_context"] = self.ssl_context()
        if not self.verify_hostname:
            pool_kwargs["assert_hostname"] = False
        super().init_poolmanager(connections, maxsize, block=block, **pool_kwargs)
        self.poolmanager.pool_classes_by_scheme = {
            "http": HTTPConnectionPool,
            "https": PeerCertificatePool,
        }

    def ssl_context(self):
        """Build a fresh SSL context, never shared between probes."""
        if not self.verify_chain:
            return create_urllib3_context(cert_reqs=ssl.CERT_NONE)

        context = create_urllib3_context(cert_reqs=ssl.CERT_REQUIRED)
        if not self.verify_hostname:
            context.check_hostname = False
        context.load_verify_locations(cafile=self.ca_file or DEFAULT_CA_BUNDLE_PATH)
        return context


def _exception_chain(err):
    """Yield ``err`` and every exception wrapped inside it."""
    seen = []
    pending = [err]
    while pending:
        current = pending.pop(0)
        if not isinstance(current, BaseException):
            continue
        if any(current is other for other in seen):
            continue
        seen.append(current)
        yield current

        # MaxRetryError keeps the underlying error in .reason, everything
        # else in args or the implicit exception context.
        pending.append(getattr(current, "reason", None))
        pending.extend(current.args)
        pending.append(current.__cause__)
        pending.append(current.__context__)


def classify_ssl_error(err):
    """Map an SSL failure to a (TlsOutcome, raw code) pair."""
    chain = list(_exception_chain(err))

    for exc in chain:
        if isinstance(exc, ssl.SSLCertVerificationError):
            message = getattr(exc, "verify_message", None) or str(exc)
            if getattr(exc, "verify_code", None) in HOSTNAME_VERIFY_CODES or (
                "mismatch" in message.lower()
            ):
                return TlsOutcome.BAD_HOSTNAME, message
            return TlsOutcome.BAD_CHAIN, message

        # urllib3 matches hostnames itself when OpenSSL doesn't.
        if isinstance(exc, CertificateError):
            return TlsOutcome.BAD_HOSTNAME, str(exc)

    for exc in chain:
        if isinstance(exc, ssl.SSLError) and getattr(exc, "reason", None):
            return TlsOutcome.OTHER, str(exc.reason)

    return TlsOutcome.OTHER, "ssl_error"


def peer_certificate(response):
    """Return the DER certificate the server of a streamed response presented."""
    raw = response.raw
    connection = getattr(raw, "connection", None) or getattr(raw, "_connection", None)
    return getattr(connection, "peer_certificate", None)


def hostname_matches(der, hostname):
    """Whether a DER certificate is valid for ``hostname``.

    Only subjectAltName entries count, as in browsers.
    """
    try:
        cert = OpenSSL.crypto.load_certificate(OpenSSL.crypto.FILETYPE_ASN1, der)
    except OpenSSL.crypto.Error:
        logging.warning("Unable to parse certificate presented by %s.", hostname)
        return False

    try:
        san = cert.to_cryptography().extensions.get_extension_for_class(
            x509.SubjectAlternativeName
        )
    except x509.ExtensionNotFound:
        return False

    names = tuple(("DNS", name) for name in san.value.get_values_for_type(x509.DNSName))
    names += tuple(
        ("IP Address", str(ip)) for ip in san.value.get_values_for_type(x509.IPAddress)
    )

    try:
        match_hostname({"subjectAltName": names}, hostname)
    except CertificateError:
        return False
    return True


class Prober:
    """Probes the endpoints of one domain.

    The optional ``cache`` is any ResponseCache; entries are keyed by the
    whole request signature, so it can safely be shared between domains.
    """

    def __init__(
        self, domain, timeout=TIMEOUT, user_agent=USER_AGENT, ca_file=None, cache=None
    ):
        self.domain = domain
        self.timeout = timeout
        self.user_agent = user_agent
        self.ca_file = ca_file
        self.cache = cache

    def probe(
        self, key, follow_redirects=False, verify_chain=True, verify_hostname=True
    ):
        """Request one endpoint of the domain."""
        return self.fetch(
            key.url_for(self.domain),
            follow_redirects=follow_redirects,
            verify_chain=verify_chain,
            verify_hostname=verify_hostname,
        )

    def fetch(self, url, follow_redirects=False, verify_chain=True, verify_hostname=True):
        headers = {"User-Agent": self.user_agent}

        signature = None
        if self.cache is not None:
            signature = signature_for(
                url, headers, follow_redirects, verify_chain, verify_hostname
            )
            cached = self.cache.get(signature)
            if cached is not None:
                utils.debug("Using cached response for %s.", url)
                return cached

        outcome = self._fetch(url, headers, follow_redirects, verify_chain, verify_hostname)

        if signature is not None:
            self.cache.put(signature, outcome)
        return outcome

    def _fetch(self, url, headers, follow_redirects, verify_chain, verify_hostname):
        utils.debug(
            "Pinging %s (redirects: %s, chain: %s, hostname: %s)...",
            url,
            follow_redirects,
            verify_chain,
            verify_hostname,
            divider=True,
        )

        # A session per probe, so concurrent probes share no connection state.
        session = requests.Session()
        session.mount(
            "https://", VerificationAdapter(verify_chain, verify_hostname, self.ca_file)
        )

        try:
            # We never read the body. stream=True also keeps the socket
            # around so the peer certificate can be inspected.
            with session.get(
                url,
                allow_redirects=follow_redirects,
                verify=verify_chain,
                stream=True,
                headers=headers,
                timeout=self.timeout,
            ) as response:
                return self._outcome_for(url, response, verify_chain, verify_hostname)

        except requests.exceptions.SSLError as err:
            tls, code = classify_ssl_error(err)
            logging.warning("%s: TLS failure (%s): %s", url, tls.value, code)
            utils.debug("%s: %s", url, err)
            return ProbeOutcome(request_url=url, tls=tls, error=code)

        except requests.exceptions.Timeout as err:
            utils.debug("%s: Timed out: %s", url, err)
            return ProbeOutcome(request_url=url, tls=TlsOutcome.OTHER, error="timeout")

        except requests.exceptions.TooManyRedirects as err:
            utils.debug("%s: %s", url, err)
            return ProbeOutcome(
                request_url=url, tls=TlsOutcome.OTHER, error="too_many_redirects"
            )

        except requests.exceptions.ConnectionError as err:
            utils.debug("%s: Error connecting: %s", url, err)
            return ProbeOutcome(request_url=url, tls=TlsOutcome.OTHER, error="connection")

        # And this is the parent of ConnectionError and other things,
        # e.g. an invalid URL in a Location header being followed.
        except requests.exceptions.RequestException as err:
            logging.warning("%s: Unexpected requests exception: %s", url, err)
            return ProbeOutcome(
                request_url=url, tls=TlsOutcome.OTHER, error=type(err).__name__
            )

        finally:
            session.close()

    def _outcome_for(self, url, response, verify_chain, verify_hostname):
        final_url = response.url
        if not final_url.lower().startswith("https:"):
            tls = TlsOutcome.NOT_APPLICABLE
        elif verify_hostname and not verify_chain:
            hostname = urllib3.util.parse_url(final_url).host
            der = peer_certificate(response)
            if der is None or not hostname_matches(der, hostname):
                logging.warning("%s: Certificate is not valid for %s.", url, hostname)
                return ProbeOutcome(
                    request_url=url,
                    url=final_url,
                    tls=TlsOutcome.BAD_HOSTNAME,
                    error="hostname mismatch",
                )
            tls = TlsOutcome.OK
        else:
            tls = TlsOutcome.OK

        return ProbeOutcome(
            request_url=url,
            status=response.status_code,
            headers=CaseInsensitiveDict(response.headers),
            url=final_url,
            tls=tls,
        )
