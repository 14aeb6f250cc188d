"""Parse Strict-Transport-Security header values."""

# Standard Python Libraries
import re

from .models import HstsDetail

# hstspreload.org requires at least a year.
PRELOAD_MIN_MAX_AGE = 31536000


def parse_hsts(header):
    """Return the HstsDetail described by an HSTS header value.

    A missing or malformed header (no usable ``max-age``) is reported as
    HSTS being disabled.
    """
    if header is None:
        return HstsDetail()

    # handle multiple HSTS headers, requests comma-separates them
    first_pass = re.split(r",\s?", header)[0]

    directives = {}
    for directive in first_pass.split(";"):
        name, _, value = directive.strip().partition("=")
        name = name.strip().lower()
        if name and name not in directives:
            directives[name] = value.strip().strip("\"'")

    max_age = directives.get("max-age")
    if max_age is None or not re.fullmatch(r"[0-9]+", max_age):
        return HstsDetail()
    max_age = int(max_age)

    include_subdomains = "includesubdomains" in directives
    preload = "preload" in directives

    return HstsDetail(
        enabled=True,
        max_age=max_age,
        include_subdomains=include_subdomains,
        preload=preload,
        preload_ready=(
            max_age >= PRELOAD_MIN_MAX_AGE and include_subdomains and preload
        ),
    )
