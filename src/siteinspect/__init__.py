"""The siteinspect library."""
# We disable a Flake8 check for "Module imported but unused (F401)" here because
# although this import is not directly used, it populates the value
# package_name.__version__, which is used to get version information about this
# Python package.
from ._version import __version__  # noqa: F401
from .canonical import canonicalize
from .inspector import DomainInspection, InspectionCancelled, inspect, inspect_domains
from .models import DomainVerdict, EndpointKey, EndpointRecord, Protocol, Subdomain

__all__ = [
    "canonicalize",
    "DomainInspection",
    "DomainVerdict",
    "EndpointKey",
    "EndpointRecord",
    "InspectionCancelled",
    "inspect",
    "inspect_domains",
    "Protocol",
    "Subdomain",
]
