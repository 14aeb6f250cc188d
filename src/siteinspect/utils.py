"""Define utility functions for the siteinspect library."""

# Standard Python Libraries
import errno
import json
import logging
import os
import re


# mkdir -p in python, from:
# http://stackoverflow.com/questions/600268/mkdir-p-functionality-in-python
def mkdir_p(path):
    """Make a directory and any missing directories in the path."""
    try:
        os.makedirs(path)
    except OSError as exc:
        if exc.errno == errno.EEXIST:
            pass
        else:
            raise


def json_for(data):
    """Pretty format the given object to JSON."""
    return json.dumps(data, sort_keys=True, indent=2)


def write(content, destination):
    """Write contents to a destination after making any missing directories."""
    parent = os.path.dirname(destination)
    if parent != "":
        mkdir_p(parent)

    with open(destination, "w", encoding="utf-8") as f:
        f.write(content)


# Configure logging level, so logging.debug can hinge on debug_logging.
def configure_logging(debug_logging=False):
    """Configure the logging library."""
    log_level = logging.DEBUG if debug_logging else logging.WARNING
    logging.basicConfig(format="%(message)s", level=log_level)


def format_domain(domain):
    """Strip a leading scheme and www. from a domain, and lower-case it."""
    return re.sub(r"^(https?://)?(www\.)?", "", domain.strip().lower()).rstrip("/")


def format_domains(domains):
    """Format a given list of domains."""
    return [format_domain(domain) for domain in domains]


def debug(*args, divider=False):
    """Output a debugging message."""
    if divider:
        logging.debug("\n-------------------------\n")

    if args:
        logging.debug(*args)
