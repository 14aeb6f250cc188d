"""
This is the setup module for the siteinspect project.

Based on:

- https://packaging.python.org/distributing/
- https://github.com/pypa/sampleproject/blob/master/setup.py
- https://blog.ionelmc.ro/2014/05/25/python-packaging/#the-structure
"""

# Standard Python Libraries
import codecs
from os.path import abspath, dirname, join

# Third-Party Libraries
from setuptools import find_packages, setup


def readme():
    """Read in and return the contents of the project's README.md file."""
    with open("README.md", encoding="utf-8") as f:
        return f.read()


# Below two methods were pulled from:
# https://packaging.python.org/guides/single-sourcing-package-version/
def read(rel_path):
    """Open a file for reading from a given relative path."""
    here = abspath(dirname(__file__))
    with codecs.open(join(here, rel_path), "r") as fp:
        return fp.read()


def get_version(version_file):
    """Extract a version number from the given file path."""
    for line in read(version_file).splitlines():
        if line.startswith("__version__"):
            delim = '"' if '"' in line else "'"
            return line.split(delim)[1]
    raise RuntimeError("Unable to find version string.")


setup(
    name="siteinspect",
    # Versions should comply with PEP440
    version=get_version("src/siteinspect/_version.py"),
    description="Work out a domain's canonical URL and HTTPS posture",
    long_description=readme(),
    long_description_content_type="text/markdown",
    license="License :: CC0 1.0 Universal (CC0 1.0) Public Domain Dedication",
    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        # How mature is this project? Common values are
        #   3 - Alpha
        #   4 - Beta
        #   5 - Production/Stable
        "Development Status :: 3 - Alpha",
        # Indicate who your project is intended for
        "Intended Audience :: Developers",
        # Pick your license as you wish (should match "license" above)
        "License :: CC0 1.0 Universal (CC0 1.0) Public Domain Dedication",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: Implementation :: CPython",
    ],
    # ThreadPoolExecutor.shutdown(cancel_futures=True) needs 3.9.
    python_requires=">=3.9",
    # What does your project relate to?
    keywords="https hsts redirects canonical domain",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "cryptography>=3.1",
        "publicsuffixlist[update]>=0.9.2",
        "pyopenssl>=17.5.0",
        "requests>=2.27.0",
        # This is necessary to support the python_requires kwarg
        "setuptools >= 24.2.0",
        "urllib3>=2.0",
    ],
    extras_require={
        "test": [
            "coverage",
            "pre-commit",
            "pytest-cov",
            "pytest",
            "types-pyOpenSSL",
            "types-requests",
            "types-setuptools",
        ]
    },
)
