"""Reconcile SAML assertions with local user accounts."""

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

try:
    __version__ = version("samlsync")
except PackageNotFoundError:
    __version__ = "0.0.0"
