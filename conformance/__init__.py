"""Coding standards conformance checker for Terraform, JavaScript and Python."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("coding-standards-conformance")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = ["__version__"]
