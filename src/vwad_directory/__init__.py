"""vwad-directory: catalog engine for the Vulnerable Web Applications Directory."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vwad-directory")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
