"""Keep a local mirror of remote documentation pages in sync."""

__version__ = "0.3.0"
