"""Sitepress: localized static-site builds with a live-reload dev server."""

__version__ = "0.1.0"
