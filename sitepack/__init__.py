"""SitePack: build-and-serve pipeline for a small static site."""

__version__ = "0.1.0"
