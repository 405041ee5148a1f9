"""Metadata provider for locally stored YouTube downloads."""

__version__ = "1.0.0"
