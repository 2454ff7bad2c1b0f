"""Minimal HTTP file storage: PUT/POST to store a file, GET to retrieve it."""

__version__ = "0.1.0"
