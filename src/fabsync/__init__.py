"""Profile synchronisation and content transfer for fabrication databases."""

__version__ = "0.1.0"
