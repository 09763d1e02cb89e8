"""Developer environment setup and system maintenance commands."""

__version__ = "2.0.0"
