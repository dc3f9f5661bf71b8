"""CTF Arena Discord client."""

__version__ = "0.1.0"
