"""Unusual options activity scanner for crypto option venues."""

__version__ = "0.1.0"
