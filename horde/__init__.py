"""Horde: decision and action engine for monster groups in a chunked tile world."""

__version__ = "0.1.0"
