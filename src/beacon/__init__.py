"""Beacon - notes, voice capture and assistant chat for The Array."""

__version__ = "0.1.0"
