"""The Array integration for Beacon.

Provides the HTTP client for status, ingest, queue and recent sessions.
"""

from .client import ArrayClient

__all__ = ["ArrayClient"]
