# ============================================
# Remote API Module
# ============================================
"""
Client for the remote record API.

Components:
    - client: RecordApiClient and the RemoteUnavailable error
"""

from .client import RecordApiClient, RemoteUnavailable

__all__ = [
    "RecordApiClient",
    "RemoteUnavailable",
]
