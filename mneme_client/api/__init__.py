"""
Mneme Sync Client - API Package

This package contains the transport and the coordinator API client.
"""

from .transport import Transport, TransportResponse, MAX_RESPONSE_BYTES
from .mneme_api import MnemeSyncAPI, CLIENT_ID_HEADER

__all__ = ['Transport', 'TransportResponse', 'MAX_RESPONSE_BYTES', 'MnemeSyncAPI', 'CLIENT_ID_HEADER']
