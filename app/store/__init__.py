"""
Store Subsystem

Redis list store access and the connection lifecycle behind it.
"""

from .client import ListStore, StoreDiagnostics, StoreNamespace
from .connection import ConnectionState, StoreConnection
from .reconnect import ConnectionAttempt, ReconnectPolicy

__all__ = [
    "ListStore",
    "StoreDiagnostics",
    "StoreNamespace",
    "ConnectionState",
    "StoreConnection",
    "ConnectionAttempt",
    "ReconnectPolicy",
]
