"""
External Services Layer Package
"""

from .event_registration import XcastEventRegistrar
from .xcast_connection import ConnectionState, ChannelCounters, XcastConnection

__all__ = [
    "XcastConnection", "ConnectionState", "ChannelCounters",
    "XcastEventRegistrar"
]
