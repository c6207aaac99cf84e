"""
Xcast Protocol Configuration Package
"""

from .xcast_config import XCAST_EVENTS, XcastConfig, xcast_config

__all__ = ["XCAST_EVENTS", "XcastConfig", "xcast_config"]
