"""
Xcast Device Simulator Package

Impersonates a device running the Thunder Xcast plugin so that a controller's
remote application lifecycle handling can be tested without target hardware.
"""

__version__ = "1.0.0"
__description__ = "Xcast remote application lifecycle test double"

from xcast_simulator.core_application import (
    Activity, Application, ApplicationRegistry, ApplicationState, RequestRouter
)

__all__ = [
    "Activity", "Application", "ApplicationRegistry", "ApplicationState", "RequestRouter"
]
