"""
User Interaction Layer Package
"""

from .inspection_api import create_inspection_app
from .operator_console import OperatorConsole
from .simulator_service import XcastDeviceSimulator

__all__ = ["create_inspection_app", "OperatorConsole", "XcastDeviceSimulator"]
