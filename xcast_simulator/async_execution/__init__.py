"""
Async Execution Layer Package
"""

from .action_queue import ActionQueue

__all__ = ["ActionQueue"]
