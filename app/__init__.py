"""Application module for HomeNet.

Contains the wiring and lifecycle components:
- AppDependencies: Component container built from the configuration
- AppController: Starts/stops discovery and the DNS gatekeeper
"""

from app.controller import AppController, StatusSnapshot
from app.dependencies import AppDependencies, create_dependencies

__all__ = [
    "AppController",
    "AppDependencies",
    "StatusSnapshot",
    "create_dependencies",
]
