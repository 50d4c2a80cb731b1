"""Adapters — container runtime bindings.

Public re-exports for convenient access.
"""

from develbox.adapters.base import ContainerHandle, Identity
from develbox.adapters.mock import MockContainerHandle

__all__ = [
    "ContainerHandle",
    "Identity",
    "MockContainerHandle",
]
