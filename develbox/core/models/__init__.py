"""
Domain models — Pydantic types for develbox.

All models are re-exported here for convenient access:

    from develbox.core.models import DevelboxConfig, Operation, OperationKind
"""

from develbox.core.models.config import (
    Binds,
    Container,
    DevelboxConfig,
    Experiments,
    Image,
    Operations,
    PackageManagerTemplate,
    Podman,
    UserPackages,
)
from develbox.core.models.operation import (
    Operation,
    OperationKind,
    parse_arguments,
    update_manifest,
)

__all__ = [
    # config.py
    "Binds",
    "Container",
    "DevelboxConfig",
    "Experiments",
    "Image",
    # operation.py
    "Operation",
    "OperationKind",
    "Operations",
    "PackageManagerTemplate",
    "Podman",
    "UserPackages",
    "parse_arguments",
    "update_manifest",
]
