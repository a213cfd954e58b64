"""pkgdoc core package.

Resolves a package's published module surface (``package.json`` exports,
``types``/``typings`` or an explicit path) into entry points and a validated
configuration for a documentation generator.
"""

from .config import validate_config
from .models import GenerateConfig, GenerateRequest, Manifest
from .orchestrator import Orchestrator

__all__ = [
    "GenerateConfig",
    "GenerateRequest",
    "Manifest",
    "Orchestrator",
    "validate_config",
]
