"""
Service layer for subtree-modules.

Contains the operations that orchestrate domain objects and infrastructure:
- LifecycleService: add, update, remove, list
- StatusService: Current / UpdateAvailable / Unknown per module
- DependencyService: declared dependency validation
- ScaffoldService: repository initialization

Services are the primary API for commands to use.
"""

from .host import HostRepository
from .subtree_service import SubtreeMetadataReader
from .upstream_service import UpstreamRefResolver
from .status_service import StatusOptions, StatusService
from .lifecycle_service import LifecycleService
from .dependency_service import DependencyCheckOptions, DependencyService
from .scaffold_service import ScaffoldService
from .profile_service import inject_profile

__all__ = [
    'HostRepository',
    'SubtreeMetadataReader',
    'UpstreamRefResolver',
    'StatusOptions',
    'StatusService',
    'LifecycleService',
    'DependencyCheckOptions',
    'DependencyService',
    'ScaffoldService',
    'inject_profile',
]
