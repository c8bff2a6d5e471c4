"""
subtree-modules - vendor PowerShell modules into a git repository.

Modules are embedded with ``git subtree --squash`` under ``modules/<Name>``
and tracked in ``subtree-modules.yaml``. The package can also tell whether
each module is behind its upstream ref and whether the modules' declared
dependencies are available.

Quick Start:
    from subtree_modules import HostRepository, LifecycleService, StatusService

    host = HostRepository(".")
    lifecycle = LifecycleService(host)
    lifecycle.add("Pester", "https://github.com/pester/Pester.git", ref="main")

    for status in StatusService(host).status_of(host.load_manifest()):
        print(status.name, status.status.value)

Domain Objects:
    ModuleManifest, ModuleEntry - the tracked-module manifest
    ModuleStatus, StatusKind - freshness verdicts
    DependencyReport, DependencySpec - dependency validation results

Services:
    LifecycleService - add, update, remove, list
    StatusService - Current / UpdateAvailable / Unknown
    DependencyService - declared dependency checks
    ScaffoldService - repository initialization
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    ModuleEntry,
    ModuleManifest,
    ModuleInfo,
    ModuleStatus,
    StatusKind,
    DependencyReport,
    DependencySpec,
)

# Services
from .services import (
    HostRepository,
    LifecycleService,
    StatusService,
    StatusOptions,
    DependencyService,
    DependencyCheckOptions,
    ScaffoldService,
)

# Configuration
from .config import load_config

__all__ = [
    "__version__",
    "ModuleEntry",
    "ModuleManifest",
    "ModuleInfo",
    "ModuleStatus",
    "StatusKind",
    "DependencyReport",
    "DependencySpec",
    "HostRepository",
    "LifecycleService",
    "StatusService",
    "StatusOptions",
    "DependencyService",
    "DependencyCheckOptions",
    "ScaffoldService",
    "load_config",
]
