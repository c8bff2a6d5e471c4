"""
Domain layer for subtree-modules.

Contains pure domain objects with no I/O or side effects:
- ModuleManifest / ModuleEntry: the tracked-module manifest
- SubtreeRecord / UpstreamRef / ModuleStatus: derived freshness data
- DependencySpec / DependencyReport: dependency validation results
- OperationDetail / OperationSummary: lifecycle operation results

These objects provide serialization methods for JSONL output.
"""

from .module import (
    DEFAULT_REF,
    ModuleEntry,
    ModuleInfo,
    ModuleManifest,
    is_valid_module_name,
    match_name,
)
from .status import ModuleStatus, StatusKind, SubtreeRecord, UpstreamRef, derive_status
from .dependency import DependencyCheck, DependencyReport, DependencySpec, SpecKind
from .operation import (
    FileGenerationResult,
    ModuleChangeResult,
    OperationDetail,
    OperationStatus,
    OperationSummary,
)

__all__ = [
    'DEFAULT_REF',
    'ModuleEntry',
    'ModuleInfo',
    'ModuleManifest',
    'is_valid_module_name',
    'match_name',
    'ModuleStatus',
    'StatusKind',
    'SubtreeRecord',
    'UpstreamRef',
    'derive_status',
    'DependencyCheck',
    'DependencyReport',
    'DependencySpec',
    'SpecKind',
    'FileGenerationResult',
    'ModuleChangeResult',
    'OperationDetail',
    'OperationStatus',
    'OperationSummary',
]
