"""
Operation result domain objects for subtree-modules.

Provides standardized result types for write operations (init, add,
update, remove) that modify the host repository.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class OperationStatus(Enum):
    """Status of an individual operation."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class OperationDetail:
    """
    Details of a single operation on one module.

    Used to track what happened to each module during batch operations.
    """
    module_name: str
    status: OperationStatus
    action: str  # e.g., "added", "updated", "removed", "would_add"
    message: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'name': self.module_name,
            'status': self.status.value,
            'action': self.action,
        }
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
        if self.metadata:
            result.update(self.metadata)
        return result


@dataclass
class ModuleChangeResult(OperationDetail):
    """Result of adding, updating or removing a vendored module."""
    prefix: Optional[str] = None
    repository: Optional[str] = None
    old_ref: Optional[str] = None
    new_ref: Optional[str] = None
    commit_message: Optional[str] = None
    changed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        if self.prefix:
            result['prefix'] = self.prefix
        if self.repository:
            result['repository'] = self.repository
        if self.old_ref:
            result['old_ref'] = self.old_ref
        if self.new_ref:
            result['new_ref'] = self.new_ref
        if self.commit_message:
            result['commit_message'] = self.commit_message
        result['changed'] = self.changed
        return result


@dataclass
class FileGenerationResult(OperationDetail):
    """Result of generating a scaffolding file (README, .gitignore, workflow)."""
    file_path: Optional[str] = None
    file_type: str = "unknown"  # readme, gitignore, workflow, manifest, profile
    overwritten: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        if self.file_path:
            result['file_path'] = self.file_path
        result['file_type'] = self.file_type
        result['overwritten'] = self.overwritten
        return result


@dataclass
class OperationSummary:
    """
    Summary of a batch operation across multiple modules.

    Collects statistics and details from lifecycle operations.
    """
    operation: str  # e.g., "add", "update", "remove", "init"
    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    dry_run: bool = False
    details: List[OperationDetail] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no failures occurred."""
        return self.failed == 0

    def add_detail(self, detail: OperationDetail) -> None:
        """Add an operation detail and update counts."""
        self.details.append(detail)
        self.total += 1

        if detail.status == OperationStatus.SUCCESS:
            self.successful += 1
        elif detail.status == OperationStatus.SKIPPED:
            self.skipped += 1
        elif detail.status == OperationStatus.FAILED:
            self.failed += 1
            if detail.error:
                self.errors.append(f"{detail.module_name}: {detail.error}")
        elif detail.status == OperationStatus.DRY_RUN:
            self.successful += 1  # Count dry-run as successful

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'summary',
            'operation': self.operation,
            'total': self.total,
            'successful': self.successful,
            'skipped': self.skipped,
            'failed': self.failed,
            'dry_run': self.dry_run,
            'errors': self.errors,
        }
