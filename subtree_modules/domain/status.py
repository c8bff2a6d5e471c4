"""
Status domain objects for subtree-modules.

These are derived on demand (from git history and remote ref
advertisements) and never persisted.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


class StatusKind(Enum):
    """Tri-state verdict for a vendored module."""
    CURRENT = "Current"
    UPDATE_AVAILABLE = "UpdateAvailable"
    UNKNOWN = "Unknown"


@dataclass
class SubtreeRecord:
    """The most recent squash commit that embedded a module."""
    upstream_commit: str
    local_commit: str
    local_commit_date: Optional[datetime]
    prefix: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'upstream_commit': self.upstream_commit,
            'local_commit': self.local_commit,
            'local_commit_date': self.local_commit_date.isoformat() if self.local_commit_date else None,
            'prefix': self.prefix,
        }


@dataclass
class UpstreamRef:
    """A ref resolved against a remote repository."""
    commit_id: str
    resolved_ref_name: str
    repository_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'commit_id': self.commit_id,
            'resolved_ref_name': self.resolved_ref_name,
            'repository_url': self.repository_url,
        }


def short_commit(commit: Optional[str]) -> Optional[str]:
    return commit[:7] if commit else None


def derive_status(local_commit: Optional[str], upstream_commit: Optional[str]) -> StatusKind:
    """Current iff both resolved and equal, UpdateAvailable iff both resolved and different."""
    if not local_commit or not upstream_commit:
        return StatusKind.UNKNOWN
    if local_commit == upstream_commit:
        return StatusKind.CURRENT
    return StatusKind.UPDATE_AVAILABLE


@dataclass
class ModuleStatus:
    """Reporting view of one module's freshness."""
    name: str
    ref: str
    status: StatusKind
    repository: str = ""
    local_commit_full: Optional[str] = None
    upstream_commit_full: Optional[str] = None

    @property
    def local_commit_short(self) -> Optional[str]:
        return short_commit(self.local_commit_full)

    @property
    def upstream_commit_short(self) -> Optional[str]:
        return short_commit(self.upstream_commit_full)

    @classmethod
    def from_lookups(
        cls,
        name: str,
        ref: str,
        repository: str,
        record: Optional[SubtreeRecord],
        upstream: Optional[UpstreamRef]
    ) -> 'ModuleStatus':
        local = record.upstream_commit if record else None
        remote = upstream.commit_id if upstream else None
        return cls(
            name=name,
            ref=ref,
            status=derive_status(local, remote),
            repository=repository,
            local_commit_full=local,
            upstream_commit_full=remote,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'ref': self.ref,
            'status': self.status.value,
            'local_commit': self.local_commit_short,
            'upstream_commit': self.upstream_commit_short,
            'local_commit_full': self.local_commit_full,
            'upstream_commit_full': self.upstream_commit_full,
            'repository': self.repository,
        }
