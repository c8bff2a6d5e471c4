"""
Dependency domain objects for subtree-modules.

A module's own data-file manifest declares the modules it needs. Each
declared entry is either a bare name or a versioned spec; the validator
turns them into DependencyCheck results collected in a DependencyReport.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class SpecKind(Enum):
    """Tag of a DependencySpec."""
    NAME = "name"
    VERSIONED = "versioned"


@dataclass(frozen=True)
class DependencySpec:
    """
    A declared dependency: a bare module name, or a name with version bounds.

    Attributes:
        name: Module name
        kind: SpecKind.NAME for bare names, SpecKind.VERSIONED otherwise
        exact_version: Required exact version (RequiredVersion)
        min_version: Inclusive lower bound (ModuleVersion)
        max_version: Inclusive upper bound (MaximumVersion)
    """
    name: str
    kind: SpecKind = SpecKind.NAME
    exact_version: Optional[str] = None
    min_version: Optional[str] = None
    max_version: Optional[str] = None

    @classmethod
    def bare(cls, name: str) -> 'DependencySpec':
        return cls(name=name)

    @classmethod
    def versioned(
        cls,
        name: str,
        exact_version: Optional[str] = None,
        min_version: Optional[str] = None,
        max_version: Optional[str] = None
    ) -> 'DependencySpec':
        return cls(
            name=name,
            kind=SpecKind.VERSIONED,
            exact_version=exact_version,
            min_version=min_version,
            max_version=max_version,
        )

    @property
    def has_bounds(self) -> bool:
        return any((self.exact_version, self.min_version, self.max_version))

    def describe_bound(self) -> Optional[str]:
        """Human-readable version bound, e.g. ``>=5.0.0`` or ``==1.2``."""
        if self.exact_version:
            return f"=={self.exact_version}"
        parts = []
        if self.min_version:
            parts.append(f">={self.min_version}")
        if self.max_version:
            parts.append(f"<={self.max_version}")
        return ",".join(parts) or None


@dataclass
class DependencyCheck:
    """Outcome of looking up one declared dependency."""
    name: str
    found: bool
    version_bound: Optional[str] = None
    found_version: Optional[str] = None
    found_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'name': self.name, 'found': self.found}
        if self.version_bound:
            result['version_bound'] = self.version_bound
        if self.found_version:
            result['found_version'] = self.found_version
        if self.found_path:
            result['found_path'] = self.found_path
        return result


@dataclass
class DependencyReport:
    """Dependency verdict for one vendored module."""
    name: str
    manifest_path: Optional[str] = None
    all_dependencies_met: bool = True
    required_modules: List[DependencyCheck] = field(default_factory=list)
    external_module_dependencies: List[DependencyCheck] = field(default_factory=list)
    nested_modules: List[DependencyCheck] = field(default_factory=list)
    missing_dependencies: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def all_checks(self) -> List[DependencyCheck]:
        return self.required_modules + self.external_module_dependencies + self.nested_modules

    def finalize(self) -> 'DependencyReport':
        """Recompute the conjunction and the deduplicated missing list."""
        missing: List[str] = []
        for check in self.all_checks():
            if not check.found and check.name not in missing:
                missing.append(check.name)
        self.missing_dependencies = missing
        self.all_dependencies_met = (
            self.manifest_path is not None and self.error is None and not missing
        )
        return self

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'manifest_path': self.manifest_path,
            'all_dependencies_met': self.all_dependencies_met,
            'required_modules': [c.to_dict() for c in self.required_modules],
            'external_module_dependencies': [c.to_dict() for c in self.external_module_dependencies],
            'nested_modules': [c.to_dict() for c in self.nested_modules],
            'missing_dependencies': list(self.missing_dependencies),
        }
        if self.error:
            result['error'] = self.error
        return result
