"""
Module manifest domain objects for subtree-modules.

The manifest is the versioned YAML file that declares which upstream
repositories are vendored under ``modules/`` and at which ref.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Any, Iterator, List, Optional

DEFAULT_REF = "main"

MODULE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


def is_valid_module_name(name: str) -> bool:
    """Check a module name against ``[A-Za-z0-9_.-]+`` (``.`` and ``..`` excluded)."""
    if not name or name in ('.', '..'):
        return False
    return MODULE_NAME_PATTERN.match(name) is not None


def glob_to_regex(pattern: str) -> re.Pattern:
    """
    Compile a simple glob into an anchored, case-sensitive regex.

    Only ``*`` (any run of characters) and ``?`` (exactly one character)
    are special; everything else, including ``[``, is literal.
    """
    parts = []
    for char in pattern:
        if char == '*':
            parts.append('.*')
        elif char == '?':
            parts.append('.')
        else:
            parts.append(re.escape(char))
    return re.compile('^' + ''.join(parts) + '$', re.DOTALL)


def match_name(name: str, pattern: str = "*") -> bool:
    """Check if a module name matches a glob pattern."""
    if pattern in (None, '', '*'):
        return True
    return glob_to_regex(pattern).match(name) is not None


@dataclass
class ModuleEntry:
    """A tracked module: where it comes from and which ref it follows."""
    repository: str
    ref: str = DEFAULT_REF

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the manifest's on-disk mapping."""
        return {'repo': self.repository, 'ref': self.ref}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ModuleEntry':
        ref = data.get('ref')
        return cls(
            repository=str(data['repo']),
            ref=str(ref) if ref not in (None, '') else DEFAULT_REF,
        )


@dataclass
class ModuleManifest:
    """
    Ordered mapping of module name to ModuleEntry.

    Insertion order is preserved so that load/save round-trips produce
    diff-friendly files.

    Example:
        manifest = ModuleManifest()
        manifest.set("Pester", ModuleEntry("https://github.com/pester/Pester.git"))
        for name, entry in manifest.items():
            print(name, entry.ref)
    """
    modules: Dict[str, ModuleEntry] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.modules

    def __len__(self) -> int:
        return len(self.modules)

    def __iter__(self) -> Iterator[str]:
        return iter(self.modules)

    def get(self, name: str) -> Optional[ModuleEntry]:
        return self.modules.get(name)

    def set(self, name: str, entry: ModuleEntry) -> None:
        """Insert or replace an entry; replacing keeps its position."""
        self.modules[name] = entry

    def remove(self, name: str) -> Optional[ModuleEntry]:
        return self.modules.pop(name, None)

    def names(self) -> List[str]:
        return list(self.modules)

    def items(self):
        return self.modules.items()

    def match(self, pattern: str = "*") -> List[str]:
        """Names matching a glob pattern, in manifest order."""
        return [name for name in self.modules if match_name(name, pattern)]

    def to_dict(self) -> Dict[str, Any]:
        return {'modules': {name: entry.to_dict() for name, entry in self.modules.items()}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ModuleManifest':
        modules = data.get('modules') or {}
        return cls(modules={
            str(name): ModuleEntry.from_dict(entry)
            for name, entry in modules.items()
        })


@dataclass
class ModuleInfo:
    """A manifest entry as shown by ``list``."""
    name: str
    repository: str
    ref: str
    path: str
    present: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'repository': self.repository,
            'ref': self.ref,
            'path': self.path,
            'present': self.present,
        }
