"""
Host repository layout for subtree-modules.

Knows where the manifest and the vendored modules live inside the host
repository, and checks the preconditions every mutating verb shares.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..exit_codes import NotAVersionControlRepository, NotInitialized, PathNotFound
from ..infra import manifest_store
from ..infra.manifest_store import MANIFEST_FILENAME
from ..domain.module import ModuleManifest

DEFAULT_MODULES_DIRECTORY = "modules"


@dataclass
class HostRepository:
    """
    A git repository that vendors modules under ``modules/``.

    Example:
        host = HostRepository.from_config(".", config)
        host.require_initialized()
        manifest = host.load_manifest()
    """
    root: Path
    modules_directory: str = DEFAULT_MODULES_DIRECTORY
    manifest_file: str = MANIFEST_FILENAME

    def __post_init__(self):
        self.root = Path(self.root).expanduser().absolute()

    @classmethod
    def from_config(cls, root: Union[str, Path], config: Optional[Dict[str, Any]] = None) -> 'HostRepository':
        general = (config or {}).get('general', {})
        return cls(
            root=Path(root),
            modules_directory=general.get('modules_directory') or DEFAULT_MODULES_DIRECTORY,
            manifest_file=general.get('manifest_file') or MANIFEST_FILENAME,
        )

    @property
    def manifest_path(self) -> Path:
        return self.root / self.manifest_file

    @property
    def modules_path(self) -> Path:
        return self.root / self.modules_directory

    def module_path(self, name: str) -> Path:
        return self.modules_path / name

    def prefix(self, name: str) -> str:
        """Subtree prefix for a module, always '/'-separated."""
        return f"{self.modules_directory}/{name}"

    def require_repository(self) -> None:
        """Check the host path exists, is a directory, and is a git working copy."""
        if not self.root.is_dir():
            raise PathNotFound(self.root)
        if not (self.root / ".git").exists():
            raise NotAVersionControlRepository(self.root)

    def require_initialized(self) -> None:
        """require_repository() plus the manifest file must exist."""
        self.require_repository()
        if not self.manifest_path.is_file():
            raise NotInitialized(self.manifest_path)

    def is_initialized(self) -> bool:
        return self.manifest_path.is_file()

    def load_manifest(self) -> ModuleManifest:
        return manifest_store.load(self.manifest_path)

    def save_manifest(self, manifest: ModuleManifest) -> None:
        manifest_store.save(manifest, self.manifest_path)
