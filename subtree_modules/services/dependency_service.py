"""
Dependency validation service for subtree-modules.

Reads each vendored module's own data-file manifest (``<name>.psd1``) and
checks that every module it requires is present, vendored first and then
on the module search path, and within any declared version bounds.

This is a presence check, not a resolver: nothing is installed or loaded.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from packaging.version import InvalidVersion, Version

from ..config import load_config
from ..domain.dependency import DependencyCheck, DependencyReport, DependencySpec
from ..domain.module import ModuleManifest
from ..infra.psd1 import DataFileParseError, load_data_file
from .host import HostRepository

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_EXTENSION = ".psd1"
DEFAULT_SEARCH_PATH_ENV = "PSModulePath"

# Nested entries that are files inside the module rather than other modules
NESTED_FILE_EXTENSIONS = ('.ps1', '.psm1', '.dll', '.cdxml', '.xaml')


@dataclass
class DependencyCheckOptions:
    """
    Everything the validator needs, passed explicitly.

    Attributes:
        search_paths: Directories searched after the vendored modules directory
        manifest_extension: Module manifest extension, including the dot
    """
    search_paths: List[Path] = field(default_factory=list)
    manifest_extension: str = DEFAULT_MANIFEST_EXTENSION

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        extra_paths: Optional[Iterable[str]] = None,
        environ: Optional[Dict[str, str]] = None
    ) -> 'DependencyCheckOptions':
        dep_config = config.get('dependencies', {})
        env_name = dep_config.get('search_path_env') or DEFAULT_SEARCH_PATH_ENV
        environ = os.environ if environ is None else environ
        paths = [Path(p).expanduser() for p in (extra_paths or [])]
        paths.extend(split_search_path(environ.get(env_name, '')))
        extension = dep_config.get('manifest_extension') or DEFAULT_MANIFEST_EXTENSION
        if not extension.startswith('.'):
            extension = '.' + extension
        return cls(search_paths=paths, manifest_extension=extension)


def split_search_path(value: str) -> List[Path]:
    """Split an os.pathsep-delimited search path, dropping empty entries."""
    return [Path(part).expanduser() for part in value.split(os.pathsep) if part.strip()]


def get_key(data: Dict[str, Any], key: str) -> Any:
    """Case-insensitive dictionary lookup (data-file keys are case-insensitive)."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for k, v in data.items():
        if str(k).lower() == lowered:
            return v
    return None


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _version_str(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)


def normalize_spec(entry: Any) -> Optional[DependencySpec]:
    """
    Turn a declared dependency into a DependencySpec.

    Accepts a bare name ('Pester') or a hashtable with ModuleName plus
    ModuleVersion (minimum), RequiredVersion (exact), MaximumVersion.
    """
    if isinstance(entry, str):
        name = entry.strip()
        return DependencySpec.bare(name) if name else None
    if isinstance(entry, dict):
        name = get_key(entry, 'ModuleName')
        if not name:
            return None
        return DependencySpec.versioned(
            name=str(name),
            exact_version=_version_str(get_key(entry, 'RequiredVersion')),
            min_version=_version_str(get_key(entry, 'ModuleVersion')),
            max_version=_version_str(get_key(entry, 'MaximumVersion')),
        )
    return None


def is_intra_module_reference(name: str) -> bool:
    """Nested entries naming a script/binary file or a relative path are not dependencies."""
    lowered = name.lower()
    return (
        lowered.endswith(NESTED_FILE_EXTENSIONS)
        or '/' in name
        or '\\' in name
        or name.startswith('.')
    )


def satisfies(version: Optional[str], spec: DependencySpec) -> bool:
    """Check a found version against a spec's bounds (exact, inclusive min/max)."""
    if not spec.has_bounds:
        return True
    if version is None:
        return False
    try:
        found = Version(version)
        if spec.exact_version and found != Version(spec.exact_version):
            return False
        if spec.min_version and found < Version(spec.min_version):
            return False
        if spec.max_version and found > Version(spec.max_version):
            return False
    except InvalidVersion as e:
        logger.debug(f"Cannot compare versions for {spec.name}: {e}")
        return False
    return True


class DependencyService:
    """
    Validates the declared dependencies of vendored modules.

    Example:
        service = DependencyService(host)
        for report in service.validate(manifest, "Pester*"):
            if not report.all_dependencies_met:
                print(report.name, report.missing_dependencies)
    """

    def __init__(
        self,
        host: HostRepository,
        config: Optional[Dict[str, Any]] = None,
        options: Optional[DependencyCheckOptions] = None
    ):
        self.host = host
        self.config = config or load_config()
        self.options = options or DependencyCheckOptions.from_config(self.config)

    @property
    def extension(self) -> str:
        return self.options.manifest_extension

    def search_roots(self) -> List[Path]:
        """Vendored modules directory first, then the search path."""
        return [self.host.modules_path] + list(self.options.search_paths)

    def locate_manifest(self, name: str) -> Optional[Path]:
        """Find ``modules/<name>/<name><ext>``, else a lone ``*<ext>`` in that directory."""
        module_dir = self.host.module_path(name)
        preferred = module_dir / f"{name}{self.extension}"
        if preferred.is_file():
            return preferred
        if not module_dir.is_dir():
            return None

        candidates = sorted(
            p for p in module_dir.iterdir()
            if p.is_file() and p.suffix.lower() == self.extension.lower()
        )
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(f"{name}: several {self.extension} files found, using {candidates[0].name}")
        return candidates[0]

    def read_version(self, manifest_path: Path) -> Optional[str]:
        try:
            data = load_data_file(manifest_path)
        except (DataFileParseError, OSError, UnicodeError) as e:
            logger.debug(f"Cannot read version from {manifest_path}: {e}")
            return None
        return _version_str(get_key(data, 'ModuleVersion'))

    def _candidates(self, name: str) -> Iterable[Path]:
        """Manifests for a module name, in search order, including version subfolders."""
        filename = f"{name}{self.extension}"
        for root in self.search_roots():
            module_dir = root / name
            if not module_dir.is_dir():
                continue
            direct = module_dir / filename
            if direct.is_file():
                yield direct
            for child in sorted(module_dir.iterdir()):
                nested = child / filename
                if child.is_dir() and nested.is_file():
                    yield nested

    def find_dependency(self, spec: DependencySpec) -> DependencyCheck:
        """Look a dependency up, returning the first candidate within bounds."""
        first: Optional[Tuple[Path, Optional[str]]] = None
        for candidate in self._candidates(spec.name):
            version = self.read_version(candidate) if spec.has_bounds else None
            if first is None:
                first = (candidate, version)
            if satisfies(version, spec):
                return DependencyCheck(
                    name=spec.name,
                    found=True,
                    version_bound=spec.describe_bound(),
                    found_version=version,
                    found_path=str(candidate),
                )

        return DependencyCheck(
            name=spec.name,
            found=False,
            version_bound=spec.describe_bound(),
            found_version=first[1] if first else None,
            found_path=str(first[0]) if first else None,
        )

    def _check_list(self, entries: List[Any], nested: bool = False) -> List[DependencyCheck]:
        checks = []
        for entry in entries:
            spec = normalize_spec(entry)
            if spec is None:
                logger.debug(f"Ignoring unrecognized dependency entry: {entry!r}")
                continue
            if nested and is_intra_module_reference(spec.name):
                continue
            checks.append(self.find_dependency(spec))
        return checks

    def check_module(self, name: str) -> DependencyReport:
        """Dependency report for a single vendored module."""
        report = DependencyReport(name=name)
        manifest_path = self.locate_manifest(name)
        if manifest_path is None:
            logger.warning(f"{name}: no {self.extension} manifest found")
            report.all_dependencies_met = False
            return report

        report.manifest_path = str(manifest_path)
        try:
            data = load_data_file(manifest_path)
        except (DataFileParseError, OSError, UnicodeError) as e:
            logger.warning(f"{name}: cannot parse {manifest_path.name}: {e}")
            report.error = str(e)
            return report.finalize()

        external = as_list(get_key(data, 'ExternalModuleDependencies'))
        private_data = get_key(data, 'PrivateData')
        if isinstance(private_data, dict):
            ps_data = get_key(private_data, 'PSData')
            if isinstance(ps_data, dict):
                external.extend(as_list(get_key(ps_data, 'ExternalModuleDependencies')))

        report.required_modules = self._check_list(as_list(get_key(data, 'RequiredModules')))
        report.external_module_dependencies = self._check_list(external)
        report.nested_modules = self._check_list(as_list(get_key(data, 'NestedModules')), nested=True)
        return report.finalize()

    def validate(self, manifest: ModuleManifest, name_pattern: str = "*") -> List[DependencyReport]:
        """Dependency reports for every tracked module matching a glob, in manifest order."""
        return [self.check_module(name) for name in manifest.match(name_pattern)]
