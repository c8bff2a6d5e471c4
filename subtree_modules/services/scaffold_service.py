"""
Scaffolding service for subtree-modules.

Prepares a host repository for vendored modules: the modules directory,
an empty manifest, a README, .gitignore entries, and a CI workflow that
reports available updates. Used by the `subtree-modules init` command.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import load_config
from ..domain.module import ModuleManifest
from ..domain.operation import FileGenerationResult, OperationStatus
from ..exit_codes import ResourceExists
from .host import HostRepository
from .profile_service import inject_profile

logger = logging.getLogger(__name__)


README_TEMPLATE = """# Vendored modules

Modules in `{modules_directory}/` are embedded with `git subtree --squash`
and tracked in `{manifest_file}`.

```
subtree-modules add <Name> <repository-url> --ref <branch|tag|commit>
subtree-modules status
subtree-modules update <Name>
subtree-modules update --all
subtree-modules remove <Name>
subtree-modules check-dependencies
```

Do not edit files under `{modules_directory}/` directly; changes are
overwritten by the next update.
"""

GITIGNORE_LINES = [
    "# subtree-modules",
    "*.tmp",
    ".subtree-modules-cache/",
]

WORKFLOW_TEMPLATE = """name: Check module updates

on:
  schedule:
    - cron: '0 6 * * 1'
  workflow_dispatch:

jobs:
  status:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
        with:
          fetch-depth: 0
      - uses: actions/setup-python@v5
        with:
          python-version: '3.12'
      - run: pip install subtree-modules
      - run: subtree-modules status --updates-only --no-table
      - run: subtree-modules check-dependencies --no-table
"""

WORKFLOW_PATH = Path(".github") / "workflows" / "check-module-updates.yml"


class ScaffoldService:
    """
    Service for initializing a host repository.

    Example:
        service = ScaffoldService(HostRepository("."))
        for result in service.init(profile_path="~/.config/powershell/profile.ps1"):
            print(result.action, result.file_path)
    """

    def __init__(self, host: HostRepository, config: Optional[Dict[str, Any]] = None):
        self.host = host
        self.config = config or load_config()

    def _result(self, path: Path, file_type: str, action: str, status: OperationStatus,
                overwritten: bool = False) -> FileGenerationResult:
        return FileGenerationResult(
            module_name=self.host.root.name,
            status=status,
            action=action,
            file_path=str(path),
            file_type=file_type,
            overwritten=overwritten,
        )

    def _write_if_absent(self, path: Path, content: str, file_type: str,
                         overwrite: bool, dry_run: bool) -> FileGenerationResult:
        exists = path.exists()
        if exists and not overwrite:
            return self._result(path, file_type, "exists", OperationStatus.SKIPPED)
        if dry_run:
            return self._result(path, file_type, "would_create", OperationStatus.DRY_RUN, overwritten=exists)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
        return self._result(path, file_type, "created", OperationStatus.SUCCESS, overwritten=exists)

    def _ensure_gitignore(self, dry_run: bool) -> FileGenerationResult:
        path = self.host.root / ".gitignore"
        existing = path.read_text(encoding='utf-8').splitlines() if path.exists() else []
        missing = [line for line in GITIGNORE_LINES if line not in existing]
        if not missing:
            return self._result(path, "gitignore", "exists", OperationStatus.SKIPPED)
        if dry_run:
            return self._result(path, "gitignore", "would_update", OperationStatus.DRY_RUN)

        lines = list(existing)
        if lines and lines[-1].strip():
            lines.append('')
        lines.extend(missing)
        path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
        return self._result(path, "gitignore", "updated" if existing else "created", OperationStatus.SUCCESS)

    def init(
        self,
        force: bool = False,
        profile_path: Optional[str] = None,
        dry_run: bool = False
    ) -> List[FileGenerationResult]:
        """
        Scaffold the host repository. Nothing is committed.

        Args:
            force: Re-run on an initialized repository (existing modules are kept)
            profile_path: Profile file to inject the modules block into (None = skip)
            dry_run: Report without writing

        Raises:
            PathNotFound, NotAVersionControlRepository
            ResourceExists: If already initialized and force is not set
        """
        self.host.require_repository()
        if self.host.is_initialized() and not force:
            raise ResourceExists(
                f"Repository already initialized: {self.host.manifest_path} exists (use --force to re-run)"
            )

        results = []

        keep = self.host.modules_path / ".gitkeep"
        results.append(self._write_if_absent(keep, "", "modules", overwrite=False, dry_run=dry_run))

        # An existing manifest keeps its modules; it is only normalized.
        manifest_exists = self.host.manifest_path.exists()
        manifest = self.host.load_manifest() if manifest_exists else ModuleManifest()
        if dry_run:
            results.append(self._result(self.host.manifest_path, "manifest", "would_create", OperationStatus.DRY_RUN,
                                        overwritten=manifest_exists))
        else:
            self.host.save_manifest(manifest)
            results.append(self._result(self.host.manifest_path, "manifest",
                                        "rewritten" if manifest_exists else "created",
                                        OperationStatus.SUCCESS, overwritten=manifest_exists))

        readme = README_TEMPLATE.format(
            modules_directory=self.host.modules_directory,
            manifest_file=self.host.manifest_file,
        )
        results.append(self._write_if_absent(self.host.modules_path / "README.md", readme, "readme",
                                             overwrite=False, dry_run=dry_run))
        results.append(self._ensure_gitignore(dry_run))
        results.append(self._write_if_absent(self.host.root / WORKFLOW_PATH, WORKFLOW_TEMPLATE, "workflow",
                                             overwrite=force, dry_run=dry_run))

        if profile_path:
            env_name = self.config.get('dependencies', {}).get('search_path_env') or 'PSModulePath'
            results.append(inject_profile(profile_path, self.host.modules_path, force=force,
                                          dry_run=dry_run, env_name=env_name))

        for result in results:
            logger.debug(f"init: {result.action} {result.file_path}")
        return results
