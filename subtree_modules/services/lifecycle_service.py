"""
Lifecycle service for subtree-modules.

Adds, updates and removes vendored modules. Each verb validates its
preconditions, drives ``git subtree``, rewrites the manifest, and commits
with a conventional message:

    feat(modules): add <name> at <ref>
    feat(modules): update <name> from <old> to <new>
    feat(modules): update <name> to latest at <ref>
    feat(modules): remove <name>

Failures after git has started touching the index trigger a best-effort
unstage. Working tree changes already made by git are not rolled back.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import load_config
from ..domain.module import DEFAULT_REF, ModuleEntry, ModuleInfo, is_valid_module_name
from ..domain.operation import ModuleChangeResult, OperationStatus, OperationSummary
from ..exit_codes import (
    ExternalToolError,
    InvalidModuleName,
    ObjectNotFound,
    PathNotFound,
    ResourceExists,
    SubtreeModulesError,
)
from ..infra.git_client import GitClient
from .host import HostRepository

logger = logging.getLogger(__name__)

NOTHING_TO_COMMIT = ("nothing to commit", "nothing added to commit", "no changes added to commit")
UP_TO_DATE = ("already up to date", "already up-to-date")


def add_message(name: str, ref: str) -> str:
    return f"feat(modules): add {name} at {ref}"


def update_message(name: str, old_ref: str, new_ref: str) -> str:
    if old_ref != new_ref:
        return f"feat(modules): update {name} from {old_ref} to {new_ref}"
    return f"feat(modules): update {name} to latest at {new_ref}"


def remove_message(name: str) -> str:
    return f"feat(modules): remove {name}"


class LifecycleService:
    """
    Service for adding, updating and removing vendored modules.

    Example:
        service = LifecycleService(HostRepository("."))
        service.add("Pester", "https://github.com/pester/Pester.git", ref="main")
        summary = service.update_all()
        print(f"Updated {summary.successful} modules")
    """

    def __init__(
        self,
        host: HostRepository,
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None
    ):
        """
        Initialize LifecycleService.

        Args:
            host: Host repository layout
            config: Configuration dict (loads default if None)
            git_client: GitClient instance (creates one from config if None)
        """
        self.host = host
        self.config = config or load_config()
        self.git = git_client or GitClient.from_config(self.config)
        self.default_ref = self.config.get('general', {}).get('default_ref') or DEFAULT_REF

    def _unstage(self) -> None:
        self.git.reset_staged(cwd=self.host.root)

    def _compensate(self, actions: List[Tuple[str, Callable[[], Any]]]) -> None:
        """Run compensating actions in reverse order, logging (not raising) their failures."""
        for label, action in reversed(actions):
            try:
                action()
                logger.info(f"Cleanup: {label}")
            except SubtreeModulesError as e:
                logger.warning(f"Cleanup step '{label}' failed: {e}")

    def _commit_manifest(self, message: str) -> bool:
        """
        Stage the manifest and commit.

        Returns:
            True if a commit was created, False if git had nothing to commit
        """
        self.git.stage(self.host.manifest_file, cwd=self.host.root)
        try:
            self.git.commit(message, cwd=self.host.root)
        except ExternalToolError as e:
            output = '\n'.join(e.output).lower()
            if any(marker in output for marker in NOTHING_TO_COMMIT):
                logger.info("Nothing to commit")
                return False
            raise
        return True

    def list_modules(self, name_pattern: str = "*") -> List[ModuleInfo]:
        """Tracked modules whose names match a glob, in manifest order."""
        if not self.host.root.is_dir():
            raise PathNotFound(self.host.root)
        manifest = self.host.load_manifest()
        modules = []
        for name in manifest.match(name_pattern):
            entry = manifest.get(name)
            modules.append(ModuleInfo(
                name=name,
                repository=entry.repository,
                ref=entry.ref,
                path=self.host.prefix(name),
                present=self.host.module_path(name).is_dir(),
            ))
        return modules

    def add(
        self,
        name: str,
        repository: str,
        ref: Optional[str] = None,
        force: bool = False,
        dry_run: bool = False
    ) -> ModuleChangeResult:
        """
        Vendor a new module with ``git subtree add --squash``.

        Args:
            name: Module name (directory under modules/)
            repository: Upstream repository URL
            ref: Branch, tag or commit (default from config, normally "main")
            force: Overwrite an existing manifest entry
            dry_run: Validate only; run no git command and write nothing

        Raises:
            PathNotFound, NotAVersionControlRepository, NotInitialized,
            InvalidModuleName, ResourceExists, ExternalToolError, ManifestWriteError
        """
        self.host.require_initialized()
        if not is_valid_module_name(name):
            raise InvalidModuleName(name)

        manifest = self.host.load_manifest()
        if name in manifest and not force:
            raise ResourceExists(f"Module '{name}' is already tracked in {self.host.manifest_file} (use --force to overwrite)")

        module_path = self.host.module_path(name)
        if module_path.exists():
            raise ResourceExists(f"Module directory already exists: {module_path}")

        ref = ref or self.default_ref
        prefix = self.host.prefix(name)
        message = add_message(name, ref)

        if dry_run:
            logger.info(f"[Dry Run] Would add {repository}@{ref} at {prefix}")
            return ModuleChangeResult(
                module_name=name,
                status=OperationStatus.DRY_RUN,
                action="would_add",
                prefix=prefix,
                repository=repository,
                new_ref=ref,
                commit_message=message,
            )

        compensations = [("unstage changes", self._unstage)]
        try:
            logger.info(f"Adding {name} from {repository} at {ref}")
            self.git.subtree_add(prefix, repository, ref, cwd=self.host.root)

            manifest.set(name, ModuleEntry(repository=repository, ref=ref))
            self.host.save_manifest(manifest)
            self._commit_manifest(message)
        except Exception:
            self._compensate(compensations)
            raise

        return ModuleChangeResult(
            module_name=name,
            status=OperationStatus.SUCCESS,
            action="added",
            prefix=prefix,
            repository=repository,
            new_ref=ref,
            commit_message=message,
        )

    def update(
        self,
        name: str,
        ref: Optional[str] = None,
        dry_run: bool = False
    ) -> ModuleChangeResult:
        """
        Pull upstream changes for one module with ``git subtree pull --squash``.

        When ``ref`` differs from the tracked ref, the manifest is re-pointed
        to it. A module whose directory is missing on disk is skipped.

        Raises:
            ObjectNotFound: If the module is not tracked
            ExternalToolError: If the pull or commit fails
        """
        self.host.require_initialized()
        manifest = self.host.load_manifest()
        entry = manifest.get(name)
        if entry is None:
            raise ObjectNotFound(f"Module '{name}' is not tracked in {self.host.manifest_file}")

        prefix = self.host.prefix(name)
        old_ref = entry.ref
        new_ref = ref or old_ref
        message = update_message(name, old_ref, new_ref)

        if not self.host.module_path(name).is_dir():
            logger.warning(f"Skipping {name}: directory {prefix} is missing")
            return ModuleChangeResult(
                module_name=name,
                status=OperationStatus.SKIPPED,
                action="skipped",
                message=f"directory {prefix} is missing",
                prefix=prefix,
                repository=entry.repository,
                old_ref=old_ref,
                new_ref=new_ref,
                changed=False,
            )

        if dry_run:
            logger.info(f"[Dry Run] Would pull {entry.repository}@{new_ref} into {prefix}")
            return ModuleChangeResult(
                module_name=name,
                status=OperationStatus.DRY_RUN,
                action="would_update",
                prefix=prefix,
                repository=entry.repository,
                old_ref=old_ref,
                new_ref=new_ref,
                commit_message=message,
            )

        compensations = [("unstage changes", self._unstage)]
        try:
            logger.info(f"Updating {name} from {entry.repository} at {new_ref}")
            output = self.git.subtree_pull(prefix, entry.repository, new_ref, cwd=self.host.root)
            pulled = not any(marker in line.lower() for line in output for marker in UP_TO_DATE)

            if new_ref != old_ref:
                manifest.set(name, ModuleEntry(repository=entry.repository, ref=new_ref))
                self.host.save_manifest(manifest)
            committed = self._commit_manifest(message)
        except Exception:
            self._compensate(compensations)
            raise

        return ModuleChangeResult(
            module_name=name,
            status=OperationStatus.SUCCESS,
            action="updated",
            prefix=prefix,
            repository=entry.repository,
            old_ref=old_ref,
            new_ref=new_ref,
            commit_message=message,
            changed=pulled or committed,
        )

    def update_all(self, ref: Optional[str] = None, dry_run: bool = False) -> OperationSummary:
        """
        Update every tracked module; one module's failure does not stop the rest.

        Returns:
            OperationSummary with one detail per module
        """
        self.host.require_initialized()
        summary = OperationSummary(operation="update", dry_run=dry_run)

        for name in self.host.load_manifest().names():
            try:
                detail = self.update(name, ref=ref, dry_run=dry_run)
            except Exception as e:
                logger.error(f"Failed to update {name}: {e}")
                detail = ModuleChangeResult(
                    module_name=name,
                    status=OperationStatus.FAILED,
                    action="update_failed",
                    error=str(e),
                    prefix=self.host.prefix(name),
                    changed=False,
                    metadata={'code': getattr(e, 'code', type(e).__name__)},
                )
            summary.add_detail(detail)

        return summary

    def remove(self, name: str, dry_run: bool = False) -> ModuleChangeResult:
        """
        Stop vendoring a module: ``git rm -rf`` its directory and drop its entry.

        A missing directory is tolerated (configuration-only cleanup).

        Raises:
            ObjectNotFound: If the module is not tracked
        """
        self.host.require_initialized()
        manifest = self.host.load_manifest()
        entry = manifest.get(name)
        if entry is None:
            raise ObjectNotFound(f"Module '{name}' is not tracked in {self.host.manifest_file}")

        prefix = self.host.prefix(name)
        message = remove_message(name)
        directory_present = self.host.module_path(name).exists()

        if dry_run:
            logger.info(f"[Dry Run] Would remove {prefix}")
            return ModuleChangeResult(
                module_name=name,
                status=OperationStatus.DRY_RUN,
                action="would_remove",
                prefix=prefix,
                repository=entry.repository,
                old_ref=entry.ref,
                commit_message=message,
            )

        compensations = [("unstage changes", self._unstage)]
        try:
            if directory_present:
                logger.info(f"Removing {prefix}")
                self.git.remove_path(prefix, cwd=self.host.root)
            else:
                logger.warning(f"Directory {prefix} does not exist; removing {name} from the manifest only")

            manifest.remove(name)
            self.host.save_manifest(manifest)
            self._commit_manifest(message)
        except Exception:
            self._compensate(compensations)
            raise

        return ModuleChangeResult(
            module_name=name,
            status=OperationStatus.SUCCESS,
            action="removed",
            message=None if directory_present else f"directory {prefix} was already missing",
            prefix=prefix,
            repository=entry.repository,
            old_ref=entry.ref,
            commit_message=message,
        )
