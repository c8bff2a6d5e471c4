"""
Status service for subtree-modules.

Combines the subtree metadata reader and the upstream ref resolver into a
per-module verdict: Current, UpdateAvailable, or Unknown.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import load_config
from ..domain.module import ModuleEntry, ModuleManifest
from ..domain.status import ModuleStatus, StatusKind
from ..infra.git_client import GitClient
from .host import HostRepository
from .subtree_service import SubtreeMetadataReader
from .upstream_service import UpstreamRefResolver

logger = logging.getLogger(__name__)


@dataclass
class StatusOptions:
    """Options for status checks."""
    name_pattern: str = "*"
    only_updates: bool = False
    parallel: int = 1  # Number of concurrent lookups (1 = sequential)


class StatusService:
    """
    Service for computing module freshness.

    Each module is independent, so lookups can run on a worker pool;
    results always come back in manifest order.

    Example:
        service = StatusService(host)
        for status in service.status_of(manifest, StatusOptions(only_updates=True)):
            print(status.name, status.upstream_commit_short)
    """

    def __init__(
        self,
        host: HostRepository,
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None
    ):
        """
        Initialize StatusService.

        Args:
            host: Host repository layout
            config: Configuration dict (loads default if None)
            git_client: GitClient instance (creates one from config if None)
        """
        self.host = host
        self.config = config or load_config()
        self.git = git_client or GitClient.from_config(self.config)
        self.reader = SubtreeMetadataReader(self.git)
        self.resolver = UpstreamRefResolver(self.git)

    def check_module(self, name: str, entry: ModuleEntry) -> ModuleStatus:
        """Status of a single module."""
        record = self.reader.find_record(name, self.host.modules_directory, cwd=self.host.root)
        upstream = self.resolver.resolve(entry.repository, entry.ref, cwd=self.host.root)
        status = ModuleStatus.from_lookups(name, entry.ref, entry.repository, record, upstream)
        logger.debug(f"{name}: {status.status.value}")
        return status

    def status_of(
        self,
        manifest: ModuleManifest,
        options: Optional[StatusOptions] = None
    ) -> List[ModuleStatus]:
        """
        Status of every module whose name matches the pattern.

        Args:
            manifest: Module manifest
            options: Filter and parallelism options

        Returns:
            List of ModuleStatus in manifest order
        """
        options = options or StatusOptions()
        names = manifest.match(options.name_pattern)
        entries = [(name, manifest.get(name)) for name in names]

        if options.parallel > 1 and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=options.parallel) as executor:
                results = list(executor.map(lambda item: self.check_module(*item), entries))
        else:
            results = [self.check_module(name, entry) for name, entry in entries]

        if options.only_updates:
            results = [r for r in results if r.status == StatusKind.UPDATE_AVAILABLE]

        return results
