"""
Git client infrastructure for subtree-modules.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

The working directory is passed straight to the child process, so the
current process directory is never changed and concurrent calls do not
interfere with each other.
"""

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union
import logging

from ..exit_codes import ExternalToolError, PathNotFound, ToolNotFound

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        lines = client.run(["rev-parse", "HEAD"], cwd="/path/to/repo")
        print(lines[0])
    """

    def __init__(self, executable: str = "git", timeout: Optional[float] = None):
        """
        Initialize GitClient.

        Args:
            executable: git executable name or path
            timeout: Command timeout in seconds (None = no timeout)
        """
        self.executable = executable
        self.timeout = timeout or None

    @classmethod
    def from_config(cls, config: dict) -> 'GitClient':
        git_config = config.get('git', {})
        return cls(
            executable=git_config.get('executable') or 'git',
            timeout=git_config.get('timeout_seconds') or None,
        )

    def _resolve_executable(self) -> str:
        resolved = shutil.which(self.executable)
        if not resolved:
            raise ToolNotFound(self.executable)
        return resolved

    def run(self, arguments: Sequence[str], cwd: Optional[PathLike] = None) -> List[str]:
        """
        Run git with the given arguments.

        Args:
            arguments: git arguments, e.g. ['log', '-1']
            cwd: Working directory (must be an existing directory)

        Returns:
            Combined stdout and stderr as a list of lines

        Raises:
            ValueError: If no arguments are given
            PathNotFound: If cwd is not an existing directory
            ToolNotFound: If the git executable cannot be found
            ExternalToolError: If git exits with a non-zero status
        """
        arguments = [str(arg) for arg in arguments]
        if not arguments:
            raise ValueError("git arguments must not be empty")
        if cwd is not None and not Path(cwd).is_dir():
            raise PathNotFound(cwd)

        executable = self._resolve_executable()
        logger.debug(f"Running git {' '.join(arguments)} in '{cwd or '.'}'")

        try:
            result = subprocess.run(
                [executable] + arguments,
                cwd=str(cwd) if cwd is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"git command timed out: git {' '.join(arguments)}")
            output = e.output or ''
            if isinstance(output, bytes):
                output = output.decode('utf-8', errors='replace')
            raise ExternalToolError(arguments, -1, output.splitlines()) from e

        lines = (result.stdout or '').splitlines()
        if result.returncode != 0:
            logger.debug(f"git exited with {result.returncode}: {lines[-1] if lines else ''}")
            raise ExternalToolError(arguments, result.returncode, lines)

        return lines

    def subtree_add(self, prefix: str, repository: str, ref: str, cwd: Optional[PathLike] = None) -> List[str]:
        """Squash-add an upstream repository at prefix."""
        return self.run(['subtree', 'add', f'--prefix={prefix}', repository, ref, '--squash'], cwd=cwd)

    def subtree_pull(self, prefix: str, repository: str, ref: str, cwd: Optional[PathLike] = None) -> List[str]:
        """Squash-pull new upstream commits into prefix."""
        return self.run(['subtree', 'pull', f'--prefix={prefix}', repository, ref, '--squash'], cwd=cwd)

    def remove_path(self, path: str, cwd: Optional[PathLike] = None) -> List[str]:
        """Recursively remove a tracked path from the index and working tree."""
        return self.run(['rm', '-rf', path], cwd=cwd)

    def stage(self, path: str, cwd: Optional[PathLike] = None) -> List[str]:
        return self.run(['add', path], cwd=cwd)

    def commit(self, message: str, cwd: Optional[PathLike] = None) -> List[str]:
        return self.run(['commit', '-m', message], cwd=cwd)

    def reset_staged(self, cwd: Optional[PathLike] = None) -> List[str]:
        """Unstage everything (best-effort cleanup after a failed operation)."""
        return self.run(['reset', 'HEAD'], cwd=cwd)

    def log_subtree(self, prefix: str, cwd: Optional[PathLike] = None) -> List[str]:
        """Most recent commit (any ref) whose message names the subtree prefix."""
        return self.run(
            ['log', '--all', '--format=%H|%aI|%B', f'--grep=git-subtree-dir: {prefix}', '-1'],
            cwd=cwd
        )

    def ls_remote_refs(self, repository: str, cwd: Optional[PathLike] = None) -> List[str]:
        """Branches and tags advertised by a remote."""
        return self.run(['ls-remote', '--refs', '--quiet', repository], cwd=cwd)

    def ls_remote_ref(self, repository: str, ref: str, cwd: Optional[PathLike] = None) -> List[str]:
        """Query a remote for exactly one ref."""
        return self.run(['ls-remote', repository, ref], cwd=cwd)
