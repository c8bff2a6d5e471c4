"""
Upstream ref resolver for subtree-modules.

Resolves a branch, tag, or commit name against a remote's ref
advertisement. Network failures resolve to None so batch status checks
survive partial availability.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..domain.status import UpstreamRef
from ..exit_codes import ExternalToolError, PathNotFound, ToolNotFound
from ..infra.git_client import GitClient
from .subtree_service import COMMIT_ID_RE

logger = logging.getLogger(__name__)

HEADS_PREFIX = "refs/heads/"
TAGS_PREFIX = "refs/tags/"


def parse_ls_remote(lines: List[str]) -> List[Tuple[str, str]]:
    """Parse ``<sha>\\t<refname>`` lines into (sha, refname) pairs.

    Output includes stderr, so lines whose first field is not a full commit
    id (e.g. "warning: redirecting to ...") are skipped.
    """
    pairs = []
    for line in lines:
        parts = line.strip().split(None, 1)
        if len(parts) != 2 or not COMMIT_ID_RE.match(parts[0]):
            continue
        pairs.append((parts[0], parts[1].strip()))
    return pairs


def short_ref_name(ref_name: str) -> str:
    """Strip refs/heads/ or refs/tags/ from a full ref name."""
    for prefix in (HEADS_PREFIX, TAGS_PREFIX):
        if ref_name.startswith(prefix):
            return ref_name[len(prefix):]
    return ref_name


def match_ref(pairs: List[Tuple[str, str]], ref: str) -> Optional[Tuple[str, str]]:
    """First advertised ref matching by short name, full name, or heads/tags form."""
    for commit_id, ref_name in pairs:
        if (short_ref_name(ref_name) == ref
                or ref_name == ref
                or ref_name == f"{HEADS_PREFIX}{ref}"
                or ref_name == f"{TAGS_PREFIX}{ref}"):
            return commit_id, ref_name
    return None


class UpstreamRefResolver:
    """
    Resolves refs on remote repositories via ``git ls-remote``.

    Example:
        resolver = UpstreamRefResolver()
        upstream = resolver.resolve("https://github.com/pester/Pester.git", "main")
        if upstream:
            print(upstream.commit_id)
    """

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def resolve(
        self,
        repository_url: str,
        ref: str = "HEAD",
        cwd: Optional[Union[str, Path]] = None
    ) -> Optional[UpstreamRef]:
        ref = ref or "HEAD"

        try:
            pairs = parse_ls_remote(self.git.ls_remote_refs(repository_url, cwd=cwd))
            match = match_ref(pairs, ref)
            if match:
                return UpstreamRef(commit_id=match[0], resolved_ref_name=match[1], repository_url=repository_url)

            # Raw commit ids and HEAD are not in the branches/tags listing
            direct = parse_ls_remote(self.git.ls_remote_ref(repository_url, ref, cwd=cwd))
        except (ExternalToolError, ToolNotFound, PathNotFound) as e:
            logger.warning(f"Could not query {repository_url}: {e}")
            return None

        if not direct:
            logger.warning(f"Ref '{ref}' not found in {repository_url}")
            return None

        commit_id, ref_name = direct[0]
        return UpstreamRef(commit_id=commit_id, resolved_ref_name=ref_name, repository_url=repository_url)
