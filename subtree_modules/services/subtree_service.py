"""
Subtree metadata reader for subtree-modules.

Recovers which upstream commit is embedded at a module prefix by reading
the markers that ``git subtree --squash`` writes into commit messages:

    Squashed 'modules/Pester/' content from commit 1a2b3c4

    git-subtree-dir: modules/Pester
    git-subtree-split: 1a2b3c4d5e6f...

Lookups never raise: a missing or malformed record, or a git failure,
means "unknown provenance".
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..domain.status import SubtreeRecord
from ..exit_codes import ExternalToolError, PathNotFound, ToolNotFound
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)

DIR_MARKER = "git-subtree-dir:"
SPLIT_MARKER = "git-subtree-split:"
COMMIT_ID_RE = re.compile(r'^[0-9a-fA-F]{40}$')


def parse_log_output(lines: List[str], prefix: str) -> Optional[SubtreeRecord]:
    """
    Parse ``git log --format=%H|%aI|%B -1`` output into a SubtreeRecord.

    Args:
        lines: Output lines of the log command
        prefix: Expected subtree prefix, e.g. "modules/Pester"

    Returns:
        SubtreeRecord, or None if either marker is missing or malformed
    """
    text_lines = list(lines)
    while text_lines and not text_lines[0].strip():
        text_lines.pop(0)
    if not text_lines:
        return None

    header = text_lines[0].split('|', 2)
    if len(header) < 2:
        return None
    local_commit = header[0].strip()
    date_str = header[1].strip()
    body_lines = ([header[2]] if len(header) > 2 else []) + text_lines[1:]

    subtree_dir = None
    split = None
    for line in body_lines:
        stripped = line.strip()
        if stripped.startswith(DIR_MARKER) and subtree_dir is None:
            subtree_dir = stripped[len(DIR_MARKER):].strip()
        elif stripped.startswith(SPLIT_MARKER) and split is None:
            split = stripped[len(SPLIT_MARKER):].strip()

    if subtree_dir is None or split is None:
        return None
    if subtree_dir.rstrip('/') != prefix:
        return None
    if not COMMIT_ID_RE.match(split):
        return None

    try:
        commit_date = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
    except ValueError:
        commit_date = None

    return SubtreeRecord(
        upstream_commit=split.lower(),
        local_commit=local_commit,
        local_commit_date=commit_date,
        prefix=prefix,
    )


class SubtreeMetadataReader:
    """
    Finds the most recent subtree squash record for a module.

    Example:
        reader = SubtreeMetadataReader()
        record = reader.find_record("Pester", cwd="/path/to/host")
        if record:
            print(record.upstream_commit)
    """

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def find_record(
        self,
        module_name: str,
        modules_base_path: str = "modules",
        cwd: Optional[Union[str, Path]] = None
    ) -> Optional[SubtreeRecord]:
        prefix = f"{modules_base_path.rstrip('/')}/{module_name}"

        try:
            lines = self.git.log_subtree(prefix, cwd=cwd)
        except (ExternalToolError, ToolNotFound, PathNotFound) as e:
            logger.warning(f"Could not read subtree history for {prefix}: {e}")
            return None

        if not any(line.strip() for line in lines):
            logger.debug(f"No subtree history found for {prefix}")
            return None

        record = parse_log_output(lines, prefix)
        if record is None:
            logger.debug(f"Latest commit for {prefix} lacks valid subtree markers")
        return record
