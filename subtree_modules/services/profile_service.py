"""
Profile injection for subtree-modules.

Appends a marker-delimited block to a shell profile so new sessions find
the vendored modules first on the module search path:

    # PSSubtreeModules: /abs/path/to/modules
    $env:PSModulePath = '/abs/path/to/modules' + [System.IO.Path]::PathSeparator + $env:PSModulePath
    # End PSSubtreeModules
"""

import logging
from pathlib import Path
from typing import List, Union

from ..domain.operation import FileGenerationResult, OperationStatus

logger = logging.getLogger(__name__)

START_MARKER = "# PSSubtreeModules: {path}"
END_MARKER = "# End PSSubtreeModules"
DEFAULT_SEARCH_PATH_ENV = "PSModulePath"


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def profile_block(modules_path: Union[str, Path], env_name: str = DEFAULT_SEARCH_PATH_ENV) -> List[str]:
    """Lines of the profile block for an absolute modules path."""
    path = str(Path(modules_path).expanduser().absolute())
    return [
        START_MARKER.format(path=path),
        f"$env:{env_name} = {_quote(path)} + [System.IO.Path]::PathSeparator + $env:{env_name}",
        END_MARKER,
    ]


def remove_block(lines: List[str], start_marker: str) -> List[str]:
    """
    Drop every block opened by exactly start_marker, through its end marker.

    A start marker with no end marker after it only takes the generated
    ``$env:`` line below it; the rest of the profile is kept.
    """
    result = []
    i = 0
    while i < len(lines):
        if lines[i].rstrip() != start_marker:
            result.append(lines[i])
            i += 1
            continue

        end = next((j for j in range(i + 1, len(lines)) if lines[j].rstrip() == END_MARKER), None)
        if end is not None:
            i = end + 1
        elif i + 1 < len(lines) and lines[i + 1].lstrip().startswith('$env:'):
            i += 2
        else:
            i += 1
    return result


def inject_profile(
    profile_path: Union[str, Path],
    modules_path: Union[str, Path],
    force: bool = False,
    dry_run: bool = False,
    env_name: str = DEFAULT_SEARCH_PATH_ENV
) -> FileGenerationResult:
    """
    Add the modules block to a profile file, idempotently.

    Without force an existing block (same start marker) is left alone; with
    force it is removed and a fresh block appended.

    Args:
        profile_path: Profile file to edit (created if missing)
        modules_path: Vendored modules directory
        force: Replace an existing block
        dry_run: Report what would happen without writing
        env_name: Module search path environment variable

    Returns:
        FileGenerationResult describing the outcome
    """
    profile_path = Path(profile_path).expanduser()
    block = profile_block(modules_path, env_name)
    start_marker = block[0]

    existing = profile_path.read_text(encoding='utf-8') if profile_path.exists() else ''
    lines = existing.splitlines()
    present = any(line.rstrip() == start_marker for line in lines)

    if present and not force:
        logger.info(f"Profile {profile_path} already loads {modules_path}")
        return FileGenerationResult(
            module_name="profile",
            status=OperationStatus.SKIPPED,
            action="already_present",
            file_path=str(profile_path),
            file_type="profile",
        )

    if dry_run:
        return FileGenerationResult(
            module_name="profile",
            status=OperationStatus.DRY_RUN,
            action="would_replace" if present else "would_append",
            file_path=str(profile_path),
            file_type="profile",
            overwritten=present,
        )

    if present:
        lines = remove_block(lines, start_marker)
    while lines and not lines[-1].strip():
        lines.pop()
    if lines:
        lines.append('')
    lines.extend(block)

    profile_path.parent.mkdir(parents=True, exist_ok=True)
    profile_path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
    logger.info(f"{'Replaced' if present else 'Added'} modules block in {profile_path}")

    return FileGenerationResult(
        module_name="profile",
        status=OperationStatus.SUCCESS,
        action="replaced" if present else "appended",
        file_path=str(profile_path),
        file_type="profile",
        overwritten=present,
    )

