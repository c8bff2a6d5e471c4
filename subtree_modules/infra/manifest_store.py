"""
Manifest store infrastructure for subtree-modules.

Provides YAML persistence for the module manifest with:
- Atomic writes (write to temp, then rename)
- A fixed leading comment header
- Insertion order preserved across load/save
- Serialized writers (one lock for every save in the process)
- Automatic parent directory creation
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Union
import logging

import yaml

from ..domain.module import ModuleManifest
from ..exit_codes import ManifestParseError, ManifestWriteError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "subtree-modules.yaml"
MANIFEST_HEADER = "# PSSubtreeModules configuration\n"

_save_lock = threading.Lock()


def load(path: Union[str, Path]) -> ModuleManifest:
    """
    Load a module manifest.

    A missing, empty, or whitespace-only file yields an empty manifest.

    Args:
        path: Path to the manifest file

    Returns:
        ModuleManifest

    Raises:
        ManifestParseError: If the content is not a valid manifest
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"No manifest at {path}, using an empty one")
        return ModuleManifest()

    try:
        text = path.read_text(encoding='utf-8')
    except OSError as e:
        raise ManifestParseError(f"Cannot read manifest {path}: {e}") from e

    if not text.strip():
        return ModuleManifest()

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestParseError(f"Invalid YAML in manifest {path}: {e}") from e

    if data is None:
        return ModuleManifest()
    if not isinstance(data, dict):
        raise ManifestParseError(f"Manifest {path} must be a mapping with a 'modules' key")

    modules = data.get('modules')
    if modules is None:
        return ModuleManifest()
    if not isinstance(modules, dict):
        raise ManifestParseError(f"'modules' in {path} must be a mapping of name to entry")

    for name, entry in modules.items():
        if not isinstance(entry, dict):
            raise ManifestParseError(f"Module '{name}' in {path} must be a mapping with 'repo' and 'ref'")
        if not entry.get('repo'):
            raise ManifestParseError(f"Module '{name}' in {path} has no 'repo'")

    return ModuleManifest.from_dict({'modules': modules})


def dumps(manifest: ModuleManifest) -> str:
    """Serialize a manifest, header included."""
    data = manifest.to_dict()
    if not data['modules']:
        body = "modules: {}\n"
    else:
        body = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return MANIFEST_HEADER + body


def save(manifest: ModuleManifest, path: Union[str, Path]) -> None:
    """
    Write a module manifest atomically.

    Args:
        manifest: Manifest to write
        path: Destination path

    Raises:
        ManifestWriteError: On any I/O failure
    """
    path = Path(path)
    content = dumps(manifest)

    with _save_lock:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _write_atomic(path, content)
        except OSError as e:
            raise ManifestWriteError(f"Cannot write manifest {path}: {e}") from e

    logger.debug(f"Saved manifest with {len(manifest)} modules to {path}")


def _write_atomic(path: Path, content: str) -> None:
    """Write content atomically using temp file and rename."""
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)

        # Atomic rename
        os.replace(temp_path, path)

    except Exception:
        # Clean up temp file on error
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise
