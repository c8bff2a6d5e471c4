"""
Infrastructure layer for subtree-modules.

Contains abstractions for external systems:
- GitClient: git command execution
- manifest_store: YAML manifest persistence
- psd1: passive parser for module data files

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient
from . import manifest_store
from .manifest_store import MANIFEST_FILENAME, MANIFEST_HEADER
from .psd1 import DataFileParseError, load_data_file, parse_data_file

__all__ = [
    'GitClient',
    'manifest_store',
    'MANIFEST_FILENAME',
    'MANIFEST_HEADER',
    'DataFileParseError',
    'load_data_file',
    'parse_data_file',
]
