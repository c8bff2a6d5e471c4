"""
Shared fixtures for subtree-modules tests.
"""

import shutil
from unittest.mock import MagicMock

import pytest

from subtree_modules.config import get_default_config
from subtree_modules.infra import manifest_store
from subtree_modules.infra.git_client import GitClient
from subtree_modules.services.host import HostRepository


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Keep user config files and environment overrides out of every test."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("SUBTREE_MODULES_CONFIG", raising=False)
    monkeypatch.delenv("SUBTREE_MODULES_FORMAT", raising=False)
    return home


@pytest.fixture
def config():
    return get_default_config()


@pytest.fixture
def mock_git():
    """A GitClient double; every helper returns no output by default."""
    git = MagicMock(spec=GitClient)
    for name in ('run', 'subtree_add', 'subtree_pull', 'remove_path', 'stage', 'commit',
                 'reset_staged', 'log_subtree', 'ls_remote_refs', 'ls_remote_ref'):
        getattr(git, name).return_value = []
    return git


@pytest.fixture
def host_dir(tmp_path):
    """A directory that looks like a git working copy (no real git needed)."""
    root = tmp_path / "host"
    (root / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def host(host_dir):
    return HostRepository(host_dir)


@pytest.fixture
def initialized_host(host):
    """A host repository with an empty manifest."""
    manifest_store.save(manifest_store.load(host.manifest_path), host.manifest_path)
    return host
