"""
Tests for host repository initialization and profile injection.
"""

import pytest

from subtree_modules.domain.module import ModuleEntry
from subtree_modules.domain.operation import OperationStatus
from subtree_modules.exit_codes import NotAVersionControlRepository, PathNotFound, ResourceExists
from subtree_modules.infra.manifest_store import MANIFEST_HEADER
from subtree_modules.services.host import HostRepository
from subtree_modules.services.profile_service import (
    END_MARKER,
    inject_profile,
    profile_block,
    remove_block,
)
from subtree_modules.services.scaffold_service import GITIGNORE_LINES, WORKFLOW_PATH, ScaffoldService


def by_type(results):
    return {r.file_type: r for r in results}


class TestScaffoldService:

    def test_init_fresh_repository(self, host, config):
        results = by_type(ScaffoldService(host, config).init())

        assert host.manifest_path.read_text(encoding='utf-8') == MANIFEST_HEADER + "modules: {}\n"
        assert (host.modules_path / ".gitkeep").is_file()
        assert (host.modules_path / "README.md").read_text(encoding='utf-8').startswith("# Vendored modules")
        assert (host.root / WORKFLOW_PATH).is_file()
        assert (host.root / ".gitignore").read_text(encoding='utf-8').splitlines() == GITIGNORE_LINES
        assert results['manifest'].action == "created"
        assert results['gitignore'].action == "created"
        assert 'profile' not in results

    def test_gitignore_appends_missing_lines_only(self, host, config):
        (host.root / ".gitignore").write_text("__pycache__/\n*.tmp\n", encoding='utf-8')

        results = by_type(ScaffoldService(host, config).init())

        lines = (host.root / ".gitignore").read_text(encoding='utf-8').splitlines()
        assert lines == ["__pycache__/", "*.tmp", "", "# subtree-modules", ".subtree-modules-cache/"]
        assert results['gitignore'].action == "updated"

    def test_already_initialized(self, initialized_host, config):
        with pytest.raises(ResourceExists, match="already initialized"):
            ScaffoldService(initialized_host, config).init()

    def test_force_keeps_modules_and_rewrites_workflow(self, initialized_host, config):
        manifest = initialized_host.load_manifest()
        manifest.set("Pester", ModuleEntry("https://github.com/pester/Pester.git", "v5"))
        initialized_host.save_manifest(manifest)
        workflow = initialized_host.root / WORKFLOW_PATH
        workflow.parent.mkdir(parents=True)
        workflow.write_text("stale", encoding='utf-8')
        readme = initialized_host.modules_path / "README.md"
        readme.parent.mkdir(parents=True)
        readme.write_text("custom", encoding='utf-8')

        results = by_type(ScaffoldService(initialized_host, config).init(force=True))

        assert initialized_host.load_manifest().get("Pester").ref == "v5"
        assert results['manifest'].action == "rewritten"
        assert results['workflow'].overwritten is True
        assert workflow.read_text(encoding='utf-8') != "stale"
        assert readme.read_text(encoding='utf-8') == "custom"
        assert results['readme'].status == OperationStatus.SKIPPED

    def test_dry_run_writes_nothing(self, host, config):
        results = ScaffoldService(host, config).init(dry_run=True, profile_path=str(host.root / "profile.ps1"))

        assert {r.status for r in results} == {OperationStatus.DRY_RUN}
        assert sorted(p.name for p in host.root.iterdir()) == [".git"]

    def test_requires_git_repository(self, tmp_path, config):
        with pytest.raises(NotAVersionControlRepository):
            ScaffoldService(HostRepository(tmp_path), config).init()

    def test_requires_existing_path(self, tmp_path, config):
        with pytest.raises(PathNotFound):
            ScaffoldService(HostRepository(tmp_path / "missing"), config).init()

    def test_profile_injection(self, host, config, tmp_path):
        profile = tmp_path / "profile.ps1"

        results = by_type(ScaffoldService(host, config).init(profile_path=str(profile)))

        assert results['profile'].action == "appended"
        assert str(host.modules_path) in profile.read_text(encoding='utf-8')


class TestProfileInjection:

    def test_block_shape(self, tmp_path):
        block = profile_block(tmp_path / "mods")

        assert block[0] == f"# PSSubtreeModules: {tmp_path / 'mods'}"
        assert block[1] == (
            f"$env:PSModulePath = '{tmp_path / 'mods'}' + [System.IO.Path]::PathSeparator + $env:PSModulePath"
        )
        assert block[2] == END_MARKER

    def test_quotes_are_doubled(self, tmp_path):
        block = profile_block(tmp_path / "it's")

        assert "it''s" in block[1]

    def test_appends_after_existing_content(self, tmp_path):
        profile = tmp_path / "profile.ps1"
        profile.write_text("Set-Alias ll Get-ChildItem\n\n\n", encoding='utf-8')

        result = inject_profile(profile, tmp_path / "mods")

        lines = profile.read_text(encoding='utf-8').splitlines()
        assert result.action == "appended"
        assert lines[:2] == ["Set-Alias ll Get-ChildItem", ""]
        assert lines[2:] == profile_block(tmp_path / "mods")

    def test_creates_missing_profile(self, tmp_path):
        profile = tmp_path / "nested" / "profile.ps1"

        inject_profile(profile, tmp_path / "mods")

        assert profile.read_text(encoding='utf-8').splitlines() == profile_block(tmp_path / "mods")

    def test_idempotent(self, tmp_path):
        profile = tmp_path / "profile.ps1"
        inject_profile(profile, tmp_path / "mods")
        before = profile.read_text(encoding='utf-8')

        result = inject_profile(profile, tmp_path / "mods")

        assert result.status == OperationStatus.SKIPPED
        assert result.action == "already_present"
        assert profile.read_text(encoding='utf-8') == before

    def test_force_replaces_block(self, tmp_path):
        profile = tmp_path / "profile.ps1"
        inject_profile(profile, tmp_path / "mods")
        with profile.open('a', encoding='utf-8') as f:
            f.write("Import-Module posh-git\n")

        result = inject_profile(profile, tmp_path / "mods", force=True)

        text = profile.read_text(encoding='utf-8')
        assert result.action == "replaced"
        assert text.count("# PSSubtreeModules:") == 1
        assert text.splitlines()[0] == "Import-Module posh-git"

    def test_force_without_end_marker_keeps_user_lines(self, tmp_path):
        profile = tmp_path / "profile.ps1"
        start = profile_block(tmp_path / "mods")[0]
        profile.write_text(
            f"{start}\n$env:PSModulePath = 'old' + $env:PSModulePath\n"
            "Set-Alias ll Get-ChildItem\nImport-Module Foo\n",
            encoding='utf-8',
        )

        inject_profile(profile, tmp_path / "mods", force=True)

        lines = profile.read_text(encoding='utf-8').splitlines()
        assert lines[:3] == ["Set-Alias ll Get-ChildItem", "Import-Module Foo", ""]
        assert lines[3:] == profile_block(tmp_path / "mods")

    def test_remove_block_without_end_marker_or_env_line(self):
        lines = ["# PSSubtreeModules: /mods", "Import-Module Foo"]

        assert remove_block(lines, "# PSSubtreeModules: /mods") == ["Import-Module Foo"]

    def test_other_blocks_are_untouched(self, tmp_path):
        profile = tmp_path / "profile.ps1"
        inject_profile(profile, tmp_path / "one")

        inject_profile(profile, tmp_path / "two", force=True)

        assert profile.read_text(encoding='utf-8').count("# PSSubtreeModules:") == 2

    def test_dry_run(self, tmp_path):
        profile = tmp_path / "profile.ps1"

        result = inject_profile(profile, tmp_path / "mods", dry_run=True)

        assert result.action == "would_append"
        assert not profile.exists()

