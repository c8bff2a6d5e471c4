"""
Tests for the subtree-modules domain layer.
"""

from datetime import datetime, timezone

import pytest

from subtree_modules.domain import (
    DependencyCheck,
    DependencyReport,
    DependencySpec,
    ModuleChangeResult,
    ModuleEntry,
    ModuleManifest,
    ModuleStatus,
    OperationStatus,
    OperationSummary,
    SpecKind,
    StatusKind,
    SubtreeRecord,
    UpstreamRef,
    derive_status,
    is_valid_module_name,
    match_name,
)

SHA_A = "a" * 40
SHA_B = "b" * 40


class TestModuleNames:

    @pytest.mark.parametrize("name", ["Pester", "PSReadLine", "my_module", "Az.Accounts", "x-1"])
    def test_valid_names(self, name):
        assert is_valid_module_name(name)

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a b", "..\\x", "name*"])
    def test_invalid_names(self, name):
        assert not is_valid_module_name(name)


class TestMatchName:

    def test_star_matches_everything(self):
        assert match_name("Pester", "*")
        assert match_name("", "*")

    def test_prefix_glob(self):
        assert match_name("PSReadLine", "PS*")
        assert not match_name("Pester", "PS*")

    def test_question_mark_matches_exactly_one(self):
        assert match_name("Az1", "Az?")
        assert not match_name("Az", "Az?")
        assert not match_name("Az12", "Az?")

    def test_case_sensitive(self):
        assert not match_name("pester", "Pester")

    def test_brackets_are_literal(self):
        assert match_name("a[b]", "a[b]")
        assert not match_name("ab", "a[b]")

    def test_dot_is_literal(self):
        assert not match_name("AzXAccounts", "Az.Accounts")


class TestModuleManifest:

    def test_preserves_insertion_order(self):
        manifest = ModuleManifest()
        manifest.set("Zeta", ModuleEntry("https://example.com/zeta.git"))
        manifest.set("Alpha", ModuleEntry("https://example.com/alpha.git"))

        assert manifest.names() == ["Zeta", "Alpha"]

    def test_set_existing_keeps_position(self):
        manifest = ModuleManifest()
        manifest.set("A", ModuleEntry("u1"))
        manifest.set("B", ModuleEntry("u2"))
        manifest.set("A", ModuleEntry("u1", ref="v2"))

        assert manifest.names() == ["A", "B"]
        assert manifest.get("A").ref == "v2"

    def test_remove(self):
        manifest = ModuleManifest()
        manifest.set("A", ModuleEntry("u1"))

        assert manifest.remove("A").repository == "u1"
        assert "A" not in manifest
        assert manifest.remove("A") is None

    def test_match_keeps_manifest_order(self):
        manifest = ModuleManifest()
        for name in ("PSb", "Other", "PSa"):
            manifest.set(name, ModuleEntry("u"))

        assert manifest.match("PS*") == ["PSb", "PSa"]

    def test_entry_defaults_ref_to_main(self):
        assert ModuleEntry.from_dict({'repo': 'u'}).ref == "main"
        assert ModuleEntry.from_dict({'repo': 'u', 'ref': None}).ref == "main"

    def test_to_dict_uses_on_disk_keys(self):
        manifest = ModuleManifest()
        manifest.set("Pester", ModuleEntry("https://github.com/pester/Pester.git", "v5"))

        assert manifest.to_dict() == {
            'modules': {'Pester': {'repo': 'https://github.com/pester/Pester.git', 'ref': 'v5'}}
        }


class TestStatusDerivation:

    def test_equal_commits_are_current(self):
        assert derive_status(SHA_A, SHA_A) == StatusKind.CURRENT

    def test_different_commits_have_update(self):
        assert derive_status(SHA_A, SHA_B) == StatusKind.UPDATE_AVAILABLE

    @pytest.mark.parametrize("local,upstream", [(None, SHA_A), (SHA_A, None), (None, None)])
    def test_missing_side_is_unknown(self, local, upstream):
        assert derive_status(local, upstream) == StatusKind.UNKNOWN

    def test_from_lookups_uses_split_commit(self):
        record = SubtreeRecord(
            upstream_commit=SHA_A,
            local_commit="c" * 40,
            local_commit_date=datetime(2024, 1, 2, tzinfo=timezone.utc),
            prefix="modules/Pester",
        )
        upstream = UpstreamRef(SHA_B, "refs/heads/main", "u")

        status = ModuleStatus.from_lookups("Pester", "main", "u", record, upstream)

        assert status.status == StatusKind.UPDATE_AVAILABLE
        assert status.local_commit_short == "aaaaaaa"
        assert status.upstream_commit_short == "bbbbbbb"
        assert status.to_dict()['status'] == "UpdateAvailable"

    def test_unknown_status_has_no_short_commits(self):
        status = ModuleStatus.from_lookups("Pester", "main", "u", None, None)

        assert status.status == StatusKind.UNKNOWN
        assert status.to_dict()['local_commit'] is None
        assert status.to_dict()['upstream_commit'] is None


class TestDependencySpec:

    def test_bare_spec(self):
        spec = DependencySpec.bare("Pester")

        assert spec.kind == SpecKind.NAME
        assert not spec.has_bounds
        assert spec.describe_bound() is None

    def test_exact_bound_wins(self):
        spec = DependencySpec.versioned("Pester", exact_version="5.5.0", min_version="5.0")

        assert spec.describe_bound() == "==5.5.0"

    def test_range_bound(self):
        spec = DependencySpec.versioned("Pester", min_version="5.0", max_version="5.9")

        assert spec.kind == SpecKind.VERSIONED
        assert spec.describe_bound() == ">=5.0,<=5.9"


class TestDependencyReport:

    def test_finalize_deduplicates_missing(self):
        report = DependencyReport(name="M", manifest_path="/m/M.psd1")
        report.required_modules = [DependencyCheck("A", False), DependencyCheck("B", True)]
        report.external_module_dependencies = [DependencyCheck("A", False), DependencyCheck("C", False)]

        report.finalize()

        assert report.missing_dependencies == ["A", "C"]
        assert report.all_dependencies_met is False

    def test_all_found_is_met(self):
        report = DependencyReport(name="M", manifest_path="/m/M.psd1")
        report.required_modules = [DependencyCheck("A", True)]

        assert report.finalize().all_dependencies_met is True

    def test_missing_manifest_is_not_met(self):
        assert DependencyReport(name="M").finalize().all_dependencies_met is False

    def test_error_is_not_met(self):
        report = DependencyReport(name="M", manifest_path="/m/M.psd1", error="line 1: bad")

        assert report.finalize().all_dependencies_met is False
        assert report.to_dict()['error'] == "line 1: bad"


class TestOperationSummary:

    def test_counts(self):
        summary = OperationSummary(operation="update")
        summary.add_detail(ModuleChangeResult("A", OperationStatus.SUCCESS, "updated"))
        summary.add_detail(ModuleChangeResult("B", OperationStatus.SKIPPED, "skipped"))
        summary.add_detail(ModuleChangeResult("C", OperationStatus.FAILED, "update_failed", error="boom"))

        assert (summary.total, summary.successful, summary.skipped, summary.failed) == (3, 1, 1, 1)
        assert summary.success is False
        assert summary.errors == ["C: boom"]
        assert summary.to_dict()['type'] == 'summary'

    def test_change_result_to_dict(self):
        result = ModuleChangeResult(
            "Pester", OperationStatus.SUCCESS, "updated",
            prefix="modules/Pester", old_ref="v4", new_ref="v5",
            commit_message="feat(modules): update Pester from v4 to v5",
        )

        data = result.to_dict()
        assert data['name'] == "Pester"
        assert data['status'] == "success"
        assert data['old_ref'] == "v4"
        assert data['changed'] is True
