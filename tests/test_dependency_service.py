"""
Tests for dependency validation against vendored modules and search paths.
"""

import os

import pytest

from subtree_modules.domain.dependency import DependencySpec, SpecKind
from subtree_modules.domain.module import ModuleEntry, ModuleManifest
from subtree_modules.services.dependency_service import (
    DependencyCheckOptions,
    DependencyService,
    is_intra_module_reference,
    normalize_spec,
    satisfies,
    split_search_path,
)


def write_module(root, name, body, version=None, filename=None):
    """Write <root>/<name>/<filename or name.psd1> (inside <version>/ when given)."""
    directory = root / name
    if version:
        directory = directory / version
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / (filename or f"{name}.psd1")
    path.write_text(body, encoding='utf-8')
    return path


def manifest_for(*names):
    manifest = ModuleManifest()
    for name in names:
        manifest.set(name, ModuleEntry(f"https://example.com/{name}.git"))
    return manifest


@pytest.fixture
def external(tmp_path):
    path = tmp_path / "external"
    path.mkdir()
    return path


@pytest.fixture
def make_service(host, config):
    def factory(*search_paths):
        return DependencyService(host, config, DependencyCheckOptions(search_paths=list(search_paths)))
    return factory


class TestHelpers:

    def test_normalize_bare_name(self):
        assert normalize_spec("Pester") == DependencySpec.bare("Pester")
        assert normalize_spec("  ") is None

    def test_normalize_hashtable_keys_are_case_insensitive(self):
        spec = normalize_spec({'modulename': 'Pester', 'MODULEVERSION': '5.0.0', 'MaximumVersion': '5.9'})

        assert spec.kind == SpecKind.VERSIONED
        assert spec.min_version == "5.0.0"
        assert spec.max_version == "5.9"
        assert spec.describe_bound() == ">=5.0.0,<=5.9"

    def test_normalize_rejects_unknown_shapes(self):
        assert normalize_spec({'ModuleVersion': '1.0'}) is None
        assert normalize_spec(42) is None

    @pytest.mark.parametrize("version,expected", [
        ("5.0.0", True),
        ("5.5.1", True),
        ("4.10.1", False),
        ("6.0", False),
        (None, False),
        ("not-a-version", False),
    ])
    def test_satisfies_min_max(self, version, expected):
        spec = DependencySpec.versioned("Pester", min_version="5.0.0", max_version="5.99")

        assert satisfies(version, spec) is expected

    def test_satisfies_exact(self):
        spec = DependencySpec.versioned("Pester", exact_version="5.3.0")

        assert satisfies("5.3", spec) is True
        assert satisfies("5.3.1", spec) is False

    def test_bare_spec_needs_no_version(self):
        assert satisfies(None, DependencySpec.bare("Pester")) is True

    @pytest.mark.parametrize("name,expected", [
        ("Helpers.psm1", True),
        ("bin/Native.dll", True),
        ("lib\\Tool.dll", True),
        (".\\Private", True),
        ("PSScriptAnalyzer", False),
    ])
    def test_intra_module_reference(self, name, expected):
        assert is_intra_module_reference(name) is expected

    def test_split_search_path(self, tmp_path):
        value = os.pathsep.join([str(tmp_path / "a"), "", str(tmp_path / "b")])

        assert split_search_path(value) == [tmp_path / "a", tmp_path / "b"]

    def test_options_from_config(self, config, tmp_path):
        environ = {"PSModulePath": str(tmp_path / "env")}

        options = DependencyCheckOptions.from_config(config, extra_paths=[str(tmp_path / "cli")], environ=environ)

        assert options.search_paths == [tmp_path / "cli", tmp_path / "env"]
        assert options.manifest_extension == ".psd1"

    def test_options_custom_env_and_extension(self, config, tmp_path):
        config['dependencies'] = {'search_path_env': 'MY_MODULES', 'manifest_extension': 'psd1'}

        options = DependencyCheckOptions.from_config(config, environ={'MY_MODULES': str(tmp_path)})

        assert options.search_paths == [tmp_path]
        assert options.manifest_extension == ".psd1"


class TestDependencyService:

    def test_no_dependencies(self, host, make_service):
        write_module(host.modules_path, "Solo", "@{ ModuleVersion = '1.0.0' }")

        [report] = make_service().validate(manifest_for("Solo"))

        assert report.all_dependencies_met
        assert report.manifest_path.endswith("Solo.psd1")
        assert report.all_checks() == []

    def test_vendored_dependency(self, host, make_service):
        write_module(host.modules_path, "App", "@{ RequiredModules = @('Lib') }")
        write_module(host.modules_path, "Lib", "@{ ModuleVersion = '2.0.0' }")

        [report] = make_service().validate(manifest_for("App", "Lib"), "App")

        assert report.all_dependencies_met
        assert report.required_modules[0].found_path.startswith(str(host.modules_path))

    def test_missing_dependency(self, host, make_service):
        write_module(host.modules_path, "App", """
@{
    RequiredModules = @(
        'Lib'
        @{ ModuleName = 'Other'; ModuleVersion = '1.0' }
    )
}
""")

        [report] = make_service().validate(manifest_for("App"))

        assert not report.all_dependencies_met
        assert report.missing_dependencies == ["Lib", "Other"]

    def test_search_path_dependency_with_version_folders(self, host, external, make_service):
        write_module(host.modules_path, "App",
                     "@{ RequiredModules = @(@{ ModuleName = 'Pester'; ModuleVersion = '5.0.0' }) }")
        write_module(external, "Pester", "@{ ModuleVersion = '4.10.1' }", version="4.10.1")
        write_module(external, "Pester", "@{ ModuleVersion = '5.5.0' }", version="5.5.0")

        [report] = make_service(external).validate(manifest_for("App"))

        check = report.required_modules[0]
        assert check.found
        assert check.found_version == "5.5.0"
        assert check.version_bound == ">=5.0.0"

    def test_version_out_of_bounds(self, host, external, make_service):
        write_module(host.modules_path, "App",
                     "@{ RequiredModules = @(@{ ModuleName = 'Pester'; RequiredVersion = '5.3.0' }) }")
        write_module(external, "Pester", "@{ ModuleVersion = '5.5.0' }")

        [report] = make_service(external).validate(manifest_for("App"))

        check = report.required_modules[0]
        assert not check.found
        assert check.found_version == "5.5.0"
        assert report.missing_dependencies == ["Pester"]

    def test_vendored_copy_wins_over_search_path(self, host, external, make_service):
        write_module(host.modules_path, "App", "@{ RequiredModules = 'Lib' }")
        write_module(host.modules_path, "Lib", "@{ ModuleVersion = '1.0' }")
        write_module(external, "Lib", "@{ ModuleVersion = '9.0' }")

        [report] = make_service(external).validate(manifest_for("App"))

        assert report.required_modules[0].found_path.startswith(str(host.modules_path))

    def test_external_dependencies_from_psdata(self, host, make_service):
        write_module(host.modules_path, "App", """
@{
    ModuleVersion = '1.0.0'
    PrivateData = @{
        PSData = @{
            Tags = @('testing')
            ExternalModuleDependencies = @('Az.Accounts')
        }
    }
}
""")

        [report] = make_service().validate(manifest_for("App"))

        assert [c.name for c in report.external_module_dependencies] == ["Az.Accounts"]
        assert report.missing_dependencies == ["Az.Accounts"]

    def test_nested_files_are_not_dependencies(self, host, make_service):
        write_module(host.modules_path, "App",
                     "@{ NestedModules = @('Private\\Helpers.psm1', 'App.Format.ps1', 'Lib') }")
        write_module(host.modules_path, "Lib", "@{ }")

        [report] = make_service().validate(manifest_for("App", "Lib"), "App")

        assert [c.name for c in report.nested_modules] == ["Lib"]
        assert report.all_dependencies_met

    def test_missing_manifest_is_unmet(self, host, make_service):
        (host.modules_path / "Empty").mkdir(parents=True)

        [report] = make_service().validate(manifest_for("Empty"))

        assert report.manifest_path is None
        assert not report.all_dependencies_met

    def test_lone_manifest_with_other_name(self, host, make_service):
        write_module(host.modules_path, "pester-src", "@{ }", filename="Pester.psd1")

        [report] = make_service().validate(manifest_for("pester-src"))

        assert report.manifest_path.endswith("Pester.psd1")
        assert report.all_dependencies_met

    def test_parse_error_is_reported(self, host, make_service):
        write_module(host.modules_path, "Broken", "@{ RequiredModules = Get-Module }")

        [report] = make_service().validate(manifest_for("Broken"))

        assert report.error
        assert not report.all_dependencies_met

    def test_pattern_and_order(self, host, make_service):
        for name in ("B1", "A1", "B2"):
            write_module(host.modules_path, name, "@{ }")

        reports = make_service().validate(manifest_for("B1", "A1", "B2"), "B?")

        assert [r.name for r in reports] == ["B1", "B2"]
