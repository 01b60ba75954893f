"""Tests for ordered_wheels.toml."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from ordered_wheels.errors import ConfigurationError, ManifestError
from ordered_wheels.toml import (
    get_project_name,
    get_project_version,
    get_registry,
    get_runtime_dependency_strings,
    get_tool_table,
    get_workspace_member_globs,
    is_publishable,
    load_pyproject,
    save_pyproject,
    set_tool_value,
)


class TestLoadSavePyproject:
    def test_load(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        assert get_project_name(doc, "") == "test-package"

    def test_save_preserves_content(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        project = doc.get("project", {})
        project["version"] = "9.9.9"
        save_pyproject(tmp_pyproject, doc)

        reloaded = load_pyproject(tmp_pyproject)
        assert get_project_version(reloaded) == "9.9.9"
        assert get_project_name(reloaded, "") == "test-package"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="Failed to load"):
            load_pyproject(tmp_path / "pyproject.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text("[project\nname = ")
        with pytest.raises(ManifestError):
            load_pyproject(path)


class TestGetProjectName:
    def test_returns_name(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_project_name(sample_toml_doc, "fallback") == "my-package"

    def test_normalizes_name(self) -> None:
        doc = tomlkit.parse('[project]\nname = "My_Package"')
        assert get_project_name(doc, "fallback") == "my-package"

    def test_returns_fallback_when_missing(self) -> None:
        doc = tomlkit.parse("[project]")
        assert get_project_name(doc, "my-fallback") == "my-fallback"


class TestGetProjectVersion:
    def test_returns_version(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_project_version(sample_toml_doc) == "2.0.0"

    def test_returns_default_when_missing(self) -> None:
        doc = tomlkit.parse("[project]")
        assert get_project_version(doc) == "0.0.0"


class TestGetRuntimeDependencyStrings:
    def test_gets_main_and_optional_deps(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        deps = get_runtime_dependency_strings(sample_toml_doc)
        assert deps == ["click>=8.0", "pydantic>=2.0", "pytest>=8.0", "sphinx>=7.0"]

    def test_skips_dependency_groups(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert "hypothesis>=6.0" not in get_runtime_dependency_strings(sample_toml_doc)

    def test_empty_when_no_deps(self) -> None:
        doc = tomlkit.parse("[project]\nname = 'foo'")
        assert get_runtime_dependency_strings(doc) == []


class TestGetWorkspaceMemberGlobs:
    def test_returns_members(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert get_workspace_member_globs(sample_toml_doc) == ["packages/*", "libs/*"]

    def test_raises_when_missing(self) -> None:
        with pytest.raises(ConfigurationError, match="members"):
            get_workspace_member_globs(tomlkit.parse("[project]"))


class TestToolTable:
    def test_publishable_by_default(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        assert is_publishable(sample_toml_doc) is True

    def test_private_classifier(self) -> None:
        doc = tomlkit.parse(
            '[project]\nclassifiers = ["Private :: Do Not Upload"]\n'
        )
        assert is_publishable(doc) is False

    def test_publish_false(self) -> None:
        doc = tomlkit.parse('[tool.ordered-wheels]\npublish = false\n')
        assert is_publishable(doc) is False

    def test_registry(self) -> None:
        doc = tomlkit.parse('[tool.ordered-wheels]\nregistry = "https://example.org/legacy/"\n')
        assert get_registry(doc) == "https://example.org/legacy/"
        assert get_tool_table(doc) == {"registry": "https://example.org/legacy/"}

    def test_no_tool_table(self) -> None:
        doc = tomlkit.parse("[project]")
        assert get_tool_table(doc) == {}
        assert get_registry(doc) is None

    def test_set_tool_value_creates_tables(self) -> None:
        doc = tomlkit.parse('[project]\nname = "x"\n')
        set_tool_value(doc, "registry", "https://example.org/")
        reparsed = tomlkit.parse(tomlkit.dumps(doc))
        assert get_registry(reparsed) == "https://example.org/"

    def test_set_tool_value_keeps_other_tools(self) -> None:
        doc = tomlkit.parse('[tool.ruff]\nline-length = 100\n')
        set_tool_value(doc, "publish", False)
        reparsed = tomlkit.parse(tomlkit.dumps(doc))
        assert reparsed["tool"]["ruff"]["line-length"] == 100
        assert is_publishable(reparsed) is False
