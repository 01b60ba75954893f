"""Tests for ordered_wheels.validation."""

from __future__ import annotations

import pytest
from conftest import build_workspace

from ordered_wheels.errors import ValidationFailure
from ordered_wheels.models import SelectionPlan
from ordered_wheels.validation import validate_package, validate_plan


class TestValidatePackage:
    def test_excluded_transitive_dependency(self) -> None:
        """A -> B -> C with C excluded: C is reported with parent B."""
        ws = build_workspace({"a": ["b"], "b": ["c"], "c": []})
        with pytest.raises(ValidationFailure) as exc_info:
            validate_package(ws, "a", {"c"})
        err = exc_info.value
        assert (err.package, err.parent, err.initial, err.reason) == ("c", "b", "a", "excluded")
        assert str(err) == (
            "Package c was excluded, but it is a dependency of b, "
            "and that is a dependency of a, which would be published."
        )

    def test_direct_dependency_has_no_parent(self) -> None:
        ws = build_workspace({"a": ["b"], "b": []})
        with pytest.raises(ValidationFailure) as exc_info:
            validate_package(ws, "a", {"b"})
        assert exc_info.value.parent is None
        assert "it is a dependency of a, which would be published" in str(exc_info.value)

    def test_unpublishable_dependency_names_manifest(self) -> None:
        ws = build_workspace({"a": ["b"], "b": []}, private=("b",))
        with pytest.raises(ValidationFailure) as exc_info:
            validate_package(ws, "a", set())
        err = exc_info.value
        assert err.reason == "unpublishable"
        assert err.manifest == "packages/b/pyproject.toml"
        assert "packages/b/pyproject.toml" in str(err)

    def test_initial_package_excluded(self) -> None:
        ws = build_workspace({"a": []})
        with pytest.raises(ValidationFailure) as exc_info:
            validate_package(ws, "a", {"a"})
        assert exc_info.value.package == "a"

    def test_clean_tree_passes(self) -> None:
        ws = build_workspace({"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []})
        validate_package(ws, "a", {"unrelated"})

    def test_terminates_on_cycle(self) -> None:
        ws = build_workspace({"a": ["b"], "b": ["a"]})
        validate_package(ws, "a", set())

    def test_first_declared_dependency_checked_first(self) -> None:
        ws = build_workspace({"a": ["b", "c"], "b": [], "c": []})
        with pytest.raises(ValidationFailure) as exc_info:
            validate_package(ws, "a", {"b", "c"})
        assert exc_info.value.package == "b"


class TestValidatePlan:
    def test_stops_at_first_failing_package(self) -> None:
        ws = build_workspace({"a": [], "b": ["x"], "c": ["x"], "x": []})
        plan = SelectionPlan(packages=("a", "b", "c"), excluded=frozenset({"x"}))
        with pytest.raises(ValidationFailure) as exc_info:
            validate_plan(ws, plan)
        assert exc_info.value.initial == "b"

    def test_valid_plan(self) -> None:
        ws = build_workspace({"a": [], "b": ["a"]})
        validate_plan(ws, SelectionPlan(packages=("a", "b")))
