"""Tests for ordered_wheels.config."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from ordered_wheels.config import ENV_REGISTRY, PublishOptions, load_options
from ordered_wheels.errors import ConfigurationError


@pytest.fixture(autouse=True)
def no_env_registry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ENV_REGISTRY, raising=False)


class TestLoadOptions:
    def test_defaults(self, make_workspace: Callable[..., Path]) -> None:
        root = make_workspace({"a": []})
        options = load_options(root)
        assert options == PublishOptions(root=root)
        assert options.index_url == "https://pypi.org"

    def test_manifest_table(self, make_workspace: Callable[..., Path]) -> None:
        root = make_workspace(
            {"a": []},
            root_extra=(
                "\n[tool.ordered-wheels]\n"
                "post-publish-delay = 5\n"
                'exclude = ["a"]\n'
                'index-url = "https://mirror.test"\n'
            ),
        )
        options = load_options(root)
        assert options.post_publish_delay == 5
        assert options.exclude == ["a"]
        assert options.index_url == "https://mirror.test"

    def test_cli_overrides_manifest(self, make_workspace: Callable[..., Path]) -> None:
        root = make_workspace(
            {"a": []}, root_extra="\n[tool.ordered-wheels]\npost-publish-delay = 5\n"
        )
        options = load_options(root, post_publish_delay=1.5, exclude=("a",), start_from=None)
        assert options.post_publish_delay == 1.5
        assert options.exclude == ["a"]
        assert options.start_from is None

    def test_unset_cli_values_keep_manifest(self, make_workspace: Callable[..., Path]) -> None:
        root = make_workspace({"a": []}, root_extra='\n[tool.ordered-wheels]\nexclude = ["a"]\n')
        options = load_options(root, exclude=(), post_check=None)
        assert options.exclude == ["a"]
        assert options.post_check is False

    def test_env_registry(
        self, make_workspace: Callable[..., Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(ENV_REGISTRY, "https://test.pypi.org/legacy/")
        options = load_options(make_workspace({"a": []}))
        assert options.registry == "https://test.pypi.org/legacy/"

    def test_unknown_key(self, make_workspace: Callable[..., Path]) -> None:
        root = make_workspace({"a": []}, root_extra="\n[tool.ordered-wheels]\nfrobnicate = 1\n")
        with pytest.raises(ConfigurationError, match="Invalid options"):
            load_options(root)

    def test_negative_delay(self, make_workspace: Callable[..., Path]) -> None:
        with pytest.raises(ConfigurationError):
            load_options(make_workspace({"a": []}), post_publish_delay=-1)
