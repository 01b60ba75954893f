"""Run options.

Options come from three places, later ones winning:

1. ``[tool.ordered-wheels]`` in the workspace root's pyproject.toml
   (dashed keys, e.g. ``post-publish-delay = 5``).
2. Command-line flags that were actually given.
3. ``ORDERED_WHEELS_REGISTRY``, which overrides the upload URL of every
   package.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .registry import DEFAULT_INDEX_URL
from .toml import get_tool_table, load_pyproject

ENV_REGISTRY = "ORDERED_WHEELS_REGISTRY"


class PublishOptions(BaseModel):
    """Everything one publish (or plan) invocation needs to know."""

    model_config = ConfigDict(extra="forbid")

    root: Path = Path(".")
    packages: list[str] = Field(default_factory=list)
    start_from: str | None = None
    verify_from: str | None = None
    post_publish_delay: float = Field(default=0.0, ge=0)
    include_dependents: bool = False
    exclude: list[str] = Field(default_factory=list)
    post_check: bool = False
    index_url: str = DEFAULT_INDEX_URL
    registry: str | None = None


def load_options(root: Path, **cli_values: Any) -> PublishOptions:
    """Merge manifest defaults, CLI values and the environment.

    CLI values that are None or empty sequences count as "not given" and
    do not override the manifest.

    Raises:
        ConfigurationError: If a value has the wrong type or an unknown
            key is set in [tool.ordered-wheels].
    """
    doc = load_pyproject(root / "pyproject.toml")
    values: dict[str, Any] = {
        key.replace("-", "_"): value
        for key, value in get_tool_table(doc).items()
        # Per-package keys that may also appear in a single-package root.
        if key not in ("publish", "registry")
    }
    for key, value in cli_values.items():
        if value is None or value == () or value == [] or value is False:
            continue
        values[key] = list(value) if isinstance(value, tuple) else value
    values["root"] = root

    env_registry = os.environ.get(ENV_REGISTRY)
    if env_registry:
        values["registry"] = env_registry

    try:
        return PublishOptions(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid options: {exc}") from exc
