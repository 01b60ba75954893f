"""Version parsing, ordering and bumping utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0"),
and orders registry versions the way pip does (PEP 440).
"""

from __future__ import annotations

from collections.abc import Iterable

import semver
from packaging.version import InvalidVersion, Version


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Only the release segment is used (major.minor.patch); pre-release,
    post-release and local parts of a PEP 440 version are dropped.
    """
    parts = [str(p) for p in Version(version_str).release[:3]]
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts))


def bump_patch(version_str: str) -> str:
    """Increment the patch version and return as a string.

    Examples:
        "1.2.3" → "1.2.4"
        "1.0" → "1.0.1"
        "2" → "2.0.1"
    """
    return str(parse_version(version_str).bump_patch())


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Sort version strings in ascending PEP 440 order.

    Strings that are not valid PEP 440 versions (legacy uploads) are
    dropped since they can never be the highest release.
    """
    valid: list[tuple[Version, str]] = []
    for v in versions:
        try:
            valid.append((Version(v), v))
        except InvalidVersion:
            continue
    return [v for _, v in sorted(valid)]


def is_published(version: str, prior_versions: Iterable[str]) -> bool:
    """Whether `version` equals one of `prior_versions` under PEP 440."""
    target = Version(version)
    return any(Version(v) == target for v in sort_versions(prior_versions))


def next_version(current: str, prior_versions: Iterable[str]) -> str:
    """Pick the version to publish a changed package under.

    An unpublished current version is kept as is (someone already bumped
    it by hand). Otherwise the patch of the highest of the current and the
    published versions is incremented.

    Examples:
        next_version("1.0.0", ["0.9.0"]) → "1.0.0"
        next_version("1.0.0", ["0.9.0", "1.0.0"]) → "1.0.1"
        next_version("1.0.0", ["1.0.0", "1.3.0"]) → "1.3.1"
    """
    prior = sort_versions(prior_versions)
    if not is_published(current, prior):
        return current
    highest = sort_versions([*prior, current])[-1]
    return bump_patch(highest)
