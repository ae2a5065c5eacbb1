"""Helpers for parsing and comparing semantic version strings."""

from __future__ import annotations

import logging

import semver


__all__ = [
    "compare_versions",
    "is_update_available",
    "parse_semantic_version",
]

_LOGGER = logging.getLogger(__name__)


def parse_semantic_version(text: str) -> semver.Version | None:
    """Return the parsed version or ``None`` when ``text`` is not valid SemVer."""

    if not isinstance(text, str):
        return None
    try:
        version = semver.Version.parse(text)
    except ValueError:
        return None
    # ``parse`` tolerates a trailing newline; a valid record renders back exactly.
    if str(version) != text:
        return None
    return version


def compare_versions(current_version: str, candidate: str) -> int:
    """Compare ``candidate`` against ``current_version``.

    Returns ``1`` when ``candidate`` is newer, ``-1`` when it is older and ``0``
    when both have the same precedence.  Build metadata is ignored.  Raises
    :class:`ValueError` when either side is not a semantic version.
    """

    current_parsed = parse_semantic_version(current_version)
    if current_parsed is None:
        raise ValueError(f"Not a semantic version: {current_version!r}")
    candidate_parsed = parse_semantic_version(candidate)
    if candidate_parsed is None:
        raise ValueError(f"Not a semantic version: {candidate!r}")

    return candidate_parsed.compare(current_parsed)


def is_update_available(current_version: str, latest_version: str) -> bool:
    """Return ``True`` only if ``latest_version`` is strictly newer.

    Malformed input on either side yields ``False`` so that a corrupt version
    record never triggers an uninstall/install cycle.
    """

    try:
        return compare_versions(current_version, latest_version) > 0
    except ValueError as exc:
        _LOGGER.debug("Skipping version comparison: %s", exc)
        return False
