"""Build the `Precognition-Validate-Only` header value."""

from __future__ import annotations

import re
from collections.abc import Iterable

VALIDATE_ONLY_HEADER = "Precognition-Validate-Only"

# Split on dots that are not escaped with a backslash.
_SEGMENT_SEPARATOR = re.compile(r"(?<!\\)\.")


def split_path(path: str) -> list[str]:
    return _SEGMENT_SEPARATOR.split(path)


def parent_keys(path: str) -> list[str]:
    """Return every cumulative prefix of a dotted path, shortest first.

    `members.0.name` -> `members`, `members.0`, `members.0.name`.
    """
    prefixes: list[str] = []
    for segment in split_path(path):
        prefixes.append(f"{prefixes[-1]}.{segment}" if prefixes else segment)
    return prefixes


def resolve_keys_to_validate(paths: Iterable[str], *, expand_parents: bool) -> list[str]:
    if not expand_parents:
        return list(paths)
    expanded = [key for path in paths for key in parent_keys(path)]
    return list(dict.fromkeys(expanded))


def validate_only_header(paths: Iterable[str], *, expand_parents: bool) -> str:
    return ",".join(resolve_keys_to_validate(paths, expand_parents=expand_parents))
