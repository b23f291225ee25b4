# src/perf_enhancer/core/matcher.py
from typing import Iterable, Union

StringOrMany = Union[str, Iterable[str], None]


def _as_list(value: StringOrMany) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [v for v in value if isinstance(v, str)]


def has_string(needles: StringOrMany, haystacks: StringOrMany) -> bool:
    """
    Checks whether at least one needle occurs in at least one haystack.

    Plain, case-sensitive substring containment: the pattern "ads" matches
    "myads.js". Empty needles never match.

    Args:
        needles: A pattern or a list of patterns.
        haystacks: A string or a list of strings to search in.

    Returns:
        bool: True on the first match.
    """
    stacks = _as_list(haystacks)
    if not stacks:
        return False

    for needle in _as_list(needles):
        if not needle:
            continue
        for stack in stacks:
            if needle in stack:
                return True
    return False
