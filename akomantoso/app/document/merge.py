"""
Two-level merge of caller metadata into skeleton sub-groups.

This is NOT a general recursive deep merge. Only the first two levels
are merged field by field:

- level 1: field names of an identification sub-group (FRBRthis, ...)
- level 2: the attributes/children of each such field

Anything nested below level 2 is an opaque value and is replaced whole.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping


def merge(
    target: Mapping[str, Any],
    source: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Merge ``source`` into ``target`` and return the merged mapping.

    Rules:
    - keys only in ``target`` are kept untouched
    - keys only in ``source`` are inserted verbatim
    - mapping into mapping merges one level, ``source`` wins on conflict
    - any other conflict is resolved by replacing with ``source``

    Neither argument is mutated.
    """
    merged: Dict[str, Any] = dict(target)

    for key, value in source.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = {**current, **value}
        elif isinstance(value, Mapping):
            merged[key] = dict(value)
        else:
            merged[key] = value

    return merged
