"""Structural equality for JSON-like values.

The default echo-suppression predicate.  Mappings compare by keys and
values, lists and tuples element-wise, everything else with ``==`` except
that booleans never equal numbers (``True != 1``).
"""

from collections.abc import Mapping
from typing import Any


def structurally_equal(a: Any, b: Any) -> bool:
    """Return True if *a* and *b* are deep-equal JSON-like values."""
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(structurally_equal(a[k], b[k]) for k in a)
    if isinstance(a, list | tuple) and isinstance(b, list | tuple):
        if len(a) != len(b):
            return False
        return all(structurally_equal(x, y) for x, y in zip(a, b, strict=True))
    if isinstance(a, Mapping | list | tuple) or isinstance(b, Mapping | list | tuple):
        return False
    return bool(a == b)
