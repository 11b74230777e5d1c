from __future__ import annotations

from collections.abc import Iterable


def plan_deletions(indices: Iterable[int]) -> list[int]:
    """
    Order zero-based page indices for removal, highest first.

    Removing a page shifts every later page down by one, so consuming the
    plan from the top keeps each remaining index valid without remapping.
    Duplicates collapse. Range checks happen when the plan is executed.
    """
    return sorted({int(i) for i in indices}, reverse=True)
