"""
Merge with duplicate removal.

Combines two sorted sequences into one sorted list, collapsing elements
that compare equal. Used to merge dependency lists and AUR search results.
"""

from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")

Compare = Callable[[T, T], int]
Dispose = Callable[[T], None]


def compare_names(a: str, b: str) -> int:
    """Three-way string comparison used for package names."""
    return (a > b) - (a < b)


def merge_dedupe(
    left: Sequence[T],
    right: Sequence[T],
    compare: Compare,
    dispose: Dispose | None = None,
) -> list[T]:
    """
    Merge two sorted sequences, dropping duplicates.

    Args:
        left: Sequence sorted under ``compare``.
        right: Sequence sorted under ``compare``.
        compare: Three-way comparison, negative/zero/positive.
        dispose: Called on every element discarded as a duplicate.

    Returns:
        A new sorted list. When heads compare equal the left element is
        dropped and the comparison retried, so a run of equal elements
        spread over both inputs keeps the one from ``right``.
    """
    if not left:
        return list(right)
    if not right:
        return list(left)

    merged: list[T] = []
    i = j = 0

    while i < len(left) and j < len(right):
        result = compare(left[i], right[j])
        if result < 0:
            merged.append(left[i])
            i += 1
        elif result > 0:
            merged.append(right[j])
            j += 1
        else:
            if dispose is not None:
                dispose(left[i])
            i += 1

    merged.extend(left[i:])
    merged.extend(right[j:])
    return merged


def sort_dedupe(
    items: Sequence[T],
    compare: Compare,
    dispose: Dispose | None = None,
) -> list[T]:
    """
    Merge sort that removes duplicates while sorting.

    Each half is sorted recursively and combined with ``merge_dedupe``,
    so equal elements meet during a merge and are collapsed there.
    """
    if len(items) <= 1:
        return list(items)

    mid = len(items) // 2
    left = sort_dedupe(items[:mid], compare, dispose)
    right = sort_dedupe(items[mid:], compare, dispose)
    return merge_dedupe(left, right, compare, dispose)
