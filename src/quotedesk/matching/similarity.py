"""Levenshtein edit distance and the normalised similarity score built on it."""

from __future__ import annotations

from typing import List


def levenshtein_distance(a: str, b: str) -> int:
    """Return the minimum number of single-character edits turning ``a`` into ``b``.

    The full ``(len(b) + 1) x (len(a) + 1)`` table is kept; quotes are short
    enough that the quadratic memory is not a concern. Characters are
    compared by code point.
    """
    rows, cols = len(b), len(a)
    matrix: List[List[int]] = [[0] * (cols + 1) for _ in range(rows + 1)]
    matrix[0] = list(range(cols + 1))
    for i in range(rows + 1):
        matrix[i][0] = i

    for i in range(1, rows + 1):
        previous, current = matrix[i - 1], matrix[i]
        for j in range(1, cols + 1):
            if b[i - 1] == a[j - 1]:
                current[j] = previous[j - 1]
            else:
                current[j] = 1 + min(
                    previous[j - 1],  # substitution
                    current[j - 1],  # insertion
                    previous[j],  # deletion
                )

    return matrix[rows][cols]


def calculate_similarity(str1: str, str2: str) -> float:
    """Return a similarity score in ``[0, 1]``; ``1.0`` means identical.

    The distance is normalised by the length of the longer string. Two empty
    strings are treated as identical.
    """
    if len(str1) >= len(str2):
        longer, shorter = str1, str2
    else:
        longer, shorter = str2, str1

    if len(longer) == 0:
        return 1.0

    distance = levenshtein_distance(longer, shorter)
    return (len(longer) - distance) / len(longer)
