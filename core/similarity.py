"""
String similarity for AniForge.

Normalized Levenshtein similarity used by the catalog matcher when exact
and substring comparisons fail.
"""
from typing import List


def edit_distance(a: str, b: str) -> int:
    """
    Levenshtein distance with unit costs for insert, delete and substitute.

    Args:
        a: First string
        b: Second string

    Returns:
        Minimum number of single-character edits turning ``a`` into ``b``
    """
    len_a, len_b = len(a), len(b)
    table: List[List[int]] = [[0] * (len_b + 1) for _ in range(len_a + 1)]

    for i in range(len_a + 1):
        table[i][0] = i
    for j in range(len_b + 1):
        table[0][j] = j

    for i in range(1, len_a + 1):
        for j in range(1, len_b + 1):
            if a[i - 1] == b[j - 1]:
                table[i][j] = table[i - 1][j - 1]
            else:
                table[i][j] = 1 + min(table[i - 1][j], table[i][j - 1], table[i - 1][j - 1])

    return table[len_a][len_b]


def similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1]: ``1 - edit_distance / max(len(a), len(b))``.

    Two empty strings are identical (1.0).
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1 - edit_distance(a, b) / max_len
