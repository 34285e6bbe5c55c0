"""Banded Levenshtein distance with a cap."""


def capped_edit_distance(a: str, b: str, max_distance: int) -> int:
    """Compute the edit distance between two strings, up to a cap.

    Only cells within ``max_distance`` of the diagonal are filled, and the
    computation stops as soon as a whole row exceeds the cap.

    Args:
        a: First string.
        b: Second string.
        max_distance: Largest distance worth computing exactly.

    Returns:
        The distance when it is at most ``max_distance``, otherwise
        ``max_distance + 1``.
    """
    cap = max_distance + 1
    n, m = len(a), len(b)
    if abs(n - m) > max_distance:
        return cap
    if n == 0:
        return min(m, cap)
    if m == 0:
        return min(n, cap)

    prev = [j if j <= max_distance else cap for j in range(m + 1)]
    for i in range(1, n + 1):
        curr = [cap] * (m + 1)
        curr[0] = i if i <= max_distance else cap
        row_min = curr[0]

        for j in range(max(1, i - max_distance), min(m, i + max_distance) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            value = min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost, cap)
            curr[j] = value
            row_min = min(row_min, value)

        if row_min > max_distance:
            return cap
        prev = curr

    return min(prev[m], cap)
