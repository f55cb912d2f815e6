"""Competition ranking of brands per metric.

Equal values share a rank; the next distinct value's rank is the count of
strictly better entries + 1 (1, 1, 3, 4). Brands without a value (e.g. no
avg_position because they never appear) share the last rank, after every
brand that has one.
"""

from __future__ import annotations

from collections.abc import Sequence

# Values are compared after rounding so float noise never splits a tie
_TIE_PRECISION = 9


def competition_ranks(
    values: Sequence[float | None],
    ascending: bool = False,
) -> list[int]:
    """Rank values, best first.

    Args:
        values: One value per brand, None for "no data".
        ascending: Lower is better (avg_position) when True.

    Returns:
        Rank per input position.
    """
    keys = [None if v is None else round(float(v), _TIE_PRECISION) for v in values]
    defined = [k for k in keys if k is not None]
    unranked = len(defined) + 1

    ranks: list[int] = []
    for key in keys:
        if key is None:
            ranks.append(unranked)
            continue
        if ascending:
            better = sum(1 for other in defined if other < key)
        else:
            better = sum(1 for other in defined if other > key)
        ranks.append(better + 1)
    return ranks

