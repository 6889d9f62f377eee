"""Unbiased winner selection backed by the operating system's CSPRNG."""

from __future__ import annotations

import secrets


def secure_pick(n: int) -> int:
    """Return an index in ``[0, n)`` chosen uniformly at random.

    The value comes from :mod:`secrets`, so it cannot be seeded, predicted
    or replayed by someone watching earlier draws.

    Parameters
    ----------
    n : int
        Size of the range to pick from. Must be positive.

    Raises
    ------
    TypeError
        If ``n`` is not an integer.
    ValueError
        If ``n`` is zero or negative.
    """

    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError("n must be an integer")
    if n <= 0:
        raise ValueError("cannot pick from an empty range")
    return secrets.randbelow(n)


__all__ = ["secure_pick"]
