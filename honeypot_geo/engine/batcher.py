"""Split addresses into submission-sized chunks."""

from __future__ import annotations

from typing import Sequence

from ..config.models import MAX_CHUNK_SIZE
from .records import Address, Chunk


def chunk(addresses: Sequence[Address], size: int = MAX_CHUNK_SIZE) -> list[Chunk]:
    """Return consecutive groups of ``size`` addresses; the last may be shorter.

    An empty input yields no chunks at all.
    """

    if size < 1:
        raise ValueError("chunk size must be >= 1")
    items = list(addresses)
    return [items[start : start + size] for start in range(0, len(items), size)]


__all__ = ["chunk"]
