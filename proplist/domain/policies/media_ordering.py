"""Media ordering and cover selection.

The cover is the lowest-position image; when a listing has no images it is
the lowest-position asset of any type.  After :func:`ensure_cover_at_zero`
the cover always sits at index/position 0 and positions are ``0..n-1``.

Functions accept any objects exposing ``media_type`` and ``position`` and
never mutate their input; normalised copies are produced with
``dataclasses.replace`` (or ``model_copy`` for pydantic models).
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from typing import Any, Protocol, TypeVar

from proplist.domain.enums import MediaType

__all__ = ["MediaLike", "MediaSlot", "select_cover", "normalize_positions", "ensure_cover_at_zero"]

logger = logging.getLogger(__name__)


class MediaLike(Protocol):
    media_type: MediaType | str
    position: int


M = TypeVar("M", bound=MediaLike)


@dataclasses.dataclass(frozen=True, slots=True)
class MediaSlot:
    """Minimal ordering view of a media asset."""

    id: str
    media_type: MediaType
    position: int


def _with_position(item: M, position: int) -> M:
    if item.position == position:
        return item
    if dataclasses.is_dataclass(item):
        return dataclasses.replace(item, position=position)  # type: ignore[type-var]
    copier: Any = getattr(item, "model_copy", None)
    if copier is not None:
        return copier(update={"position": position})
    raise TypeError(f"Cannot reposition {type(item).__name__!r}")


def select_cover(items: Sequence[MediaLike]) -> int:
    """Return the index in *items* of the cover candidate, or ``-1`` if empty.

    Ties on position resolve to the earlier item.
    """
    if not items:
        return -1
    indexed = list(enumerate(items))
    images = [pair for pair in indexed if pair[1].media_type == MediaType.IMAGE]
    pool = images or indexed
    return min(pool, key=lambda pair: (pair[1].position, pair[0]))[0]


def normalize_positions(items: Sequence[M]) -> list[M]:
    """Sort by current position (stable for ties) and renumber ``0..n-1``."""
    ordered = sorted(items, key=lambda item: item.position)
    return [_with_position(item, index) for index, item in enumerate(ordered)]


def ensure_cover_at_zero(items: Sequence[M]) -> list[M]:
    """Move the selected cover to the front, then normalise positions."""
    if not items:
        return []
    cover_index = select_cover(items)
    ordered = sorted(range(len(items)), key=lambda i: (items[i].position, i))
    ordered.remove(cover_index)
    ordered.insert(0, cover_index)
    return [_with_position(items[i], pos) for pos, i in enumerate(ordered)]
