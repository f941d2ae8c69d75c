"""Featured-section sizing for the landing page."""

from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

WIDE_VIEWPORT = 1152
MEDIUM_VIEWPORT = 768


def select_featured_count(viewport_width: Optional[int]) -> int:
    """Number of featured items that fit a viewport of the given width."""
    if viewport_width is None:
        return 4
    if viewport_width > WIDE_VIEWPORT:
        return 8
    if viewport_width > MEDIUM_VIEWPORT:
        return 6
    return 4


def select_featured(contents: Sequence[T], viewport_width: Optional[int]) -> List[T]:
    # Slicing returns a new list; the caller's sequence is never modified.
    return list(contents[: select_featured_count(viewport_width)])
