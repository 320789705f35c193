"""
Skip/take pagination over an ordered, filtered sequence.

Sorting is performed in Python so that ordering by optional columns
stays independent of the storage layer.  ``sorted`` is stable, also
with ``reverse=True``, so entries with equal keys keep their
enumeration order and repeated calls over the same snapshot return
identical pages.
"""

from typing import Any, Callable, Iterable, TypeVar

from ipban_webui.app.schemas.ipban import PagedResult


T = TypeVar("T")

MIN_PAGE_SIZE = 10
MAX_PAGE_SIZE = 200


def clamp_page(page: int) -> int:
    """Pages are 1-based; anything lower means the first page."""
    return max(1, page)


def clamp_page_size(page_size: int) -> int:
    return min(max(page_size, MIN_PAGE_SIZE), MAX_PAGE_SIZE)


def empty_page(page: int, page_size: int) -> PagedResult:
    """An empty result echoing the clamped paging parameters."""
    return PagedResult(items=[], total=0, page=clamp_page(page), page_size=clamp_page_size(page_size))


def paginate(
    entries: Iterable[T],
    predicate: Callable[[T], bool],
    sort_key: Callable[[T], Any],
    page: int,
    page_size: int,
    descending: bool = True,
) -> PagedResult:
    """Filter, order and window ``entries``.

    Parameters
    ----------
    entries : Iterable[T]
        The full scan of one snapshot.  Consumed exactly once.
    predicate : Callable[[T], bool]
        Selects the subset to page through.
    sort_key : Callable[[T], Any]
        Key applied to the filtered subset.
    page, page_size : int
        Requested window; clamped to ``>= 1`` and
        ``[MIN_PAGE_SIZE, MAX_PAGE_SIZE]`` respectively.
    descending : bool
        Sort direction.  Defaults to newest first.

    Returns
    -------
    PagedResult
        ``items`` holds the window ``[(page-1)*page_size, page*page_size)``
        of the ordered subset (empty past the end); ``total`` is the size
        of the whole subset.
    """
    page = clamp_page(page)
    page_size = clamp_page_size(page_size)
    selected = sorted((e for e in entries if predicate(e)), key=sort_key, reverse=descending)
    start = (page - 1) * page_size
    return PagedResult(
        items=selected[start:start + page_size],
        total=len(selected),
        page=page,
        page_size=page_size,
    )
