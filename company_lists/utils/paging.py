"""Accumulate ID sets that the store only returns in capped pages."""

from typing import Awaitable, Callable, List


async def collect_all_pages(
    fetch_page: Callable[[int, int], Awaitable[List[str]]],
    page_size: int
) -> List[str]:
    """Fetch pages sequentially until a short page is returned.

    Pages are requested one after another because each page's size decides
    whether another fetch is needed. The whole set is assembled before the
    caller filters, sorts or paginates over it.

    Args:
        fetch_page: Coroutine function taking (offset, page_size) and
            returning at most page_size IDs.
        page_size: Row cap per call.

    Returns:
        Every ID, in fetch order.

    Example:
        2500 IDs with a page size of 1000 take exactly three fetches
        (1000, 1000, 500).
    """
    collected: List[str] = []
    offset = 0

    while True:
        page = await fetch_page(offset, page_size)
        collected.extend(page)
        if len(page) < page_size:
            break
        offset += len(page)

    return collected
