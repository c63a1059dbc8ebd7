from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

import structlog
from azure.core.async_paging import AsyncItemPaged

from armclient.shared.core.exceptions import TooManyResultsError
from armclient.shared.core.ops_metrics import ENUMERATION_BOUND_EXCEEDED, ENUMERATION_PAGES

logger = structlog.get_logger()
T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a cursor-paged listing."""

    items: list[T] = field(default_factory=list)
    continuation_token: Optional[str] = None


async def collect_all(
    fetch_first_page: Callable[[], Awaitable[Page[T]]],
    fetch_next_page: Callable[[str], Awaitable[Page[T]]],
    *,
    max_items: int,
    label: str,
) -> list[T]:
    """
    Read every page of a listing into one list.

    Pages are requested strictly in cursor order. Enumeration stops on the
    first page that is empty or carries no continuation token, which also ends
    listings whose remote side keeps returning a cursor with empty pages.

    `max_items` is a hard stop, not a truncation: reaching it raises
    TooManyResultsError and no further page is requested, because a partial
    inventory would be mistaken for a complete one.
    """
    if max_items <= 0:
        raise ValueError("max_items must be > 0")

    items: list[T] = []
    page = await fetch_first_page()
    while True:
        ENUMERATION_PAGES.labels(label=label).inc()
        items.extend(page.items)

        if len(items) >= max_items:
            ENUMERATION_BOUND_EXCEEDED.labels(label=label).inc()
            logger.warning(
                "arm_enumeration_bound_exceeded",
                label=label,
                max_items=max_items,
                items_read=len(items),
            )
            raise TooManyResultsError(label, max_items)

        if not page.items or not page.continuation_token:
            return items

        page = await fetch_next_page(page.continuation_token)


async def read_sdk_page(
    paged: AsyncItemPaged[Any], continuation_token: Optional[str] = None
) -> Page[Any]:
    """
    Read a single page from an azure-core pager.

    `continuation_token` is the next link returned with the previous page;
    `None` reads the first page.
    """
    pages = paged.by_page(continuation_token=continuation_token)
    try:
        current = await pages.__anext__()
    except StopAsyncIteration:
        return Page()
    items = [item async for item in current]
    return Page(items=items, continuation_token=pages.continuation_token)
