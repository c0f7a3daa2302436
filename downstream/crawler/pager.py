"""Accumulate complete result sets from paginated API listings."""

from typing import Callable, TypeVar

from ..log import DiagnosticLog
from .models import Page
from .rate_limit import APIError, RateLimitedClient

T = TypeVar("T")

FIRST_PAGE = 1


class Pager:
    """Follows page cursors until the API reports no further page.

    Listings are best-effort: when a page fails, a warning naming the page
    is logged and the items gathered so far are returned.
    """

    def __init__(self, client: RateLimitedClient, log: DiagnosticLog):
        self.client = client
        self.log = log

    def collect(
        self,
        fetch_page: Callable[[int], Page[T]],
        description: str,
        max_items: int | None = None,
        required: bool = False,
    ) -> list[T]:
        """Return the items of every page, in page order.

        Args:
            fetch_page: Operation taking a 1-based page number
            description: What is being listed, used in diagnostics
            max_items: Stop once this many items have been collected
            required: Raise instead of returning an empty list when the
                first page cannot be fetched
        """
        items: list[T] = []
        page: int | None = FIRST_PAGE
        while page is not None:
            current = page
            try:
                result = self.client.call(
                    lambda: fetch_page(current),
                    f"{description} (page {current})",
                )
            except APIError as e:
                if required and current == FIRST_PAGE:
                    raise
                self.log.warn(f"unable to get {description} (page {current}); {e.__cause__ or e}")
                break
            items.extend(result.items)
            if max_items is not None and len(items) >= max_items:
                return items[:max_items]
            page = result.next_page
        return items
