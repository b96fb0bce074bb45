"""
Crawl strategies over the site's paged listings and detail pages.

Listings are consumed lazily page by page, so the top-N and range strategies
stop requesting pages as soon as their slice is satisfied. All fetches are
strictly sequential; a failed fetch is logged and counted without aborting
the batch.
"""

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from itertools import islice
from typing import TypeVar

from ygodb.parsers.dom import ListingPage
from ygodb.scrapers.yugioh_db import FetchError
from ygodb.services.checkpoint import Checkpointer
from ygodb.services.reconciler import IncrementalScan, RecordStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

PROGRESS_INTERVAL = 100


@dataclass
class CrawlSummary:
    """Per-run statistics, logged at the end of a run."""

    dataset: str
    pages: int = 0
    fetched: int = 0
    new: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: int = 0
    skipped: int = 0
    stopped_at: str | None = None

    def log(self) -> None:
        logger.info(
            "%s: %d pages, %d fetched (%d new, %d updated), %d errors, %d skipped",
            self.dataset,
            self.pages,
            self.fetched,
            self.new,
            self.updated,
            self.errors,
            self.skipped,
        )
        if self.stopped_at is not None:
            logger.info("%s: stopped at known id %s", self.dataset, self.stopped_at)


def iter_listing(
    fetch_page: Callable[[int], str],
    parse_page: Callable[[str], ListingPage[T]],
    per_page: int,
    summary: CrawlSummary,
    *,
    first_page: int = 1,
) -> Iterator[T]:
    """
    Yield items from consecutive listing pages.

    Paging ends on a page without rows, on a page with fewer than per_page
    rows, or when a page cannot be fetched (logged and counted as an error).
    Rows are counted before parsing, so unparseable rows (counted as skipped)
    never make a full page look like the last one.
    """
    page_number = first_page
    while True:
        try:
            html = fetch_page(page_number)
        except FetchError as e:
            logger.error("Failed to fetch %s page %d: %s", summary.dataset, page_number, e)
            summary.errors += 1
            return

        page = parse_page(html)
        summary.pages += 1
        summary.skipped += page.skipped
        logger.info(
            "%s page %d: %d items, %d skipped",
            summary.dataset,
            page_number,
            len(page.items),
            page.skipped,
        )

        if page.rows == 0:
            return
        yield from page.items
        if page.rows < per_page:
            return
        page_number += 1


def take_top(items: Iterable[T], count: int) -> list[T]:
    """First count items of a newest-first listing."""
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    return list(islice(items, count))


def take_range(items: Iterable[T], start: int, length: int) -> list[T]:
    """Items [start, start + length) of a listing."""
    if start < 0 or length < 0:
        raise ValueError(f"Invalid range start={start} length={length}")
    return list(islice(items, start, start + length))


def scan_incremental(
    listed: Iterable[T],
    *,
    key: Callable[[T], str],
    fetch: Callable[[T], R | None],
    updated_at: Callable[[R], str | None],
    scan: IncrementalScan,
    summary: CrawlSummary,
) -> list[R]:
    """
    Walk a newest-first listing until the scan's stop policy triggers.

    Under an id-only policy each listed id is judged before fetching, so the
    stopping record itself is never fetched. Under an update-comparing policy
    every record is fetched first and judged on its updated_at.

    Returns:
        NEW and UPDATED records, in listing order
    """
    collected: list[R] = []

    for item in listed:
        record_id = key(item)

        if not scan.policy.compare_updates:
            status = scan.observe(record_id)
            if not scan.scanning:
                break
            if status is RecordStatus.UNCHANGED:
                summary.unchanged += 1
                continue

        record = _fetch_one(record_id, item, fetch, summary)
        if record is None:
            continue

        if scan.policy.compare_updates:
            status = scan.observe(record_id, updated_at(record))

        if status is RecordStatus.NEW:
            summary.new += 1
            collected.append(record)
        elif status is RecordStatus.UPDATED:
            summary.updated += 1
            collected.append(record)
        else:
            summary.unchanged += 1

        if not scan.scanning:
            break

    summary.stopped_at = scan.stopped_at
    scan.finish()
    return collected


def _fetch_one(
    record_id: str,
    item: T,
    fetch: Callable[[T], R | None],
    summary: CrawlSummary,
) -> R | None:
    try:
        record = fetch(item)
    except FetchError as e:
        logger.error("Failed to fetch %s %s: %s", summary.dataset, record_id, e)
        summary.errors += 1
        return None

    if record is None:
        logger.warning("Skipping unparseable %s %s", summary.dataset, record_id)
        summary.skipped += 1
        return None

    summary.fetched += 1
    return record


def fetch_details(
    ids: Sequence[str],
    fetch: Callable[[str], R | None],
    summary: CrawlSummary,
    *,
    checkpointer: Checkpointer[R] | None = None,
    start_from: int = 0,
) -> list[R]:
    """
    Fetch the detail record of every id, in order.

    Args:
        ids: Ids to fetch
        fetch: id -> parsed record (None when unparseable); raises FetchError
        summary: Statistics to update
        checkpointer: Saves progress every interval ids when given
        start_from: Index of the first id to fetch. Records from the latest
            checkpoint at or before this index are carried over.

    Returns:
        Fetched records, checkpointed ones first
    """
    records: list[R] = []
    if start_from > 0:
        logger.info("Resuming %s at index %d of %d", summary.dataset, start_from, len(ids))
        if checkpointer is not None:
            resumed = checkpointer.latest(start_from)
            if resumed is not None:
                records.extend(resumed[1])

    for index in range(start_from, len(ids)):
        record_id = ids[index]
        record = _fetch_one(record_id, record_id, fetch, summary)
        if record is not None:
            records.append(record)

        processed = index + 1
        if processed % PROGRESS_INTERVAL == 0:
            logger.info("%s progress: %d/%d", summary.dataset, processed, len(ids))
        if checkpointer is not None and checkpointer.due(processed):
            checkpointer.save(processed, records)

    return records
