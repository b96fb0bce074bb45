"""
Update the TSV datasets from the card database.

Tasks:
    cards    card search listing -> cards-all.tsv
    detail   per-card supplement pages -> details-all.tsv
    faq      FAQ detail pages -> faq-all.tsv
    faqids   every FAQ id -> faqid-all.tsv
    all      cards, detail and faq in sequence

The default strategy is incremental: walk the newest-first listing until
already-known records are reached. ``--force-all``, ``--top``, ``--range`` and
``--ids``/``--ids-file`` select the other strategies.

Usage:
    ygodb cards
    ygodb faq --top 50
    ygodb detail --force-all --start-from 3000
    ygodb faq --ids 115,116
"""

import argparse
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from ygodb.config import (
    CARDS_FILENAME,
    DETAILS_FILENAME,
    FAQ_FILENAME,
    FAQ_IDS_FILENAME,
    settings,
)
from ygodb.dataset.schema import CARD_SCHEMA, FAQ_ID_SCHEMA, FAQ_SCHEMA, SUPPLEMENT_SCHEMA
from ygodb.dataset.store import (
    Dataset,
    MissingDatasetError,
    backup_file,
    load_dataset,
    write_dataset,
    write_records,
)
from ygodb.models import Card, CardSupplement, FaqEntry
from ygodb.parsers import (
    parse_card_listing,
    parse_card_supplement,
    parse_faq_detail,
    parse_faq_id_listing,
)
from ygodb.scrapers.yugioh_db import SessionError, YugiohDbClient
from ygodb.services.checkpoint import Checkpointer
from ygodb.services.crawl import (
    CrawlSummary,
    fetch_details,
    iter_listing,
    scan_incremental,
    take_range,
    take_top,
)
from ygodb.services.pacing import RequestPacer
from ygodb.services.reconciler import (
    IncrementalScan,
    card_stop_policy,
    faq_stop_policy,
    merge_records,
    reconcile,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")
T = TypeVar("T")

TASKS = ("cards", "detail", "faq", "faqids", "all")
ALL_SEQUENCE = ("cards", "detail", "faq")


@dataclass(frozen=True)
class RunOptions:
    """Strategy flags shared by every task of a run."""

    force_all: bool = False
    top: int | None = None
    range: tuple[int, int] | None = None
    ids: tuple[str, ...] | None = None
    start_from: int = 0

    @property
    def targeted(self) -> bool:
        return self.ids is not None

    @property
    def incremental(self) -> bool:
        return not (self.force_all or self.targeted) and self.top is None and self.range is None


def slice_listing(items: Iterable[T], options: RunOptions) -> list[T]:
    """Apply the top-N or range strategy, or take everything."""
    if options.top is not None:
        return take_top(items, options.top)
    if options.range is not None:
        return take_range(items, *options.range)
    return list(items)


def save_merged(
    path: Path,
    dataset: Dataset[R],
    records: Sequence[R],
    summary: CrawlSummary,
    *,
    count_changes: bool = True,
) -> None:
    """Merge records into the dataset (last write wins) and write it if anything arrived."""
    if not records:
        logger.info("%s: nothing to write", summary.dataset)
        return

    if count_changes:
        schema = dataset.schema
        for record in records:
            if schema.record_id(record) in dataset:
                summary.updated += 1
            else:
                summary.new += 1

    write_dataset(path, merge_records(dataset, records))


def save_reconciled(
    path: Path,
    dataset: Dataset[R],
    records: Sequence[R],
    summary: CrawlSummary,
) -> None:
    """Apply only new records and records with a later updated_at, then write."""
    result = reconcile(dataset, records)
    summary.new += len(result.new)
    summary.updated += len(result.updated)
    summary.unchanged += len(result.unchanged)

    if not (result.new or result.updated):
        logger.info("%s: nothing to write", summary.dataset)
        return
    write_dataset(path, result.dataset)


# =============================================================================
# CARDS
# =============================================================================


def update_cards(client: YugiohDbClient, data_dir: Path, options: RunOptions) -> CrawlSummary:
    summary = CrawlSummary(dataset=CARD_SCHEMA.name)
    path = data_dir / CARDS_FILENAME
    dataset = load_dataset(path, CARD_SCHEMA)

    listing = iter_listing(
        client.fetch_card_list_page,
        parse_card_listing,
        client.config.results_per_page,
        summary,
    )

    if options.incremental:
        cards: list[Card] = scan_incremental(
            listing,
            key=lambda card: card.card_id,
            fetch=lambda card: card,
            updated_at=lambda card: None,
            scan=IncrementalScan(dataset.known_updates(), card_stop_policy()),
            summary=summary,
        )
        save_merged(path, dataset, cards, summary, count_changes=False)
    else:
        cards = slice_listing(listing, options)
        summary.fetched = len(cards)
        save_merged(path, dataset, cards, summary)

    return summary


# =============================================================================
# CARD SUPPLEMENTS
# =============================================================================


def _supplement_fetcher(client: YugiohDbClient):
    def fetch(card_id: str) -> CardSupplement:
        return parse_card_supplement(client.fetch_card_detail(card_id), card_id)

    return fetch


def update_details(client: YugiohDbClient, data_dir: Path, options: RunOptions) -> CrawlSummary:
    summary = CrawlSummary(dataset=SUPPLEMENT_SCHEMA.name)
    path = data_dir / DETAILS_FILENAME
    dataset = load_dataset(path, SUPPLEMENT_SCHEMA)
    checkpointer = None

    if options.targeted:
        ids = list(options.ids or ())
        backup_file(path)
    else:
        cards = load_dataset(data_dir / CARDS_FILENAME, CARD_SCHEMA, required=True)
        if options.incremental:
            ids = [card_id for card_id in cards.ids if card_id not in dataset]
            logger.info("%d of %d cards have no supplement entry yet", len(ids), len(cards))
        elif options.force_all:
            ids = cards.ids
            checkpointer = Checkpointer(
                settings.checkpoint_dir, SUPPLEMENT_SCHEMA, settings.checkpoint_interval
            )
        else:
            ids = slice_listing(cards.ids, options)

    entries = fetch_details(
        ids,
        _supplement_fetcher(client),
        summary,
        checkpointer=checkpointer,
        start_from=options.start_from if options.force_all else 0,
    )

    with_info = sum(1 for entry in entries if entry.has_supplement)
    with_pendulum = sum(1 for entry in entries if entry.has_pendulum_supplement)
    logger.info(
        "%d supplements fetched: %d with card text rulings, %d with pendulum rulings",
        len(entries),
        with_info,
        with_pendulum,
    )

    save_merged(path, dataset, entries, summary)
    return summary


# =============================================================================
# FAQ
# =============================================================================


def _faq_fetcher(client: YugiohDbClient):
    def fetch(faq_id: str) -> FaqEntry | None:
        return parse_faq_detail(client.fetch_faq_detail(faq_id), faq_id)

    return fetch


def update_faq(client: YugiohDbClient, data_dir: Path, options: RunOptions) -> CrawlSummary:
    summary = CrawlSummary(dataset=FAQ_SCHEMA.name)
    path = data_dir / FAQ_FILENAME
    dataset = load_dataset(path, FAQ_SCHEMA)
    fetch = _faq_fetcher(client)

    if options.incremental:
        listing = iter_listing(
            client.fetch_faq_list_page,
            parse_faq_id_listing,
            client.config.results_per_page,
            summary,
        )
        entries = scan_incremental(
            listing,
            key=lambda faq_id: faq_id,
            fetch=fetch,
            updated_at=lambda entry: entry.updated_at,
            scan=IncrementalScan(dataset.known_updates(), faq_stop_policy()),
            summary=summary,
        )
        save_merged(path, dataset, entries, summary, count_changes=False)
        return summary

    checkpointer = None
    if options.targeted:
        ids = list(options.ids or ())
        backup_file(path)
    elif options.force_all:
        id_list = load_dataset(data_dir / FAQ_IDS_FILENAME, FAQ_ID_SCHEMA, required=True)
        ids = id_list.ids
        client.pacer = RequestPacer(settings.faq_full_delay_min, settings.faq_full_delay_max)
        checkpointer = Checkpointer(
            settings.checkpoint_dir, FAQ_SCHEMA, settings.checkpoint_interval
        )
    else:
        listing = iter_listing(
            client.fetch_faq_list_page,
            parse_faq_id_listing,
            client.config.results_per_page,
            summary,
        )
        ids = slice_listing(listing, options)

    entries = fetch_details(
        ids,
        fetch,
        summary,
        checkpointer=checkpointer,
        start_from=options.start_from if options.force_all else 0,
    )
    if options.force_all or options.targeted:
        save_merged(path, dataset, entries, summary)
    else:
        save_reconciled(path, dataset, entries, summary)
    return summary


def update_faq_ids(client: YugiohDbClient, data_dir: Path, options: RunOptions) -> CrawlSummary:
    """Walk every FAQ listing page and replace the FAQ id list."""
    summary = CrawlSummary(dataset=FAQ_ID_SCHEMA.name)
    listing = iter_listing(
        client.fetch_faq_list_page,
        parse_faq_id_listing,
        client.config.results_per_page,
        summary,
    )
    faq_ids = list(dict.fromkeys(slice_listing(listing, options)))
    summary.fetched = len(faq_ids)

    if faq_ids:
        write_records(data_dir / FAQ_IDS_FILENAME, FAQ_ID_SCHEMA, faq_ids)
    else:
        logger.warning("No FAQ ids found, keeping the existing list")
    return summary


TASK_RUNNERS = {
    "cards": update_cards,
    "detail": update_details,
    "faq": update_faq,
    "faqids": update_faq_ids,
}


def run_update(
    task: str,
    options: RunOptions,
    data_dir: Path,
    client: YugiohDbClient | None = None,
) -> list[CrawlSummary]:
    """
    Run one task (or the "all" sequence) with a single session.

    Raises:
        ValueError: If the task is unknown or the strategy is unsupported for it
        SessionError: If no session could be established
        MissingDatasetError: If a prerequisite dataset is missing or empty
    """
    tasks = ALL_SEQUENCE if task == "all" else (task,)
    for name in tasks:
        if name not in TASK_RUNNERS:
            raise ValueError(f"Unknown task: {name}")
        if name in ("cards", "faqids") and options.targeted:
            raise ValueError(f"--ids/--ids-file are not supported for {name}")

    summaries: list[CrawlSummary] = []
    owns_client = client is None
    if client is None:
        client = YugiohDbClient()
    try:
        client.establish_session()
        for name in tasks:
            logger.info("Running %s update...", name)
            summary = TASK_RUNNERS[name](client, data_dir, options)
            summary.log()
            summaries.append(summary)
    finally:
        if owns_client:
            client.close()

    return summaries


def read_ids_file(path: Path) -> tuple[str, ...]:
    """
    One id per line; blank lines and ``#`` comments ignored.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not path.exists():
        raise FileNotFoundError(f"Ids file not found at {path}")
    ids = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            ids.append(line)
    return tuple(ids)


def parse_ids(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ygodb", description="Update card database datasets.")
    parser.add_argument("task", choices=TASKS)

    strategy = parser.add_mutually_exclusive_group()
    strategy.add_argument("--force-all", action="store_true", help="Re-crawl everything")
    strategy.add_argument("--top", type=int, metavar="N", help="Newest N records only")
    strategy.add_argument(
        "--range", type=int, nargs=2, metavar=("START", "LEN"), help="Records [START, START+LEN)"
    )
    strategy.add_argument("--ids", type=parse_ids, help="Comma-separated ids to refetch")
    strategy.add_argument("--ids-file", type=Path, help="File with one id per line to refetch")

    parser.add_argument(
        "--start-from", type=int, default=0, metavar="N", help="Resume a --force-all run"
    )
    parser.add_argument("--data-dir", type=Path, default=None, help="Dataset directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.start_from < 0:
        logger.error("--start-from must be >= 0")
        return 1

    ids = args.ids
    if args.ids_file is not None:
        try:
            ids = read_ids_file(args.ids_file)
        except FileNotFoundError as e:
            logger.error("%s", e)
            return 1

    options = RunOptions(
        force_all=args.force_all,
        top=args.top,
        range=tuple(args.range) if args.range else None,
        ids=ids,
        start_from=args.start_from,
    )
    data_dir = args.data_dir or settings.data_dir

    try:
        run_update(args.task, options, data_dir)
    except ValueError as e:
        logger.error("%s", e)
        return 1
    except SessionError as e:
        logger.error("Session error: %s", e)
        return 1
    except MissingDatasetError as e:
        logger.error("Missing prerequisite: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
