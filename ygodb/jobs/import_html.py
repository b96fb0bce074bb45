"""
Import saved card search result pages into the cards dataset.

Usage:
    python -m ygodb.jobs.import_html page1.html page2.html
"""

import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from ygodb.config import CARDS_FILENAME, settings
from ygodb.dataset.schema import CARD_SCHEMA
from ygodb.dataset.store import load_dataset, write_dataset
from ygodb.models import Card
from ygodb.parsers import parse_card_list_page
from ygodb.services.reconciler import merge_records

logger = logging.getLogger(__name__)


def parse_html_files(paths: Sequence[Path]) -> list[Card]:
    """
    Parse every card row of the given pages, in file order.

    Raises:
        FileNotFoundError: If a page doesn't exist
    """
    cards: list[Card] = []
    for path in paths:
        if not path.exists():
            raise FileNotFoundError(f"HTML file not found at {path}")
        page_cards = parse_card_list_page(path.read_text(encoding="utf-8"))
        logger.info("Parsed %d cards from %s", len(page_cards), path)
        cards.extend(page_cards)
    return cards


def run_import(paths: Sequence[Path], data_dir: Path) -> int:
    """
    Merge the cards found in the pages into the cards dataset.

    Returns:
        Number of cards parsed
    """
    cards = parse_html_files(paths)
    if not cards:
        logger.warning("No cards found in %d file(s)", len(paths))
        return 0

    path = data_dir / CARDS_FILENAME
    dataset = load_dataset(path, CARD_SCHEMA)
    write_dataset(path, merge_records(dataset, cards))
    return len(cards)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Import saved card search pages.")
    parser.add_argument("pages", nargs="+", type=Path)
    parser.add_argument("--data-dir", type=Path, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        count = run_import(args.pages, args.data_dir or settings.data_dir)
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1

    logger.info("Imported %d cards", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
