"""
Pad short rows of a dataset file to its header width.

Files written by older versions dropped trailing empty columns. This job backs
the file up to ``<file>.backup`` and rewrites it with every row padded.

Usage:
    python -m ygodb.jobs.fix_columns            # cards-all.tsv
    python -m ygodb.jobs.fix_columns faq
"""

import argparse
import logging
from pathlib import Path

from ygodb.config import (
    CARDS_FILENAME,
    DETAILS_FILENAME,
    FAQ_FILENAME,
    FAQ_IDS_FILENAME,
    settings,
)
from ygodb.dataset.migrate import PaddingReport, pad_short_rows

logger = logging.getLogger(__name__)

DATASET_FILES = {
    "cards": CARDS_FILENAME,
    "faq": FAQ_FILENAME,
    "details": DETAILS_FILENAME,
    "faqids": FAQ_IDS_FILENAME,
}


def run_fix_columns(dataset: str, data_dir: Path) -> PaddingReport:
    return pad_short_rows(data_dir / DATASET_FILES[dataset])


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Pad short dataset rows.")
    parser.add_argument("dataset", nargs="?", choices=sorted(DATASET_FILES), default="cards")
    parser.add_argument("--data-dir", type=Path, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        report = run_fix_columns(args.dataset, args.data_dir or settings.data_dir)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 1

    logger.info("Backup written to %s", report.backup)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
