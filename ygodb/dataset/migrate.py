"""
Column padding migration for dataset files written by older versions.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from ygodb.dataset.codec import FIELD_SEPARATOR, LINE_SEPARATOR, raw_field
from ygodb.dataset.store import backup_file, write_text_atomic

logger = logging.getLogger(__name__)


@dataclass
class PaddingReport:
    """Outcome of a padding run."""

    path: Path
    width: int = 0
    total_rows: int = 0
    padded_rows: int = 0
    backup: Path | None = None
    # value of the first column (card type for the cards dataset) -> padded rows
    padded_by_kind: Counter[str] = field(default_factory=Counter)


def pad_short_rows(path: Path) -> PaddingReport:
    """
    Pad every row of a dataset file to its header width.

    The file is backed up first. Blank lines and the header are kept as-is.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty
    """
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found at {path}")

    content = path.read_text(encoding="utf-8")
    if not content.strip():
        raise ValueError(f"Dataset at {path} is empty")

    report = PaddingReport(path=path)
    report.backup = backup_file(path)

    lines = content.split(LINE_SEPARATOR)
    header = lines[0]
    report.width = len(header.split(FIELD_SEPARATOR))
    out = [header]

    for line in lines[1:]:
        if not line.strip():
            out.append(line)
            continue
        report.total_rows += 1
        count = len(line.split(FIELD_SEPARATOR))
        if count < report.width:
            line = line + FIELD_SEPARATOR * (report.width - count)
            report.padded_rows += 1
            report.padded_by_kind[raw_field(line, 0) or "unknown"] += 1
        out.append(line)

    write_text_atomic(path, LINE_SEPARATOR.join(out))
    logger.info(
        "Padded %d of %d rows to %d columns in %s",
        report.padded_rows,
        report.total_rows,
        report.width,
        path,
    )
    for kind, count in sorted(report.padded_by_kind.items()):
        logger.info("  %s: %d", kind, count)
    return report
