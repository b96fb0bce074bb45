"""
TSV dataset files.

A dataset is loaded into an ordered id -> raw line map. Rows that are not
touched by a run are written back exactly as they were read.
"""

import logging
import os
import shutil
import stat
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Generic, TypeVar

from ygodb.dataset.codec import LINE_SEPARATOR, raw_field, split_row
from ygodb.dataset.schema import TsvSchema

logger = logging.getLogger(__name__)

R = TypeVar("R")

BACKUP_SUFFIX = ".backup"


class MissingDatasetError(Exception):
    """A dataset another step depends on is missing or empty."""


class Dataset(Generic[R]):
    """
    Rows of one dataset file keyed by record id, in file order.

    Args:
        schema: Column layout of the file
        rows: Raw (escaped) lines keyed by id
    """

    def __init__(self, schema: TsvSchema[R], rows: dict[str, str] | None = None) -> None:
        self.schema = schema
        self.rows: dict[str, str] = dict(rows) if rows else {}

    def __contains__(self, record_id: object) -> bool:
        return record_id in self.rows

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[str]:
        return iter(self.rows)

    @property
    def ids(self) -> list[str]:
        return list(self.rows)

    def fields(self, record_id: str) -> list[str]:
        """Unescaped fields of a stored row, padded to the schema width."""
        return split_row(self.rows[record_id], self.schema.width)

    def record(self, record_id: str) -> R:
        return self.schema.decode(self.rows[record_id])

    def updated_at(self, record_id: str) -> str | None:
        index = self.schema.updated_at_index
        if index is None or record_id not in self.rows:
            return None
        return raw_field(self.rows[record_id], index) or None

    def known_updates(self) -> dict[str, str | None]:
        """id -> stored updated_at for every row."""
        return {record_id: self.updated_at(record_id) for record_id in self.rows}


def parse_dataset(text: str, schema: TsvSchema[R]) -> Dataset[R]:
    """
    Build a dataset from file content.

    The first line is the header. Blank lines and rows without an id are
    ignored; a repeated id keeps its first position and its last content.
    """
    dataset: Dataset[R] = Dataset(schema)
    lines = text.split(LINE_SEPARATOR)
    id_index = schema.id_index

    for line in lines[1:]:
        line = line.rstrip("\r")
        if not line.strip():
            continue
        record_id = raw_field(line, id_index)
        if not record_id:
            logger.debug("Ignoring %s row without id", schema.name)
            continue
        dataset.rows[record_id] = line

    return dataset


def load_dataset(path: Path, schema: TsvSchema[R], *, required: bool = False) -> Dataset[R]:
    """
    Load a dataset file.

    Args:
        path: TSV file
        schema: Column layout of the file
        required: Treat a missing or empty dataset as fatal

    Returns:
        Loaded dataset. A missing file is an empty dataset unless required.

    Raises:
        MissingDatasetError: If required and the file is missing or has no rows
    """
    if not path.exists():
        if required:
            raise MissingDatasetError(f"{schema.name} dataset not found at {path}")
        logger.info("No existing %s dataset at %s, starting empty", schema.name, path)
        return Dataset(schema)

    dataset = parse_dataset(path.read_text(encoding="utf-8"), schema)
    if required and not dataset:
        raise MissingDatasetError(f"{schema.name} dataset at {path} has no rows")

    logger.info("Loaded %d %s rows from %s", len(dataset), schema.name, path)
    return dataset


def render_lines(schema: TsvSchema[R], lines: Iterable[str]) -> str:
    """Header plus rows, LF-joined, no trailing newline."""
    return LINE_SEPARATOR.join([schema.header, *lines])


def _target_mode(path: Path) -> int:
    """Mode for a rewritten file: the existing file's, else 0o666 minus the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_text_atomic(path: Path, content: str) -> None:
    """Replace path with content through a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_mode(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        # mkstemp creates 0600 files
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_dataset(path: Path, dataset: Dataset[R]) -> Path:
    write_text_atomic(path, render_lines(dataset.schema, dataset.rows.values()))
    logger.info("Wrote %d %s rows to %s", len(dataset), dataset.schema.name, path)
    return path


def write_records(path: Path, schema: TsvSchema[R], records: Iterable[R]) -> Path:
    """Write records wholesale, replacing whatever the file held."""
    dataset: Dataset[R] = Dataset(schema)
    for record in records:
        dataset.rows[schema.record_id(record)] = schema.encode(record)
    return write_dataset(path, dataset)


def backup_file(path: Path) -> Path | None:
    """
    Copy path to ``<path>.backup``.

    Returns:
        Backup path, or None when there was nothing to back up
    """
    if not path.exists():
        return None
    backup = path.with_name(path.name + BACKUP_SUFFIX)
    shutil.copy2(path, backup)
    logger.info("Backed up %s to %s", path, backup)
    return backup
