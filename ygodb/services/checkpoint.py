"""
Checkpoints for long detail crawls.

Every N processed ids the records gathered so far are written to
``<checkpoint_dir>/<kind>/<kind>-temp-<index>.tsv``. A resumed run loads the
latest checkpoint at or before its start index.
"""

import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Generic, TypeVar

from ygodb.dataset.schema import TsvSchema
from ygodb.dataset.store import load_dataset, write_records

logger = logging.getLogger(__name__)

R = TypeVar("R")

_CHECKPOINT_NAME = re.compile(r"-temp-(\d+)\.tsv$")


class Checkpointer(Generic[R]):
    def __init__(self, directory: Path, schema: TsvSchema[R], interval: int) -> None:
        if interval < 1:
            raise ValueError(f"Checkpoint interval must be >= 1, got {interval}")
        self.directory = directory / schema.name
        self.schema = schema
        self.interval = interval

    def path_for(self, index: int) -> Path:
        return self.directory / f"{self.schema.name}-temp-{index}.tsv"

    def due(self, processed: int) -> bool:
        return processed > 0 and processed % self.interval == 0

    def save(self, index: int, records: Sequence[R]) -> Path:
        path = write_records(self.path_for(index), self.schema, records)
        logger.info("Checkpoint at %d: %d records -> %s", index, len(records), path)
        return path

    def latest(self, start_from: int) -> tuple[int, list[R]] | None:
        """
        Latest checkpoint whose index is <= start_from.

        Returns:
            (index, records) or None when no usable checkpoint exists
        """
        if not self.directory.exists():
            return None

        best: tuple[int, Path] | None = None
        for path in self.directory.glob(f"{self.schema.name}-temp-*.tsv"):
            match = _CHECKPOINT_NAME.search(path.name)
            if not match:
                continue
            index = int(match.group(1))
            if index <= start_from and (best is None or index > best[0]):
                best = (index, path)

        if best is None:
            return None

        index, path = best
        dataset = load_dataset(path, self.schema)
        records = [dataset.record(record_id) for record_id in dataset.ids]
        logger.info("Resuming from checkpoint %s (%d records)", path, len(records))
        return index, records
