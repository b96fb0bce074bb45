"""
Incremental reconciliation of freshly parsed records into a stored dataset.

Merging is last-write-wins keyed on the record id. How merged rows are ordered
is fixed per dataset kind (see MERGE_ORDERS). Incremental crawls walk a
newest-first listing and stop once they reach records the dataset already
knows; the stop decision is the pure predicate ``should_stop`` driving the
``IncrementalScan`` state machine.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from ygodb.config import settings
from ygodb.dataset.schema import (
    CARD_SCHEMA,
    FAQ_ID_SCHEMA,
    FAQ_SCHEMA,
    SUPPLEMENT_SCHEMA,
    TsvSchema,
)
from ygodb.dataset.store import Dataset

logger = logging.getLogger(__name__)

R = TypeVar("R")


class MergeOrder(str, Enum):
    ID_DESCENDING = "id_descending"  # numeric id, newest first
    PREPEND_NEW = "prepend_new"  # incoming in arrival order, then the rest


MERGE_ORDERS: dict[str, MergeOrder] = {
    CARD_SCHEMA.name: MergeOrder.ID_DESCENDING,
    FAQ_SCHEMA.name: MergeOrder.PREPEND_NEW,
    SUPPLEMENT_SCHEMA.name: MergeOrder.PREPEND_NEW,
    FAQ_ID_SCHEMA.name: MergeOrder.PREPEND_NEW,
}


class RecordStatus(str, Enum):
    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class StopPolicy:
    """
    When an incremental crawl stops.

    Attributes:
        known_threshold: Consecutive known-and-unchanged records that end the scan
        compare_updates: Whether known records are compared on updated_at
            (decided after the detail fetch) or judged on the id alone
    """

    known_threshold: int
    compare_updates: bool = False

    def __post_init__(self) -> None:
        if self.known_threshold < 1:
            raise ValueError(f"known_threshold must be >= 1, got {self.known_threshold}")


def card_stop_policy() -> StopPolicy:
    return StopPolicy(known_threshold=settings.card_stop_threshold, compare_updates=False)


def faq_stop_policy() -> StopPolicy:
    return StopPolicy(known_threshold=settings.faq_stop_threshold, compare_updates=True)


def _id_sort_key(record_id: str) -> int:
    return int(record_id) if record_id.isdigit() else -1


def merge_records(
    dataset: Dataset[R],
    records: Iterable[R],
    order: MergeOrder | None = None,
) -> Dataset[R]:
    """
    Merge records into a dataset, last write wins.

    Args:
        dataset: Existing rows (not modified)
        records: Incoming records; a later record replaces an earlier one with the same id
        order: Row ordering, defaults to the dataset kind's order

    Returns:
        New dataset holding every existing id plus the incoming ones
    """
    schema = dataset.schema
    if order is None:
        order = MERGE_ORDERS[schema.name]

    incoming: dict[str, str] = {}
    for record in records:
        incoming[schema.record_id(record)] = schema.encode(record)

    if order is MergeOrder.ID_DESCENDING:
        rows = {**dataset.rows, **incoming}
        ordered = sorted(rows, key=_id_sort_key, reverse=True)
        return Dataset(schema, {record_id: rows[record_id] for record_id in ordered})

    merged = dict(incoming)
    for record_id, line in dataset.rows.items():
        if record_id not in merged:
            merged[record_id] = line
    return Dataset(schema, merged)


def classify_record(
    record_id: str,
    updated_at: str | None,
    known: dict[str, str | None],
) -> RecordStatus:
    """
    Compare an incoming record with the stored one.

    An existing record counts as updated only when its date is strictly later
    (string comparison, absent as "").
    """
    if record_id not in known:
        return RecordStatus.NEW
    if (updated_at or "") > (known[record_id] or ""):
        return RecordStatus.UPDATED
    return RecordStatus.UNCHANGED


def _record_updated_at(schema: TsvSchema[R], record: R) -> str | None:
    index = schema.updated_at_index
    if index is None:
        return None
    return schema.to_fields(record)[index] or None


@dataclass
class ReconcileResult:
    dataset: Dataset
    new: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)


def reconcile(dataset: Dataset[R], records: Iterable[R]) -> ReconcileResult:
    """
    Apply only NEW and UPDATED records to the dataset.

    Datasets without an updated_at column treat every known id as unchanged.
    """
    schema = dataset.schema
    known = dataset.known_updates()
    result = ReconcileResult(dataset=dataset)
    applied: list[R] = []

    for record in records:
        record_id = schema.record_id(record)
        status = classify_record(record_id, _record_updated_at(schema, record), known)
        if status is RecordStatus.NEW:
            result.new.append(record_id)
        elif status is RecordStatus.UPDATED:
            result.updated.append(record_id)
        else:
            result.unchanged.append(record_id)
            continue
        applied.append(record)

    result.dataset = merge_records(dataset, applied)
    logger.info(
        "Reconciled %s: %d new, %d updated, %d unchanged",
        schema.name,
        len(result.new),
        len(result.updated),
        len(result.unchanged),
    )
    return result


def should_stop(status: RecordStatus, consecutive_known: int, policy: StopPolicy) -> bool:
    """
    Whether the scan stops after observing a record.

    Args:
        status: Status of the record just observed
        consecutive_known: Known-and-unchanged records seen in a row, this one included
        policy: Stop policy of the dataset kind
    """
    if status is not RecordStatus.UNCHANGED:
        return False
    return consecutive_known >= policy.known_threshold


class ScanState(str, Enum):
    SCANNING = "scanning"
    STOPPING = "stopping"
    DONE = "done"


class IncrementalScan:
    """
    Tracks an incremental crawl over a newest-first listing.

    ``observe`` is called once per listed record. Under an id-only policy the
    record is judged before any detail fetch; under an update-comparing policy
    the caller passes the fetched record's updated_at. Once the threshold is
    reached the scan moves to STOPPING and the caller drains, then calls
    ``finish``.

    Args:
        known: id -> stored updated_at of the existing dataset
        policy: Stop policy of the dataset kind
    """

    def __init__(self, known: dict[str, str | None], policy: StopPolicy) -> None:
        self.known = known
        self.policy = policy
        self.state = ScanState.SCANNING
        self.consecutive_known = 0
        self.stopped_at: str | None = None
        self.observed = 0

    @property
    def scanning(self) -> bool:
        return self.state is ScanState.SCANNING

    def classify(self, record_id: str, updated_at: str | None = None) -> RecordStatus:
        if not self.policy.compare_updates:
            return RecordStatus.UNCHANGED if record_id in self.known else RecordStatus.NEW
        return classify_record(record_id, updated_at, self.known)

    def observe(self, record_id: str, updated_at: str | None = None) -> RecordStatus:
        """
        Record one listed item and advance the state.

        Raises:
            RuntimeError: If the scan is no longer scanning
        """
        if self.state is not ScanState.SCANNING:
            raise RuntimeError(f"Cannot observe {record_id}: scan is {self.state.value}")

        self.observed += 1
        status = self.classify(record_id, updated_at)
        if status is RecordStatus.UNCHANGED:
            self.consecutive_known += 1
        else:
            self.consecutive_known = 0

        if should_stop(status, self.consecutive_known, self.policy):
            self.state = ScanState.STOPPING
            self.stopped_at = record_id
            logger.info(
                "Reached %d known record(s) in a row at %s, stopping",
                self.consecutive_known,
                record_id,
            )
        return status

    def finish(self) -> None:
        self.state = ScanState.DONE
