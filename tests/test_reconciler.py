"""Tests for merging, change detection and incremental stop logic."""

import pytest

from ygodb.dataset.schema import CARD_SCHEMA, FAQ_SCHEMA
from ygodb.dataset.store import Dataset
from ygodb.models import FaqEntry, MonsterCard, SpellCard
from ygodb.services.reconciler import (
    IncrementalScan,
    MergeOrder,
    RecordStatus,
    ScanState,
    StopPolicy,
    classify_record,
    merge_records,
    reconcile,
    should_stop,
)


def faq(faq_id: str, updated_at: str | None = None, question: str = "Q") -> FaqEntry:
    return FaqEntry(faq_id=faq_id, question=question, answer="A", updated_at=updated_at)


def faq_dataset(*entries: FaqEntry) -> Dataset[FaqEntry]:
    return Dataset(FAQ_SCHEMA, {entry.faq_id: FAQ_SCHEMA.encode(entry) for entry in entries})


class TestMergeRecords:
    def test_last_write_wins(self) -> None:
        """Incoming records replace stored rows with the same id."""
        dataset = faq_dataset(faq("1", question="old"), faq("2"))

        merged = merge_records(dataset, [faq("1", question="new")])

        assert merged.record("1").question == "new"
        assert merged.ids == ["1", "2"]

    def test_later_duplicate_wins(self) -> None:
        """Within one batch the last record for an id wins."""
        merged = merge_records(faq_dataset(), [faq("1", question="a"), faq("1", question="b")])

        assert merged.record("1").question == "b"

    def test_prepend_new_order(self) -> None:
        """Incoming records come first, then the remaining rows in their old order."""
        dataset = faq_dataset(faq("10"), faq("5"), faq("7"))

        merged = merge_records(dataset, [faq("12"), faq("5")])

        assert merged.ids == ["12", "5", "10", "7"]

    def test_id_descending_order(
        self, monster_card: MonsterCard, spell_card: SpellCard
    ) -> None:
        """Cards are ordered by numeric id, newest first."""
        dataset = Dataset(CARD_SCHEMA, {spell_card.card_id: CARD_SCHEMA.encode(spell_card)})

        merged = merge_records(dataset, [monster_card])

        assert merged.ids == ["5500", "4007"]

    def test_numeric_not_lexical_order(self) -> None:
        """'10' sorts above '9'."""
        merged = merge_records(faq_dataset(), [faq("9"), faq("10")], MergeOrder.ID_DESCENDING)

        assert merged.ids == ["10", "9"]

    def test_idempotent(self) -> None:
        """Merging the same records twice changes nothing."""
        dataset = faq_dataset(faq("3"), faq("1"))
        incoming = [faq("2"), faq("1", "2021")]

        once = merge_records(dataset, incoming)
        twice = merge_records(once, incoming)

        assert twice.rows == once.rows

    def test_existing_dataset_untouched(self) -> None:
        """Merging returns a new dataset."""
        dataset = faq_dataset(faq("1"))

        merge_records(dataset, [faq("2")])

        assert dataset.ids == ["1"]


class TestChangeDetection:
    def test_unknown_id_is_new(self) -> None:
        assert classify_record("9", "2020", {}) is RecordStatus.NEW

    def test_older_date_is_unchanged(self) -> None:
        """Stored 2020, incoming 2019: kept."""
        assert classify_record("1", "2019/05/01", {"1": "2020/01/01"}) is RecordStatus.UNCHANGED

    def test_same_date_is_unchanged(self) -> None:
        assert classify_record("1", "2020/01/01", {"1": "2020/01/01"}) is RecordStatus.UNCHANGED

    def test_newer_date_is_updated(self) -> None:
        """Stored 2020, incoming 2021: replaced."""
        assert classify_record("1", "2021/03/01", {"1": "2020/01/01"}) is RecordStatus.UPDATED

    def test_absent_dates(self) -> None:
        """Absent dates compare as empty strings."""
        assert classify_record("1", "2020", {"1": None}) is RecordStatus.UPDATED
        assert classify_record("1", None, {"1": "2020"}) is RecordStatus.UNCHANGED

    def test_reconcile_applies_only_new_and_updated(self) -> None:
        """Unchanged records are not written."""
        dataset = faq_dataset(faq("1", "2020/01/01", question="stored"))

        result = reconcile(
            dataset,
            [faq("1", "2019/01/01", question="stale"), faq("2", "2019/01/01")],
        )

        assert result.new == ["2"]
        assert result.unchanged == ["1"]
        assert result.dataset.record("1").question == "stored"

    def test_reconcile_replaces_newer(self) -> None:
        dataset = faq_dataset(faq("1", "2020/01/01", question="stored"))

        result = reconcile(dataset, [faq("1", "2021/01/01", question="fresh")])

        assert result.updated == ["1"]
        assert result.dataset.record("1").question == "fresh"


class TestShouldStop:
    def test_new_and_updated_never_stop(self) -> None:
        policy = StopPolicy(known_threshold=1)

        assert not should_stop(RecordStatus.NEW, 5, policy)
        assert not should_stop(RecordStatus.UPDATED, 5, policy)

    def test_threshold(self) -> None:
        """Stops once the consecutive known count reaches the threshold."""
        policy = StopPolicy(known_threshold=5, compare_updates=True)

        assert not should_stop(RecordStatus.UNCHANGED, 4, policy)
        assert should_stop(RecordStatus.UNCHANGED, 5, policy)

    def test_invalid_threshold(self) -> None:
        with pytest.raises(ValueError):
            StopPolicy(known_threshold=0)


class TestIncrementalScan:
    def test_immediate_stop_on_first_known_id(self) -> None:
        """Threshold 1 stops on the first known id."""
        scan = IncrementalScan({"4": None}, StopPolicy(known_threshold=1))

        statuses = [scan.observe(record_id) for record_id in ("7", "6", "5", "4")]

        assert statuses[:3] == [RecordStatus.NEW] * 3
        assert scan.state is ScanState.STOPPING
        assert scan.stopped_at == "4"

    def test_new_record_resets_counter(self) -> None:
        """An interleaved new record restarts the count."""
        known = {str(n): "2020" for n in range(10)}
        scan = IncrementalScan(known, StopPolicy(known_threshold=5, compare_updates=True))

        for record_id in ("1", "2", "3", "4"):
            scan.observe(record_id, "2020")
        scan.observe("new", "2024")
        assert scan.consecutive_known == 0

        for record_id in ("5", "6", "7", "8"):
            scan.observe(record_id, "2020")
        assert scan.scanning
        scan.observe("9", "2020")
        assert scan.state is ScanState.STOPPING

    def test_updated_record_resets_counter(self) -> None:
        """An updated record counts as a change."""
        scan = IncrementalScan({"1": "2020", "2": "2020"}, StopPolicy(2, compare_updates=True))

        scan.observe("1", "2020")
        assert scan.observe("2", "2021") is RecordStatus.UPDATED
        assert scan.consecutive_known == 0
        assert scan.scanning

    def test_observe_after_stop_raises(self) -> None:
        scan = IncrementalScan({"1": None}, StopPolicy(known_threshold=1))
        scan.observe("1")

        with pytest.raises(RuntimeError):
            scan.observe("2")

    def test_finish(self) -> None:
        scan = IncrementalScan({}, StopPolicy(known_threshold=1))

        scan.finish()

        assert scan.state is ScanState.DONE
