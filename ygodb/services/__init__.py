"""
ygodb services.

Reconciliation of crawled records into datasets, request pacing and crawl
checkpoints. Crawl strategies live in ``ygodb.services.crawl``.
"""

from ygodb.services.checkpoint import Checkpointer
from ygodb.services.pacing import RequestPacer
from ygodb.services.reconciler import (
    MERGE_ORDERS,
    IncrementalScan,
    MergeOrder,
    ReconcileResult,
    RecordStatus,
    ScanState,
    StopPolicy,
    card_stop_policy,
    classify_record,
    faq_stop_policy,
    merge_records,
    reconcile,
    should_stop,
)

__all__ = [
    "MERGE_ORDERS",
    "Checkpointer",
    "IncrementalScan",
    "MergeOrder",
    "ReconcileResult",
    "RecordStatus",
    "RequestPacer",
    "ScanState",
    "StopPolicy",
    "card_stop_policy",
    "classify_record",
    "faq_stop_policy",
    "merge_records",
    "reconcile",
    "should_stop",
]
