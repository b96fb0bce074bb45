"""TSV datasets: field codec, column schemas and file storage."""

from ygodb.dataset.schema import (
    CARD_SCHEMA,
    FAQ_ID_SCHEMA,
    FAQ_SCHEMA,
    SUPPLEMENT_SCHEMA,
    TsvSchema,
)
from ygodb.dataset.store import (
    Dataset,
    MissingDatasetError,
    backup_file,
    load_dataset,
    write_dataset,
    write_records,
)

__all__ = [
    "CARD_SCHEMA",
    "FAQ_ID_SCHEMA",
    "FAQ_SCHEMA",
    "SUPPLEMENT_SCHEMA",
    "Dataset",
    "MissingDatasetError",
    "TsvSchema",
    "backup_file",
    "load_dataset",
    "write_dataset",
    "write_records",
]
