"""
Low-level TSV field encoding.

Fields never contain raw tabs or line breaks: they are written as the two
character sequences ``\\t``, ``\\n`` and ``\\r``. Backslashes themselves are not
escaped, which keeps files compatible with earlier exports.
"""

import json
import re
from collections.abc import Iterable, Sequence
from enum import Enum

FIELD_SEPARATOR = "\t"
LINE_SEPARATOR = "\n"

_ESCAPES = {"\t": "\\t", "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"t": "\t", "n": "\n", "r": "\r"}
_ESCAPE_PATTERN = re.compile(r"[\t\n\r]")
_UNESCAPE_PATTERN = re.compile(r"\\([tnr])")


def escape_field(value: str) -> str:
    return _ESCAPE_PATTERN.sub(lambda m: _ESCAPES[m.group(0)], value)


def unescape_field(value: str) -> str:
    return _UNESCAPE_PATTERN.sub(lambda m: _UNESCAPES[m.group(1)], value)


def to_field(value: object) -> str:
    """
    Format a scalar for a TSV column.

    None -> "", bools -> "true"/"false", enums -> their value, other -> str().
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def to_json_field(values: Iterable[object]) -> str:
    """Compact JSON array, non-ASCII kept as-is."""
    items = [item.value if isinstance(item, Enum) else item for item in values]
    return json.dumps(items, ensure_ascii=False, separators=(",", ":"))


def parse_bool(value: str) -> bool:
    return value == "true"


def parse_optional_int(value: str) -> int | None:
    return int(value) if value else None


def join_row(fields: Sequence[str]) -> str:
    """Escape and join one row."""
    return FIELD_SEPARATOR.join(escape_field(field) for field in fields)


def split_row(line: str, width: int | None = None) -> list[str]:
    """
    Split and unescape one row.

    Args:
        line: Raw TSV line without its line terminator
        width: Expected column count. Short rows are padded with empty fields;
            longer rows are returned as-is.

    Returns:
        Unescaped field values
    """
    fields = [unescape_field(field) for field in line.split(FIELD_SEPARATOR)]
    if width is not None and len(fields) < width:
        fields.extend([""] * (width - len(fields)))
    return fields


def raw_field(line: str, index: int) -> str:
    """Field at index of a raw line, "" when the row is too short."""
    fields = line.split(FIELD_SEPARATOR)
    return fields[index] if index < len(fields) else ""
