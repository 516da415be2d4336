# =============================================================================
# core/json_extractor.py  —  JSON source -> records
# =============================================================================
#
# The source argument is either inline JSON text or a path to a .json file.
# A leading "/", "~" or drive letter ("C:\") means "path"; anything else is
# parsed as JSON.
#
# PIPELINE:
#   load -> resolve json_path -> normalize to records -> select fields
#        -> flatten -> cap at 500 records
# =============================================================================

import json
import os
import re
from typing import Any, Optional

from core.errors import NotFoundError
from core.json_path import flatten_object, resolve_json_path
from core.models import ExtractionResult, Record

MAX_RECORDS = 500

_DRIVE_LETTER_RE = re.compile(r"^[A-Za-z]:\\")


def is_file_path(source: str) -> bool:
    return source.startswith(("/", "~")) or bool(_DRIVE_LETTER_RE.match(source))


def load_json_source(source: str) -> Any:
    """Parse inline JSON, or read and parse the file it names."""
    trimmed = source.strip()
    if is_file_path(trimmed):
        with open(os.path.expanduser(trimmed), encoding="utf-8") as fh:
            return json.load(fh)
    return json.loads(trimmed)


def to_records(value: Any) -> list[Record]:
    """Lists become one record per element; scalars are wrapped as {"value": x}."""
    if isinstance(value, list):
        return [item if isinstance(item, dict) else {"value": item} for item in value]
    if isinstance(value, dict):
        return [value]
    return [{"value": value}]


def extract_json(
    source: str,
    json_path: Optional[str] = None,
    select_fields: Optional[str] = None,
    flatten: bool = False,
) -> ExtractionResult:
    """Extract records from a JSON document.

    Args:
        source: Inline JSON or an absolute path to a .json file.
        json_path: Optional dot/bracket path to the part to extract.
        select_fields: Comma-separated field names to keep.
        flatten: Collapse nested objects into dot-notation keys.

    Raises:
        NotFoundError: json_path does not resolve.
        FileNotFoundError / json.JSONDecodeError: bad source.
    """
    data = load_json_source(source)

    if json_path:
        data = resolve_json_path(data, json_path)
        if data is None:
            raise NotFoundError(f"No data found at path: {json_path}")

    records = to_records(data)

    if select_fields:
        fields = [f.strip() for f in select_fields.split(",")]
        records = [{f: r[f] for f in fields if f in r} for r in records]

    if flatten:
        records = [flatten_object(r) for r in records]

    warnings = []
    if len(records) > MAX_RECORDS:
        records = records[:MAX_RECORDS]
        warnings.append(f"Results truncated to {MAX_RECORDS} records.")

    return ExtractionResult.build("json", records, warnings=warnings)
