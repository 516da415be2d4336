# =============================================================================
# core/output_formatter.py  —  Output Formatter (format resolution + rendering)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Takes an ExtractionResult and turns it into the text a tool returns.
#
# HOW THE FORMAT IS CHOSEN (strict priority):
#   1. explicit_format, if the caller passed one
#   2. the preferred format of a known target_tool (TARGET_TOOL_FORMATS)
#   3. the shape of the data:
#        0 records                           -> json
#        1 record, nesting depth > 2         -> json
#        1 record, nesting depth <= 2        -> key-value
#        > 3 records, all values flat        -> csv
#        any string value > 200 chars        -> markdown
#        otherwise                           -> json
#
# FIELD MAPPING:
#   When target_tool is a write tool with a known parameter list
#   (TARGET_TOOL_FIELDS), the first record's keys are matched against it and
#   the result is attached to the json rendering as "mappedFields".
#
# KEEP THE TABLES IN SYNC:
#   TARGET_TOOL_FORMATS and TARGET_TOOL_FIELDS describe the parameter
#   schemas of the tools in tools/mcp_server.py.  Update both when a tool's
#   parameters change.
# =============================================================================

import json
from typing import Any, Optional

from core.models import ExtractionResult, Record, TargetTool

# Heuristic thresholds.  Tunable; nothing else depends on these values.
MAX_KEY_VALUE_DEPTH = 2
CSV_MIN_RECORDS = 3
LONG_TEXT_CHARS = 200

SUMMARY_MAX_DISTINCT = 5
SUMMARY_VALUE_CHARS = 100


TARGET_TOOL_FORMATS: dict[TargetTool, str] = {
    TargetTool.ADD_CUSTOMER: "json",
    TargetTool.UPDATE_CUSTOMER_STATUS: "json",
    TargetTool.ADD_ENVIRONMENT: "json",
    TargetTool.ADD_CHECKLIST_ITEM: "json",
    TargetTool.UPDATE_CHECKLIST_ITEM: "json",
    TargetTool.SEARCH_BEST_PRACTICES: "markdown",
    TargetTool.GET_IMPLEMENTATION_CHECKLIST: "markdown",
    TargetTool.GET_CUSTOMER: "key-value",
    TargetTool.LIST_CUSTOMERS: "csv",
    TargetTool.GET_ENVIRONMENTS: "csv",
    TargetTool.VALIDATE_ENVIRONMENT_READINESS: "summary",
}

TARGET_TOOL_FIELDS: dict[TargetTool, list[str]] = {
    TargetTool.ADD_CUSTOMER: [
        "name",
        "industry",
        "region",
        "engagementType",
        "d365Modules",
        "goLiveDate",
        "assignedArchitect",
    ],
    TargetTool.ADD_ENVIRONMENT: [
        "customerId",
        "name",
        "type",
        "region",
        "version",
        "lcsProjectId",
        "url",
    ],
    TargetTool.ADD_CHECKLIST_ITEM: [
        "customerId",
        "phase",
        "category",
        "title",
        "description",
        "owner",
        "dueDate",
    ],
    TargetTool.UPDATE_CUSTOMER_STATUS: ["customerId", "status", "notes"],
    TargetTool.UPDATE_CHECKLIST_ITEM: ["customerId", "itemId", "status", "notes"],
}


# =============================================================================
# PUBLIC API
# =============================================================================
def format_result(
    result: ExtractionResult,
    explicit_format: Optional[str] = None,
    target_tool: Optional[str] = None,
) -> str:
    """Resolve the output format, record it in metadata, and render.

    Args:
        result: The extraction envelope.  Its metadata is updated in place
            (output_format, target_tool).
        explicit_format: Caller override; wins over everything else.
        target_tool: Name of the tool that will consume the output.

    Returns:
        The rendered text.
    """
    output_format = resolve_format(result, explicit_format, target_tool)
    result.metadata.output_format = output_format
    if target_tool:
        result.metadata.target_tool = target_tool

    mapped_fields = map_fields_to_target(result.records, target_tool) if target_tool else None

    if output_format == "markdown":
        return render_markdown(result)
    if output_format == "summary":
        return render_summary(result)
    if output_format == "key-value":
        return render_key_value(result)
    if output_format == "csv":
        return render_csv(result)
    return render_json(result, mapped_fields)


def resolve_format(
    result: ExtractionResult,
    explicit_format: Optional[str] = None,
    target_tool: Optional[str] = None,
) -> str:
    """Pick the output format: explicit > target-tool table > data shape."""
    if explicit_format:
        return explicit_format

    target = TargetTool.lookup(target_tool)
    if target is not None and target in TARGET_TOOL_FORMATS:
        return TARGET_TOOL_FORMATS[target]

    return detect_format_from_data(result.records)


def detect_format_from_data(records: list[Record]) -> str:
    """The data-shape heuristic (see the module header for the rules)."""
    if not records:
        return "json"

    if len(records) == 1:
        if max_depth(records[0]) > MAX_KEY_VALUE_DEPTH:
            return "json"
        return "key-value"

    all_flat = all(
        not isinstance(value, dict)
        for record in records
        for value in record.values()
    )
    if all_flat and len(records) > CSV_MIN_RECORDS:
        return "csv"

    has_long_text = any(
        isinstance(value, str) and len(value) > LONG_TEXT_CHARS
        for record in records
        for value in record.values()
    )
    if has_long_text:
        return "markdown"

    return "json"


def max_depth(value: Any) -> int:
    """Nesting depth of dicts: non-dict 0, empty dict 0, else 1 + deepest child.

    Lists are leaves and count as depth 0.
    """
    if not isinstance(value, dict) or not value:
        return 0
    return 1 + max(max_depth(child) for child in value.values())


def map_fields_to_target(
    records: list[Record],
    target_tool: Optional[str],
) -> Optional[dict[str, Any]]:
    """Match the first record's keys to a write tool's expected parameters.

    For each expected field: case-insensitive exact key match first, then a
    case-insensitive substring match in either direction (first key in the
    record's order wins).  Unmatched fields map to None.

    Returns:
        The mapping, or None when the tool has no field list or there are
        no records.
    """
    target = TargetTool.lookup(target_tool)
    expected_fields = TARGET_TOOL_FIELDS.get(target) if target is not None else None
    if not expected_fields or not records:
        return None

    source = records[0]
    mapped: dict[str, Any] = {}

    for expected in expected_fields:
        wanted = expected.lower()

        exact_key = next((k for k in source if k.lower() == wanted), None)
        if exact_key is not None:
            mapped[expected] = source[exact_key]
            continue

        partial_key = next(
            (k for k in source if wanted in k.lower() or k.lower() in wanted),
            None,
        )
        mapped[expected] = source[partial_key] if partial_key is not None else None

    return mapped


# =============================================================================
# RENDERERS
# =============================================================================
def display_value(value: Any) -> str:
    """Text form of a field value: nested values as compact JSON."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def render_json(result: ExtractionResult, mapped_fields: Optional[dict[str, Any]] = None) -> str:
    output: dict[str, Any] = {
        "metadata": result.metadata.to_dict(),
        "records": result.records,
    }
    if mapped_fields:
        output["mappedFields"] = mapped_fields
    return json.dumps(output, indent=2, ensure_ascii=False, default=str)


def render_markdown(result: ExtractionResult) -> str:
    metadata = result.metadata
    lines = [
        f"---\nsource: {metadata.source} | extractedAt: {metadata.extracted_at} "
        f"| records: {metadata.record_count}\n---\n"
    ]

    for i, record in enumerate(result.records, start=1):
        lines.append(f"## Record {i}")
        for key, value in record.items():
            lines.append(f"- **{key}**: {display_value(value)}")
        lines.append("")

    if metadata.warnings:
        lines.append("## Warnings")
        lines.extend(f"- {warning}" for warning in metadata.warnings)

    return "\n".join(lines)


def render_summary(result: ExtractionResult) -> str:
    """One header line plus a per-field digest of the values seen."""
    metadata = result.metadata
    records = result.records
    lines = [
        f"Extracted {metadata.record_count} {metadata.source} record(s) "
        f"at {metadata.extracted_at}."
    ]

    if not records:
        lines.append("No records found.")
        return "\n".join(lines)

    for key in _field_names(records):
        values = [r[key] for r in records if r.get(key) is not None]
        counts: dict[str, int] = {}
        for value in values:
            text = display_value(value)
            counts[text] = counts.get(text, 0) + 1

        if len(counts) <= SUMMARY_MAX_DISTINCT and len(values) > 1:
            distribution = ", ".join(f"{text} ({count})" for text, count in counts.items())
            lines.append(f"{key}: {distribution}")
        elif len(counts) > SUMMARY_MAX_DISTINCT:
            lines.append(f"{key}: {len(counts)} unique values")
        elif len(values) == 1:
            lines.append(f"{key}: {display_value(values[0])[:SUMMARY_VALUE_CHARS]}")

    if metadata.warnings:
        lines.append(f"\nWarnings: {'; '.join(metadata.warnings)}")

    return "\n".join(lines)


def render_key_value(result: ExtractionResult) -> str:
    records = result.records
    lines: list[str] = []

    for i, record in enumerate(records, start=1):
        if len(records) > 1:
            lines.append(f"=== Record {i} ===")
        for key, value in record.items():
            lines.append(f"{key}: {display_value(value)}")
        if i < len(records):
            lines.append("")

    if result.metadata.warnings:
        lines.append(f"\nWarnings: {'; '.join(result.metadata.warnings)}")

    return "\n".join(lines)


def render_csv(result: ExtractionResult) -> str:
    """RFC-4180-style CSV preceded by a '#' comment line."""
    metadata = result.metadata
    records = result.records

    if not records:
        return f"# source: {metadata.source} | records: 0\n(no data)"

    headers = _field_names(records)
    lines = [
        f"# source: {metadata.source} | extractedAt: {metadata.extracted_at} "
        f"| records: {metadata.record_count}",
        ",".join(_csv_cell(h) for h in headers),
    ]
    for record in records:
        lines.append(",".join(_csv_cell(display_value(record.get(h))) for h in headers))

    return "\n".join(lines)


def _csv_cell(text: str) -> str:
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def _field_names(records: list[Record]) -> list[str]:
    """Union of keys across records, in first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)
