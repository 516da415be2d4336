import json

import pytest

from core.output_formatter import (
    detect_format_from_data,
    display_value,
    format_result,
    map_fields_to_target,
    max_depth,
    resolve_format,
)

FIXED_TIMESTAMP = "2026-01-01T00:00:00.000Z"


# --- format detection ---
def test_no_records_is_json():
    assert detect_format_from_data([]) == "json"


def test_single_shallow_record_is_key_value():
    assert detect_format_from_data([{"a": {"b": {}}, "c": 1}]) == "key-value"
    assert detect_format_from_data([{"a": {"b": 1}}]) == "key-value"


def test_single_deep_record_is_json():
    assert detect_format_from_data([{"a": {"b": {"c": 1}}}]) == "json"


def test_more_than_three_flat_records_is_csv():
    records = [{"id": i, "tags": ["x"]} for i in range(4)]
    assert detect_format_from_data(records) == "csv"


def test_three_flat_records_is_not_csv():
    assert detect_format_from_data([{"id": i} for i in range(3)]) == "json"


def test_long_text_is_markdown():
    records = [{"body": "x" * 201}, {"body": "short"}]
    assert detect_format_from_data(records) == "markdown"


def test_nested_records_with_short_text_are_json():
    records = [{"a": {"b": 1}}, {"a": {"b": 2}}, {"a": {"b": 3}}, {"a": {"b": 4}}]
    assert detect_format_from_data(records) == "json"


def test_max_depth_treats_lists_and_empty_dicts_as_leaves():
    assert max_depth({}) == 0
    assert max_depth({"a": [{"b": {"c": 1}}]}) == 1
    assert max_depth({"a": {"b": {"c": 1}}}) == 3


# --- priority ---
def test_explicit_format_beats_target_tool(make_result):
    result = make_result([{"a": 1}])
    assert resolve_format(result, "csv", "get_customer") == "csv"


def test_target_tool_beats_data_shape(make_result):
    result = make_result([{"a": 1}, {"a": 2}])
    assert resolve_format(result, None, "get_customer") == "key-value"
    assert resolve_format(result, None, "list_customers") == "csv"


def test_unknown_target_falls_back_to_heuristic(make_result):
    result = make_result([{"a": 1}])
    assert resolve_format(result, None, "not_a_tool") == "key-value"


def test_format_result_records_format_and_target_in_metadata(make_result):
    result = make_result([{"a": 1}])
    format_result(result, None, "validate_environment_readiness")
    assert result.metadata.output_format == "summary"
    assert result.metadata.target_tool == "validate_environment_readiness"


# --- field mapping ---
CUSTOMER_ROW = {
    "Name": "Contoso",
    "industry_code": "MFG",
    "customer_region": "EU",
    "d365modules": ["Finance", "SCM"],
}


def test_field_mapping_exact_then_partial():
    mapped = map_fields_to_target([CUSTOMER_ROW], "add_customer")
    assert mapped == {
        "name": "Contoso",
        "industry": "MFG",
        "region": "EU",
        "engagementType": None,
        "d365Modules": ["Finance", "SCM"],
        "goLiveDate": None,
        "assignedArchitect": None,
    }


def test_field_mapping_needs_known_write_tool_and_records():
    assert map_fields_to_target([CUSTOMER_ROW], "get_customer") is None
    assert map_fields_to_target([], "add_customer") is None
    assert map_fields_to_target([CUSTOMER_ROW], None) is None


def test_json_rendering_includes_mapped_fields(make_result):
    text = format_result(make_result([CUSTOMER_ROW]), None, "add_customer")
    payload = json.loads(text)
    assert payload["metadata"]["targetTool"] == "add_customer"
    assert payload["metadata"]["outputFormat"] == "json"
    assert payload["metadata"]["extractedAt"] == FIXED_TIMESTAMP
    assert payload["mappedFields"]["goLiveDate"] is None
    assert payload["records"] == [CUSTOMER_ROW]


def test_json_rendering_omits_empty_warnings(make_result):
    payload = json.loads(format_result(make_result([{"a": {"b": {"c": 1}}}])))
    assert "warnings" not in payload["metadata"]
    assert "mappedFields" not in payload


# --- renderers ---
def test_markdown_exact_layout(make_result):
    text = format_result(make_result([{"a": 1, "b": None}]), "markdown")
    assert text == (
        f"---\nsource: json | extractedAt: {FIXED_TIMESTAMP} | records: 1\n---\n"
        "\n## Record 1\n- **a**: 1\n- **b**: \n"
    )


def test_markdown_lists_warnings(make_result):
    text = format_result(make_result([{"a": 1}], warnings=["w1"]), "markdown")
    assert text.endswith("## Warnings\n- w1")


def test_summary_distribution_single_value_and_unique_count(make_result):
    records = [
        {"status": "Active", "id": 1, "note": "hello"},
        {"status": "Active", "id": 2},
        {"status": "Onboarding", "id": 3},
        {"status": "Active", "id": 4},
        {"status": "Active", "id": 5},
        {"status": "Active", "id": 6},
    ]
    lines = format_result(make_result(records), "summary").split("\n")
    assert lines[0] == f"Extracted 6 json record(s) at {FIXED_TIMESTAMP}."
    assert "status: Active (5), Onboarding (1)" in lines
    assert "id: 6 unique values" in lines
    assert "note: hello" in lines


def test_summary_without_records(make_result):
    text = format_result(make_result([]), "summary")
    assert text.endswith("No records found.")


def test_key_value_multiple_records_with_warnings(make_result):
    text = format_result(make_result([{"a": 1}, {"a": 2}], warnings=["w"]), "key-value")
    assert text == "=== Record 1 ===\na: 1\n\n=== Record 2 ===\na: 2\n\nWarnings: w"


def test_key_value_single_record_has_no_banner(make_result):
    assert format_result(make_result([{"a": True, "b": [1]}]), "key-value") == "a: true\nb: [1]"


def test_csv_escapes_cells(make_result):
    records = [{"name": "A, Inc", "quote": 'say "hi"', "x": None}, {"tags": ["x", "y"]}]
    lines = format_result(make_result(records), "csv").split("\n")
    assert lines[0] == f"# source: json | extractedAt: {FIXED_TIMESTAMP} | records: 2"
    assert lines[1] == "name,quote,x,tags"
    assert lines[2] == '"A, Inc","say ""hi""",,'
    assert lines[3] == ',,,"[""x"",""y""]"'


def test_csv_without_records(make_result):
    assert format_result(make_result([]), "csv") == "# source: json | records: 0\n(no data)"


@pytest.mark.parametrize(
    "value, text",
    [
        (None, ""),
        (False, "false"),
        (3.5, "3.5"),
        ({"k": "v"}, '{"k":"v"}'),
        (["é"], '["é"]'),
    ],
)
def test_display_value(value, text):
    assert display_value(value) == text
