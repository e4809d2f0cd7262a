import json

from errors import GENERIC_INTERNAL_ERROR, INVALID_RESPONSE_ERROR, Err, Ok
from parser import parse_model_output, strip_fences
from conftest import LAB_FINDING, METFORMIN_RESULT


def test_strip_fences():
    assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences('```\n[]\n```') == "[]"
    assert strip_fences('  {"a": 1}  ') == '{"a": 1}'


def test_fenced_medicine_output_parses():
    result = parse_model_output("medicine", f"```json\n{json.dumps(METFORMIN_RESULT)}\n```")
    assert isinstance(result, Ok)
    assert result.value.drug_summary.startswith("Metformin")


def test_empty_lab_output_means_all_normal():
    result = parse_model_output("lab", "")
    assert isinstance(result, Ok)
    assert result.value.all_normal


def test_bare_lab_array_is_wrapped():
    result = parse_model_output("lab", json.dumps([LAB_FINDING]))
    assert isinstance(result, Ok)
    assert result.value.findings[0].parameter == "Total Cholesterol"


def test_invalid_json_is_internal_error():
    result = parse_model_output("dosha", "I think you are Vata.")
    assert isinstance(result, Err)
    assert result.error.status_code == 500
    assert result.error.message == INVALID_RESPONSE_ERROR


def test_non_object_medicine_output_is_rejected():
    result = parse_model_output("medicine", "[1, 2]")
    assert result.error.message == INVALID_RESPONSE_ERROR


def test_schema_violation_is_rejected():
    result = parse_model_output("dosha", '{"dosha": "Vata"}')
    assert result.error.message == INVALID_RESPONSE_ERROR


def test_unknown_operation():
    result = parse_model_output("horoscope", "{}")
    assert result.error.message == GENERIC_INTERNAL_ERROR
