import base64
import json
import logging

import pytest

from errors import GENERIC_INTERNAL_ERROR, INVALID_RESPONSE_ERROR, Err, Ok
from gateway import InferenceGateway
from llm_client import LLMError
from conftest import DOSHA_ANSWERS, DOSHA_RESULT, LAB_FINDING, METFORMIN_RESULT, UNKNOWN_MEDICINE_RESULT, FakeLLM


def _image(data: bytes, mime_type="image/png"):
    return {"mimeType": mime_type, "data": base64.b64encode(data).decode("ascii")}


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "horoscope", "sign": "Leo"},
        {"medicineName": "Metformin"},
        {"type": 3},
        ["medicine"],
        "medicine",
    ],
)
def test_rejects_unresolvable_requests_without_calling_model(payload):
    llm = FakeLLM()
    result = InferenceGateway(llm).handle(payload)

    assert isinstance(result, Err)
    assert result.error.status_code == 400
    assert llm.calls == []


def test_unknown_type_message():
    result = InferenceGateway(FakeLLM()).handle({"type": "horoscope"})
    assert result.error.to_body() == {"error": "Invalid request type"}


def test_missing_medicine_name_is_client_error():
    llm = FakeLLM()
    result = InferenceGateway(llm).handle({"type": "medicine"})

    assert result.error.status_code == 400
    assert result.error.is_client_error
    assert "medicineName" in result.error.message
    assert llm.calls == []


def test_lab_without_text_or_image_is_client_error():
    llm = FakeLLM()
    result = InferenceGateway(llm).handle({"type": "lab", "input": {"text": "   "}})

    assert result.error.status_code == 400
    assert llm.calls == []


def test_lab_image_with_unsupported_mime_type():
    llm = FakeLLM()
    payload = {"type": "lab", "input": {"image": _image(b"GIF89a", "image/gif")}}
    result = InferenceGateway(llm).handle(payload)

    assert result.error.status_code == 400
    assert "image/gif" in result.error.message
    assert llm.calls == []


def test_lab_image_over_size_limit():
    llm = FakeLLM()
    gateway = InferenceGateway(llm, max_image_bytes=16)
    result = gateway.handle({"type": "lab", "input": {"image": _image(b"x" * 17)}})

    assert result.error.status_code == 400
    assert llm.calls == []


def test_lab_image_at_size_limit_is_accepted():
    llm = FakeLLM(text='{"findings": [], "error": null}')
    gateway = InferenceGateway(llm, max_image_bytes=16)
    result = gateway.handle({"type": "lab", "input": {"image": _image(b"x" * 16)}})

    assert isinstance(result, Ok)
    assert len(llm.calls) == 1


def test_known_medicine_returns_full_result(fake_llm):
    result = InferenceGateway(fake_llm).handle({"type": "medicine", "medicineName": "Metformin"})

    assert isinstance(result, Ok)
    body = result.value
    assert "error" not in body
    assert body["drugSummary"] == METFORMIN_RESULT["drugSummary"]
    assert [h["id"] for h in body["herbSuggestions"]] == ["gudmar", "arjuna-bark"]
    assert body["lifestyleSuggestions"][0]["source"] == "Sushruta Samhita"

    assert len(fake_llm.calls) == 1
    spec = fake_llm.calls[0]
    assert spec.op == "medicine"
    assert "Metformin" in spec.parts[0]["text"]


def test_unrecognized_medicine_is_a_successful_exchange():
    llm = FakeLLM(text=json.dumps(UNKNOWN_MEDICINE_RESULT))
    result = InferenceGateway(llm).handle({"type": "medicine", "medicineName": "Xyzzyflarp123"})

    assert isinstance(result, Ok)
    assert result.value == UNKNOWN_MEDICINE_RESULT


def test_normal_lab_report_has_no_findings():
    llm = FakeLLM(text='{"findings": [], "error": null}')
    result = InferenceGateway(llm).handle(
        {"type": "lab", "input": {"text": "Hemoglobin: 13.5 g/dL (normal)"}}
    )

    assert isinstance(result, Ok)
    assert result.value == {"findings": []}


def test_abnormal_lab_report_returns_findings():
    llm = FakeLLM(text=json.dumps({"findings": [LAB_FINDING], "error": None}))
    result = InferenceGateway(llm).handle({"type": "lab", "input": {"text": "Total Cholesterol: 260 mg/dL"}})

    finding = result.value["findings"][0]
    assert finding["parameter"] == "Total Cholesterol"
    assert finding["herbSuggestions"][0]["id"] == "guggulu"


def test_non_lab_input_returns_domain_error():
    message = "The provided input does not appear to be a valid lab report."
    llm = FakeLLM(text=json.dumps({"findings": None, "error": message}))
    result = InferenceGateway(llm).handle({"type": "lab", "input": {"text": "Dear diary, today..."}})

    assert result.value == {"error": message}


def test_dosha_returns_profile():
    llm = FakeLLM(text=json.dumps(DOSHA_RESULT))
    result = InferenceGateway(llm).handle({"type": "dosha", "answers": DOSHA_ANSWERS})

    assert result.value["dosha"] == "Vata"
    assert llm.calls[0].metadata["answer_count"] == len(DOSHA_ANSWERS)


def test_model_failure_is_generic_internal_error():
    llm = FakeLLM(error=LLMError("Model returned HTTP 503"))
    result = InferenceGateway(llm).handle({"type": "medicine", "medicineName": "Metformin"})

    assert result.error.status_code == 500
    assert result.error.message == GENERIC_INTERNAL_ERROR
    assert len(llm.calls) == 1


def test_unparseable_model_text_does_not_leak():
    llm = FakeLLM(text="Sure! Here is your analysis: {oops")
    result = InferenceGateway(llm).handle({"type": "medicine", "medicineName": "Metformin"})

    assert result.error.status_code == 500
    assert result.error.message == INVALID_RESPONSE_ERROR
    assert "oops" not in result.error.message


def test_model_output_with_both_error_and_result_is_rejected():
    llm = FakeLLM(text=json.dumps(dict(METFORMIN_RESULT, error="not recognized")))
    result = InferenceGateway(llm).handle({"type": "medicine", "medicineName": "Metformin"})

    assert result.error.status_code == 500


def test_every_exchange_is_audited(fake_llm, caplog):
    caplog.set_level(logging.INFO, logger="audit")
    gateway = InferenceGateway(fake_llm)

    gateway.handle({"type": "medicine", "medicineName": "Metformin"})
    gateway.handle({"type": "horoscope"})

    audit = [r.getMessage() for r in caplog.records if r.name == "audit"]
    assert audit[0].startswith("[Audit] op=medicine status=200")
    assert audit[1].startswith("[Audit] op=horoscope status=400")


@pytest.mark.parametrize("data", ["not base64 at all!", "aGVs\nbG8=", "", "aGVsbG8"])
def test_malformed_image_data_is_client_error(data):
    llm = FakeLLM()
    payload = {"type": "lab", "input": {"image": {"mimeType": "image/png", "data": data}}}
    result = InferenceGateway(llm).handle(payload)

    assert result.error.status_code == 400
    assert llm.calls == []
