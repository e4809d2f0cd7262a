import pytest

import config
from output_schemas import SCHEMAS
from prompt_builder import LAB_SYSTEM_INSTRUCTION, build_prompt
from schemas import DoshaRequest, LabImage, LabInput, LabRequest, MedicineRequest, Personalization
from conftest import DOSHA_ANSWERS


def test_medicine_prompt():
    spec = build_prompt(MedicineRequest(medicine_name="Metformin"))

    assert spec.op == "medicine"
    assert len(spec.parts) == 1
    assert '"Metformin"' in spec.parts[0]["text"]
    assert spec.response_schema is SCHEMAS["medicine"]
    assert spec.seed == config.MODEL_SEED
    assert spec.system_instruction is None
    assert "Personalize" not in spec.parts[0]["text"]


def test_medicine_prompt_is_deterministic():
    request = MedicineRequest(medicine_name="Metformin", personalization=Personalization(age="40"))
    assert build_prompt(request) == build_prompt(request)


def test_personalization_is_embedded():
    request = MedicineRequest(
        medicine_name="Atorvastatin",
        personalization=Personalization(age="35", gender="Female", context="allergic to pollen"),
    )
    text = build_prompt(request).parts[0]["text"]

    assert "Age: 35" in text
    assert "Gender: Female" in text
    assert "Allergies or symptoms: allergic to pollen" in text


def test_lab_prompt_with_text_and_image():
    request = LabRequest(
        input=LabInput(text="TSH: 6.1 mIU/L", image=LabImage(mime_type="application/pdf", data="JVBERi0=")),
        personalization=Personalization(gender="Male"),
    )
    spec = build_prompt(request)

    assert spec.system_instruction == LAB_SYSTEM_INSTRUCTION
    assert spec.response_schema is SCHEMAS["lab"]
    assert spec.seed is None
    assert "TSH: 6.1 mIU/L" in spec.parts[0]["text"]
    assert spec.parts[1] == {"inlineData": {"mimeType": "application/pdf", "data": "JVBERi0="}}
    assert "Gender: Male" in spec.parts[2]["text"]
    assert spec.metadata == {"has_text": True, "has_image": True}


def test_lab_prompt_image_only():
    request = LabRequest(input=LabInput(image=LabImage(mime_type="image/jpeg", data="/9j/")))
    spec = build_prompt(request)

    assert len(spec.parts) == 1
    assert "inlineData" in spec.parts[0]
    assert spec.metadata["has_text"] is False


def test_dosha_prompt_lists_every_answer():
    spec = build_prompt(DoshaRequest(answers=DOSHA_ANSWERS))
    text = spec.parts[0]["text"]

    for key, answer in DOSHA_ANSWERS.items():
        assert f"- {key}: {answer}" in text
    assert spec.response_schema is SCHEMAS["dosha"]
    assert spec.seed == config.MODEL_SEED


@pytest.mark.parametrize("op", ["medicine", "lab", "dosha"])
def test_schemas_are_json_objects(op):
    assert SCHEMAS[op]["type"] == "OBJECT"
