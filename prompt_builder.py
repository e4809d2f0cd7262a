"""
Prompt selection per operation tag

Purpose: turn a validated request into the exact payload pieces the model
needs: content parts, an optional system instruction, the response schema
and an optional fixed seed.

Input: MedicineRequest | LabRequest | DoshaRequest (schemas.py).

Output: PromptSpec, ready for llm_client.GeminiClient.generate().

Example: build_prompt(MedicineRequest(medicine_name="Metformin")) returns a
single text part embedding "Metformin" plus MEDICINE_SCHEMA and seed 42.

Notes: selection is deterministic; the same request always yields the same
PromptSpec.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import config
from output_schemas import SCHEMAS
from schemas import AnalysisRequest, DoshaRequest, LabRequest, MedicineRequest, Personalization

CLASSICAL_SOURCES = (
    'the books "Rasayana: Ayurvedic herbs for longevity and rejuvenation" by H.S. Puri '
    'and "Sushruta Samhita"'
)

UNRECOGNIZED_MEDICINE = "The medicine name provided was not recognized. Please check the spelling and try again."
NOT_A_LAB_REPORT = (
    "The provided input does not appear to be a valid lab report. "
    "Please provide text or an image containing lab results."
)


@dataclass
class PromptSpec:
    """Everything the model call needs for one operation."""
    op: str
    parts: List[Dict[str, Any]]
    response_schema: Dict[str, Any]
    system_instruction: Optional[str] = None
    seed: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def build_prompt(request: AnalysisRequest) -> PromptSpec:
    builder = _BUILDERS.get(request.type)
    if builder is None:
        raise ValueError(f"No prompt template for operation '{request.type}'")
    return builder(request)


# ═════════════════════════════════════════════════════════════
# TEMPLATES
# ═════════════════════════════════════════════════════════════

def _personalization_block(personalization: Optional[Personalization]) -> str:
    """Render optional user details, or an empty string when none were given."""
    if personalization is None or personalization.is_empty():
        return ""

    details = []
    if personalization.age:
        details.append(f"Age: {personalization.age}")
    if personalization.gender:
        details.append(f"Gender: {personalization.gender}")
    if personalization.context:
        details.append(f"Allergies or symptoms: {personalization.context}")

    return (
        "\n\nPersonalize every suggestion for this user and avoid anything unsafe for them:\n"
        + "\n".join(f"- {d}" for d in details)
    )


def _lifestyle_rules(count: str) -> str:
    return (
        f"provide {count} relevant lifestyle suggestions based on the principles found in "
        f"{CLASSICAL_SOURCES}. Each suggestion must be specific and actionable, including quantifiable details "
        "(e.g., 'for 30 minutes daily') and a recommended duration (e.g., 'for at least 2 months'). "
        "You must cite the book's title in the 'source' field; it must never be empty."
    )


def _medicine_prompt(request: MedicineRequest) -> PromptSpec:
    name = request.medicine_name
    text = f"""You are an expert AI assistant with deep knowledge in both allopathic medicine and Ayurveda. A user has provided the following allopathic medicine name: "{name}".
Your tasks are:
1. First, verify if "{name}" is a recognized allopathic medicine or molecule name.
2. If the name is NOT valid or not recognized, your entire response MUST be a JSON object with only one key: "error", whose value is "{UNRECOGNIZED_MEDICINE}". Do not include any other fields.
3. If the name IS valid, your response MUST be a JSON object containing 'drugSummary', 'herbSuggestions' and 'lifestyleSuggestions', and the 'error' field must be null.
4. Suggest 2-4 complementary Ayurvedic herbs in 'herbSuggestions'.
5. For 'lifestyleSuggestions', {_lifestyle_rules("2-3")}{_personalization_block(request.personalization)}

IMPORTANT: Structure your entire response as a single JSON object that conforms to the provided schema. Do not add any text outside of the JSON object."""

    return PromptSpec(
        op="medicine",
        parts=[{"text": text}],
        response_schema=SCHEMAS["medicine"],
        seed=config.MODEL_SEED,
    )


LAB_SYSTEM_INSTRUCTION = f"""You are an expert AI assistant specializing in analyzing medical lab reports from both an allopathic and Ayurvedic perspective. Analyze the provided lab report data (text or an image). Follow these instructions carefully:
1. First, determine if the input contains recognizable lab report data (biomarkers like 'Cholesterol', 'Hemoglobin', 'TSH' with values and units).
2. If it does NOT, your entire response MUST be a JSON object with an 'error' key set to "{NOT_A_LAB_REPORT}" and a null 'findings' key.
3. If it does, identify the biomarkers that are outside the standard normal range and create one finding object for EACH of them.
4. If all biomarkers are within the normal range, return {{"findings": [], "error": null}}.
5. For each finding, explain in a simple summary what the result might indicate.
6. For each finding, suggest 1-2 complementary Ayurvedic herbs that could help bring the marker back to balance.
7. For each finding, {_lifestyle_rules("1-2")}
IMPORTANT: Your entire response MUST be a single JSON object conforming to the provided schema, containing either the 'findings' array or the 'error' message. Do not add any text outside of the JSON object."""


def _lab_prompt(request: LabRequest) -> PromptSpec:
    parts = []
    lab_input = request.input
    if lab_input.text:
        parts.append({"text": f"Analyze the following lab report data:\n\n{lab_input.text}"})
    if lab_input.image:
        parts.append({"inlineData": {"mimeType": lab_input.image.mime_type, "data": lab_input.image.data}})

    personalization = _personalization_block(request.personalization)
    if personalization:
        parts.append({"text": personalization.strip()})

    return PromptSpec(
        op="lab",
        parts=parts,
        response_schema=SCHEMAS["lab"],
        system_instruction=LAB_SYSTEM_INSTRUCTION,
        metadata={"has_text": bool(lab_input.text), "has_image": lab_input.image is not None},
    )


def _dosha_prompt(request: DoshaRequest) -> PromptSpec:
    answers = "\n".join(f"- {key}: {answer}" for key, answer in request.answers.items())
    text = f"""You are an expert Ayurvedic practitioner. A user answered a questionnaire about their natural physical and mental tendencies:
{answers}

Your tasks are:
1. Identify the user's dominant Dosha (Vata, Pitta, Kapha, or a dual type such as Vata-Pitta) and put it in 'dosha'.
2. Explain in 'explanation', in plain language, which answers point to this constitution.
3. In 'recommendations', give 3-5 'diet' tips, 3-5 'lifestyle' tips, and 1-3 complementary Ayurvedic herbs in 'herbSuggestions'.
4. List the classical texts you relied on in 'sources', for example {CLASSICAL_SOURCES}.{_personalization_block(request.personalization)}

IMPORTANT: Structure your entire response as a single JSON object that conforms to the provided schema. Do not add any text outside of the JSON object."""

    return PromptSpec(
        op="dosha",
        parts=[{"text": text}],
        response_schema=SCHEMAS["dosha"],
        seed=config.MODEL_SEED,
        metadata={"answer_count": len(request.answers)},
    )


_BUILDERS = {
    "medicine": _medicine_prompt,
    "lab": _lab_prompt,
    "dosha": _dosha_prompt,
}
