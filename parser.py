"""
Parse raw model text into validated result models

Purpose: turn the text of a schema-constrained generation into the result
model for its operation tag, or a generic internal error.

Input: operation tag ("medicine" | "lab" | "dosha") and the raw model text.

Output: Ok(MedicineAnalysisResult | LabAnalysisResult | DoshaAnalysisResult)
or Err(GatewayError(500, ...)).

Example: parse_model_output("lab", "[]") -> Ok(LabAnalysisResult(findings=[]))

Notes: raw text is logged (truncated) for debugging but never placed in the
returned error.
"""
import json
import logging
import re

from pydantic import ValidationError

from errors import INVALID_RESPONSE_ERROR, Ok, Result, internal_error
from schemas import RESULT_MODELS

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def strip_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one."""
    return _FENCE.sub("", text.strip())


def parse_model_output(op: str, text: str) -> Result:
    model = RESULT_MODELS.get(op)
    if model is None:
        logger.error(f"[Parser] No result model for operation '{op}'")
        return internal_error()

    raw = strip_fences(text or "")

    # Older lab prompts answered an "all clear" report with nothing at all
    if op == "lab" and not raw:
        raw = "[]"

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"[Parser] op={op} invalid JSON: {e.msg} at pos {e.pos}")
        logger.debug(f"[Parser] Faulty model text: {raw[:500]}")
        return internal_error(INVALID_RESPONSE_ERROR)

    if op == "lab" and isinstance(data, list):
        data = {"findings": data}

    if not isinstance(data, dict):
        logger.error(f"[Parser] op={op} expected a JSON object, got {type(data).__name__}")
        return internal_error(INVALID_RESPONSE_ERROR)

    try:
        return Ok(model.model_validate(data))
    except ValidationError as e:
        logger.error(f"[Parser] op={op} response failed schema validation: {e.error_count()} error(s)")
        logger.debug(f"[Parser] Validation errors: {e.errors(include_input=False)}")
        return internal_error(INVALID_RESPONSE_ERROR)
