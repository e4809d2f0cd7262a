"""
INFERENCE GATEWAY
Accepts one analysis request, selects its prompt and output schema, calls
the model exactly once and returns validated JSON or a normalized error.

Flow per request:
1. Dispatch on the `type` tag (unknown tag -> 400, no model call)
2. Validate the variant's fields (missing/invalid -> 400, no model call)
3. Build the PromptSpec for the tag
4. One model call; any failure -> generic 500
5. Parse + validate the model text; failure -> generic 500

No retry happens here: a retried generation may return a different
variant of an ambiguous result, so retrying is left to the caller as a new
explicit submission.
"""
from typing import Any, Iterable, Optional
import logging
import time

from pydantic import ValidationError

import config
from errors import Err, Ok, Result, internal_error, invalid_request
from log import log_exchange
from parser import parse_model_output
from prompt_builder import build_prompt
from schemas import REQUEST_MODELS, LabRequest

logger = logging.getLogger(__name__)


class InferenceGateway:
    """Stateless handler; one instance can serve concurrent requests."""

    def __init__(
        self,
        llm,
        max_image_bytes: int = config.MAX_UPLOAD_BYTES,
        accepted_mime_types: Iterable[str] = config.ACCEPTED_MIME_TYPES,
    ):
        self.llm = llm
        self.max_image_bytes = max_image_bytes
        self.accepted_mime_types = tuple(accepted_mime_types)

    def handle(self, payload: Any) -> Result:
        started = time.perf_counter()
        op = payload.get("type") if isinstance(payload, dict) else None

        result = self._handle(payload)

        status = 200 if isinstance(result, Ok) else result.error.status_code
        log_exchange(op if isinstance(op, str) else None, status, time.perf_counter() - started)
        return result

    def validate_request(self, payload: Any) -> Result:
        """Resolve the tagged variant and check its fields before any model call."""
        if not isinstance(payload, dict):
            return invalid_request("Request body must be a JSON object")

        op = payload.get("type")
        model = REQUEST_MODELS.get(op) if isinstance(op, str) else None
        if model is None:
            logger.warning(f"[Gateway] Rejected unknown request type: {op!r}")
            return invalid_request("Invalid request type")

        try:
            request = model.model_validate(payload)
        except ValidationError as e:
            message = _describe_validation_error(op, e)
            logger.warning(f"[Gateway] {message}")
            return invalid_request(message)

        if isinstance(request, LabRequest) and request.input.image is not None:
            problem = self._check_image(request)
            if problem:
                logger.warning(f"[Gateway] {problem}")
                return invalid_request(problem)

        return Ok(request)

    def _handle(self, payload: Any) -> Result:
        validated = self.validate_request(payload)
        if isinstance(validated, Err):
            return validated
        request = validated.value

        spec = build_prompt(request)

        try:
            text = self.llm.generate(spec)
        except Exception:
            logger.exception(f"[Gateway] Model call failed for op={request.type}")
            return internal_error()

        parsed = parse_model_output(request.type, text)
        if isinstance(parsed, Err):
            return parsed

        result = parsed.value
        if getattr(result, "is_error", False):
            logger.info(f"[Gateway] op={request.type} returned a domain error: {result.error}")

        return Ok(result.to_wire())

    def _check_image(self, request: LabRequest) -> Optional[str]:
        image = request.input.image
        if image.mime_type not in self.accepted_mime_types:
            return f"Unsupported file type: {image.mime_type}"
        if image.size_bytes > self.max_image_bytes:
            return f"File is too large. Please upload a file smaller than {self.max_image_bytes // (1024 * 1024)}MB."
        return None


def _describe_validation_error(op: str, error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or op
    if first.get("type") == "missing":
        return f"Missing required field for {op} request: {field}"
    message = first.get("msg", "invalid value").removeprefix("Value error, ")
    return f"Invalid {op} request ({field}): {message}"
