"""
LLM CLIENT - SCHEMA-CONSTRAINED GENERATION
Sends one PromptSpec to the hosted Gemini model and returns the raw text of
the first candidate.

Purpose:
- Hold the API credential (injected, never read from module globals)
- Translate PromptSpec into a generateContent request body
- Pin the JSON response schema, system instruction and optional seed
- Surface transport/HTTP failures as LLMError

The response text is NOT parsed here; parser.py owns that.
"""
from typing import Any, Dict, Optional
import logging

import requests

import config
from log import mask
from prompt_builder import PromptSpec

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """The model could not be reached or answered with an unusable envelope."""


class GeminiClient:
    """Thin REST client for `models/{model}:generateContent`."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = config.GEMINI_MODEL,
        endpoint: str = config.GEMINI_ENDPOINT,
        timeout: float = config.LLM_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            logger.error("[GeminiClient] ERROR: API_KEY is not set!")
            raise ValueError("API_KEY environment variable is not set")

        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

        logger.info(f"[GeminiClient] Model: {self.model}")
        logger.info(f"[GeminiClient] Endpoint: {self.endpoint}")
        logger.info(f"[GeminiClient] API key: {mask(self.api_key, keep=6)}")

    @property
    def url(self) -> str:
        return f"{self.endpoint}/models/{self.model}:generateContent"

    def build_payload(self, spec: PromptSpec) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {
            "responseMimeType": "application/json",
            "responseSchema": spec.response_schema,
        }
        if spec.seed is not None:
            generation_config["seed"] = spec.seed

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": spec.parts}],
            "generationConfig": generation_config,
        }
        if spec.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": spec.system_instruction}]}
        return payload

    def generate(self, spec: PromptSpec) -> str:
        """Call the model once and return the text of the first candidate."""
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }
        payload = self.build_payload(spec)

        logger.info(f"[LLM] op={spec.op} parts={len(spec.parts)} seed={spec.seed}")

        try:
            response = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            logger.info(f"[LLM] Response status: {response.status_code}")
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            logger.error(f"[LLM] HTTP Error: {e.response.status_code}")
            logger.debug(f"[LLM] Response text: {e.response.text[:500]}")
            raise LLMError(f"Model returned HTTP {e.response.status_code}") from e
        except (requests.exceptions.JSONDecodeError, ValueError) as e:
            raise LLMError("Model response envelope is not JSON") from e
        except requests.exceptions.Timeout as e:
            logger.error(f"[LLM] Request timeout: {str(e)}")
            raise LLMError("Request timeout - model took too long to respond") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"[LLM] Connection error: {str(e)}")
            raise LLMError("Cannot connect to model service") from e

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise LLMError(f"Model returned no candidates ({reason})")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)


def create_client() -> GeminiClient:
    """Factory using central configuration."""
    return GeminiClient(api_key=config.API_KEY)
