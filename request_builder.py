"""
REQUEST BUILDER - CLIENT SIDE
Validates user input locally, builds exactly one typed request and sends it
to the gateway with per-slot cancellation.

Outcomes of a submission:
- Success(result)        -> validated result model
- DomainError(message)   -> the model's own explanation (e.g. unknown medicine)
- RequestFailed(message) -> network failure, non-2xx, or unparseable body
- Cancelled()            -> superseded or cancelled; never shown to the user

Local validation failures raise LocalValidationError before any network call.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
import base64
import logging
import mimetypes
import re
import threading

import requests
from pydantic import ValidationError

import config
from errors import LocalValidationError
from questionnaire import DOSHA_QUESTIONS, combine_answers, missing_answers
from schemas import (
    RESULT_MODELS,
    AnalysisRequest,
    DoshaRequest,
    LabImage,
    LabInput,
    LabRequest,
    MedicineRequest,
    Personalization,
)

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_MESSAGE = "Failed to get analysis. Please check your connection and try again."

_OTP_PATTERN = re.compile(r"^\d{6}$")


# ═════════════════════════════════════════════════════════════
# OUTCOMES
# ═════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Success:
    result: Any


@dataclass(frozen=True)
class DomainError:
    message: str


@dataclass(frozen=True)
class RequestFailed:
    message: str
    status_code: Optional[int] = None
    detail: Optional[str] = None  # server-side text, for logs only


@dataclass(frozen=True)
class Cancelled:
    pass


Outcome = Union[Success, DomainError, RequestFailed, Cancelled]


class ClientError(RuntimeError):
    """A peripheral call (OTP, contact) was refused or could not be made."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CancelToken:
    """Cooperative cancellation flag passed through one submission."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# ═════════════════════════════════════════════════════════════
# REQUEST CONSTRUCTION
# ═════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LabFile:
    filename: str
    mime_type: str
    data: bytes

    @classmethod
    def from_path(cls, path) -> "LabFile":
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(filename=path.name, mime_type=mime_type or "application/octet-stream", data=path.read_bytes())

    @property
    def size(self) -> int:
        return len(self.data)


def _as_personalization(value) -> Optional[Personalization]:
    if value is None or isinstance(value, Personalization):
        return value
    return Personalization.model_validate(value)


def build_medicine_request(name: Optional[str], personalization=None) -> MedicineRequest:
    name = (name or "").strip()
    if not name:
        raise LocalValidationError("Please enter a medicine name.", fields=["medicineName"])
    return MedicineRequest(medicine_name=name, personalization=_as_personalization(personalization))


def validate_lab_file(
    file: LabFile,
    max_bytes: int = config.MAX_UPLOAD_BYTES,
    accepted_mime_types=config.ACCEPTED_MIME_TYPES,
) -> None:
    if file.mime_type not in accepted_mime_types:
        raise LocalValidationError("Invalid file type. Please upload a PNG, JPG, or PDF file.", fields=["image"])
    if file.size > max_bytes:
        raise LocalValidationError(
            f"File is too large. Please upload a file smaller than {max_bytes // (1024 * 1024)}MB.",
            fields=["image"],
        )


def build_lab_request(
    text: Optional[str] = None,
    file: Optional[LabFile] = None,
    personalization=None,
    max_bytes: int = config.MAX_UPLOAD_BYTES,
) -> LabRequest:
    text = (text or "").strip() or None
    if text is None and file is None:
        raise LocalValidationError("Please paste your lab report text or upload a file.", fields=["text", "image"])

    image = None
    if file is not None:
        validate_lab_file(file, max_bytes=max_bytes)
        image = LabImage(mime_type=file.mime_type, data=base64.b64encode(file.data).decode("ascii"))

    return LabRequest(input=LabInput(text=text, image=image), personalization=_as_personalization(personalization))


def build_dosha_request(
    chosen: Mapping[str, Optional[str]],
    custom: Optional[Mapping[str, str]] = None,
    personalization=None,
    questions=DOSHA_QUESTIONS,
) -> DoshaRequest:
    answers = combine_answers(chosen, custom, questions)
    missing = missing_answers(answers, questions)
    if missing:
        raise LocalValidationError("Please answer all questions to identify your Dosha.", fields=missing)
    return DoshaRequest(answers=answers, personalization=_as_personalization(personalization))


# ═════════════════════════════════════════════════════════════
# CLIENT
# ═════════════════════════════════════════════════════════════

class AnalysisClient:
    """
    HTTP client for the gateway with at most one in-flight request per slot.

    Submitting on a slot cancels whatever is still running there; the older
    submission then resolves to Cancelled and its response is dropped.
    `latest(slot)` only ever holds outcomes from non-cancelled submissions.
    """

    def __init__(
        self,
        base_url: str = config.BACKEND_URL,
        session: Optional[requests.Session] = None,
        timeout: float = config.CLIENT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self._slots: Dict[str, CancelToken] = {}
        self._delivered: Dict[str, Outcome] = {}
        self._lock = threading.Lock()

    # --- analysis -------------------------------------------------

    def analyze_medicine(self, name: Optional[str], personalization=None) -> Outcome:
        return self.submit("medicine", build_medicine_request(name, personalization))

    def analyze_lab(self, text: Optional[str] = None, file: Optional[LabFile] = None, personalization=None) -> Outcome:
        return self.submit("lab", build_lab_request(text, file, personalization))

    def identify_dosha(self, chosen, custom=None, personalization=None) -> Outcome:
        return self.submit("dosha", build_dosha_request(chosen, custom, personalization))

    def submit(self, slot: str, request: AnalysisRequest, token: Optional[CancelToken] = None) -> Outcome:
        token = self._claim(slot, token or CancelToken())

        outcome = self._send(request, token)

        with self._lock:
            if token.cancelled:
                outcome = Cancelled()
            else:
                self._delivered[slot] = outcome
            if self._slots.get(slot) is token:
                del self._slots[slot]
        return outcome

    def cancel(self, slot: str) -> bool:
        with self._lock:
            token = self._slots.pop(slot, None)
            if token is None:
                return False
            token.cancel()
        logger.info(f"[Client] Cancelled in-flight request on slot '{slot}'")
        return True

    def cancel_all(self) -> None:
        with self._lock:
            tokens = list(self._slots.values())
            self._slots.clear()
            for token in tokens:
                token.cancel()

    def in_flight(self, slot: str) -> bool:
        with self._lock:
            return slot in self._slots

    def latest(self, slot: str) -> Optional[Outcome]:
        with self._lock:
            return self._delivered.get(slot)

    def _claim(self, slot: str, token: CancelToken) -> CancelToken:
        with self._lock:
            previous = self._slots.get(slot)
            self._slots[slot] = token
            if previous is not None and previous is not token:
                previous.cancel()
                logger.info(f"[Client] Superseded in-flight request on slot '{slot}'")
        return token

    def _send(self, request: AnalysisRequest, token: CancelToken) -> Outcome:
        if token.cancelled:
            return Cancelled()

        try:
            response = self.session.post(
                f"{self.base_url}/api/gemini",
                json=request.to_wire(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            if token.cancelled:
                return Cancelled()
            logger.warning(f"[Client] op={request.type} transport error: {e}")
            return RequestFailed(TRANSPORT_ERROR_MESSAGE)

        if token.cancelled:
            return Cancelled()
        return self._interpret(request.type, response)

    def _interpret(self, op: str, response) -> Outcome:
        try:
            data = response.json()
        except ValueError:
            data = None

        if not 200 <= response.status_code < 300:
            detail = data.get("error") if isinstance(data, dict) else None
            logger.warning(f"[Client] op={op} HTTP {response.status_code}: {detail}")
            return RequestFailed(TRANSPORT_ERROR_MESSAGE, status_code=response.status_code, detail=detail)

        if not isinstance(data, dict):
            logger.warning(f"[Client] op={op} response body is not a JSON object")
            return RequestFailed(TRANSPORT_ERROR_MESSAGE, status_code=response.status_code)

        error = data.get("error")
        if isinstance(error, str) and error.strip():
            return DomainError(error.strip())

        try:
            return Success(RESULT_MODELS[op].model_validate(data))
        except ValidationError as e:
            logger.warning(f"[Client] op={op} response failed validation: {e.error_count()} error(s)")
            return RequestFailed(TRANSPORT_ERROR_MESSAGE, status_code=response.status_code)

    # --- peripheral -----------------------------------------------

    def send_otp(self, email: str, phone: str) -> str:
        email = (email or "").strip()
        phone = re.sub(r"[^0-9]", "", phone or "")
        if not email or not phone:
            raise LocalValidationError("Please fill in all fields.", fields=["email", "phone"])
        return self._post_message("/api/send-otp", {"email": email, "phone": phone})

    def verify_otp(self, email: str, otp: str) -> str:
        otp = (otp or "").strip()
        if not _OTP_PATTERN.match(otp):
            raise LocalValidationError("Please enter the 6-digit OTP.", fields=["otp"])
        return self._post_message("/api/verify-otp", {"email": (email or "").strip(), "otp": otp})

    def contact_expert(self, name: str, email: str, phone: str) -> str:
        body = {"name": (name or "").strip(), "email": (email or "").strip(), "phone": (phone or "").strip()}
        missing = [key for key, value in body.items() if not value]
        if missing:
            raise LocalValidationError("Please fill in all fields.", fields=missing)
        return self._post_message("/api/contact", body)

    def _post_message(self, path: str, body: Dict[str, str]) -> str:
        try:
            response = self.session.post(f"{self.base_url}{path}", json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ClientError(TRANSPORT_ERROR_MESSAGE) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not 200 <= response.status_code < 300:
            raise ClientError(
                data.get("error") or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
            )
        return data.get("message", "")
