"""
Shared request/result models

Purpose: declare the wire shapes exchanged between the client and the
gateway, plus the invariants each shape must hold.

Input: JSON bodies (camelCase keys) from the client or from the model.

Output: validated pydantic models; `to_wire()` gives back camelCase JSON
with null fields left out.

Example: MedicineAnalysisResult.model_validate({"error": "Not recognized"})
"""
import base64
import re
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

_WHITESPACE = re.compile(r"\s+")


def herb_id(name: str) -> str:
    """Stable cart/dedup key for a herb: "Arjuna Bark" -> "arjuna-bark"."""
    return _WHITESPACE.sub("-", name.strip().lower())


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _require_text(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ═════════════════════════════════════════════════════════════
# REQUESTS
# ═════════════════════════════════════════════════════════════

class Personalization(WireModel):
    age: Optional[str] = None
    gender: Optional[str] = None
    context: Optional[str] = None

    @field_validator("age", mode="before")
    @classmethod
    def _age_as_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("age", "gender", "context", mode="after")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    def is_empty(self) -> bool:
        return not (self.age or self.gender or self.context)


class MedicineRequest(WireModel):
    type: Literal["medicine"] = "medicine"
    medicine_name: str
    personalization: Optional[Personalization] = None

    @field_validator("medicine_name")
    @classmethod
    def _name_present(cls, v):
        return _require_text(v, "medicineName")


class LabImage(WireModel):
    mime_type: str
    data: str  # base64, no "data:...;base64," prefix

    @field_validator("data")
    @classmethod
    def _is_base64(cls, v):
        if not v:
            raise ValueError("image data must not be empty")
        try:
            base64.b64decode(v, validate=True)
        except ValueError:
            raise ValueError("image data is not valid base64")
        return v

    @property
    def size_bytes(self) -> int:
        """Decoded size, computed from the base64 length."""
        padding = len(self.data) - len(self.data.rstrip("="))
        return len(self.data) * 3 // 4 - padding


class LabInput(WireModel):
    text: Optional[str] = None
    image: Optional[LabImage] = None

    @field_validator("text", mode="after")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @model_validator(mode="after")
    def _text_or_image(self):
        if self.text is None and self.image is None:
            raise ValueError("Lab input requires report text or an image")
        return self


class LabRequest(WireModel):
    type: Literal["lab"] = "lab"
    input: LabInput
    personalization: Optional[Personalization] = None


class DoshaRequest(WireModel):
    type: Literal["dosha"] = "dosha"
    answers: Dict[str, str]
    personalization: Optional[Personalization] = None

    @field_validator("answers")
    @classmethod
    def _all_answered(cls, v):
        if not v:
            raise ValueError("answers must not be empty")
        blank = [key for key, answer in v.items() if not answer.strip()]
        if blank:
            raise ValueError(f"unanswered questions: {', '.join(blank)}")
        return {key: answer.strip() for key, answer in v.items()}


AnalysisRequest = Union[MedicineRequest, LabRequest, DoshaRequest]

REQUEST_MODELS = {
    "medicine": MedicineRequest,
    "lab": LabRequest,
    "dosha": DoshaRequest,
}


# ═════════════════════════════════════════════════════════════
# RESULTS
# ═════════════════════════════════════════════════════════════

class HerbSuggestion(WireModel):
    id: Optional[str] = None
    name: str
    summary: str
    dosage: str
    form: str
    side_effects: str

    @field_validator("name")
    @classmethod
    def _name_present(cls, v):
        return _require_text(v, "name")

    @model_validator(mode="after")
    def _derive_id(self):
        # Always recomputed so ids never depend on what the model echoed back
        self.id = herb_id(self.name)
        return self


def unique_herbs(herbs: Optional[List[HerbSuggestion]]) -> Optional[List[HerbSuggestion]]:
    """Keep the first herb for each id."""
    if herbs is None:
        return None
    seen = set()
    unique = []
    for herb in herbs:
        if herb.id in seen:
            continue
        seen.add(herb.id)
        unique.append(herb)
    return unique


class LifestyleSuggestion(WireModel):
    suggestion: str
    source: str
    details: Optional[str] = None
    duration: Optional[str] = None
    reasoning: Optional[str] = None

    @field_validator("suggestion", "source")
    @classmethod
    def _present(cls, v, info):
        return _require_text(v, info.field_name)


class MedicineAnalysisResult(WireModel):
    drug_summary: Optional[str] = None
    herb_suggestions: Optional[List[HerbSuggestion]] = None
    lifestyle_suggestions: Optional[List[LifestyleSuggestion]] = None
    error: Optional[str] = None

    @field_validator("drug_summary", "error", mode="after")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @field_validator("herb_suggestions", mode="after")
    @classmethod
    def _dedupe(cls, v):
        return unique_herbs(v)

    @model_validator(mode="after")
    def _error_xor_result(self):
        if self.error is not None:
            if self.drug_summary or self.herb_suggestions or self.lifestyle_suggestions:
                raise ValueError("error must be the only populated field")
            self.herb_suggestions = None
            self.lifestyle_suggestions = None
            return self
        if self.drug_summary is None or self.herb_suggestions is None:
            raise ValueError("drugSummary and herbSuggestions are required when error is absent")
        if self.lifestyle_suggestions is None:
            self.lifestyle_suggestions = []
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None


class LabFinding(WireModel):
    parameter: str
    status: str
    summary: str
    herb_suggestions: List[HerbSuggestion] = Field(default_factory=list)
    lifestyle_suggestions: List[LifestyleSuggestion] = Field(default_factory=list)

    @field_validator("herb_suggestions", mode="after")
    @classmethod
    def _dedupe(cls, v):
        return unique_herbs(v)


class LabAnalysisResult(WireModel):
    findings: Optional[List[LabFinding]] = None
    error: Optional[str] = None

    @field_validator("error", mode="after")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @model_validator(mode="after")
    def _error_xor_findings(self):
        if self.error is not None:
            if self.findings:
                raise ValueError("error must not be combined with findings")
            self.findings = None
        elif self.findings is None:
            self.findings = []
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def all_normal(self) -> bool:
        return self.error is None and not self.findings


class DoshaRecommendations(WireModel):
    diet: List[str] = Field(default_factory=list)
    lifestyle: List[str] = Field(default_factory=list)
    herb_suggestions: List[HerbSuggestion] = Field(default_factory=list)

    @field_validator("herb_suggestions", mode="after")
    @classmethod
    def _dedupe(cls, v):
        return unique_herbs(v)


class DoshaAnalysisResult(WireModel):
    dosha: str
    explanation: str
    recommendations: DoshaRecommendations
    sources: List[str] = Field(default_factory=list)

    @field_validator("dosha")
    @classmethod
    def _dosha_present(cls, v):
        return _require_text(v, "dosha")


RESULT_MODELS = {
    "medicine": MedicineAnalysisResult,
    "lab": LabAnalysisResult,
    "dosha": DoshaAnalysisResult,
}


# ═════════════════════════════════════════════════════════════
# PERIPHERAL ENDPOINTS
# ═════════════════════════════════════════════════════════════

class ContactDetails(WireModel):
    name: str
    email: str
    phone: str

    @field_validator("name", "email", "phone")
    @classmethod
    def _present(cls, v, info):
        return _require_text(v, info.field_name)


class OtpRequest(WireModel):
    email: str
    phone: str

    @field_validator("email", "phone")
    @classmethod
    def _present(cls, v, info):
        return _require_text(v, info.field_name)

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, v):
        if "@" not in v:
            raise ValueError("email is not valid")
        return v.lower()


class OtpVerification(WireModel):
    email: str
    otp: str

    @field_validator("email", "otp")
    @classmethod
    def _present(cls, v, info):
        return _require_text(v, info.field_name)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v):
        return v.lower()
