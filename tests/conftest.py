import json

import pytest
import requests

from mailer import Mailer

METFORMIN_RESULT = {
    "drugSummary": "Metformin is a biguanide that lowers blood glucose in type 2 diabetes.",
    "herbSuggestions": [
        {
            "name": "Gudmar",
            "summary": "Traditionally used to support healthy blood sugar.",
            "dosage": "1-2 capsules twice a day",
            "form": "Capsule, Powder",
            "sideEffects": "May lower blood sugar further. Consult a doctor.",
        },
        {
            "name": "Arjuna Bark",
            "summary": "Supports cardiovascular health.",
            "dosage": "500 mg twice a day",
            "form": "Powder",
            "sideEffects": "Consult a doctor if on heart medication.",
        },
    ],
    "lifestyleSuggestions": [
        {
            "suggestion": "Walk after meals",
            "details": "Brisk walking for 30 minutes",
            "duration": "Daily for at least 3 months",
            "source": "Sushruta Samhita",
        }
    ],
    "error": None,
}

UNKNOWN_MEDICINE_RESULT = {
    "error": "The medicine name provided was not recognized. Please check the spelling and try again."
}

LAB_FINDING = {
    "parameter": "Total Cholesterol",
    "status": "High",
    "summary": "Elevated cholesterol may increase cardiovascular risk.",
    "herbSuggestions": [
        {
            "name": "Guggulu",
            "summary": "Traditionally used to support lipid balance.",
            "dosage": "1 tablet twice a day",
            "form": "Tablet",
            "sideEffects": "Consult a doctor.",
        }
    ],
    "lifestyleSuggestions": [
        {
            "suggestion": "Reduce fried food",
            "details": "Avoid deep-fried snacks",
            "duration": "For at least 2 months",
            "source": "Rasayana: Ayurvedic herbs for longevity and rejuvenation",
        }
    ],
}

DOSHA_RESULT = {
    "dosha": "Vata",
    "explanation": "Your light frame, dry skin and variable appetite point to Vata.",
    "recommendations": {
        "diet": ["Favor warm, cooked meals"],
        "lifestyle": ["Keep a regular sleep schedule"],
        "herbSuggestions": [
            {
                "name": "Ashwagandha",
                "summary": "Grounding and calming.",
                "dosage": "300 mg at night",
                "form": "Powder",
                "sideEffects": "Avoid in pregnancy.",
            }
        ],
    },
    "sources": ["Sushruta Samhita"],
}

DOSHA_ANSWERS = {
    "build": "Thin, light, tall or short",
    "skin": "Dry, rough, cool, thin",
    "hair": "Dry, brittle, thin",
    "appetite": "Irregular, variable",
    "energy": "Comes in bursts, variable",
    "stressResponse": "Anxious, worried, fearful",
}


class FakeLLM:
    """Stands in for GeminiClient: returns canned text or raises."""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate(self, spec):
        self.calls.append(spec)
        if self.error is not None:
            raise self.error
        return self.text


class RecordingMailer(Mailer):
    def __init__(self, succeed=True):
        super().__init__(host=None)
        self.succeed = succeed
        self.sent = []

    def send(self, to, subject, body):
        self.sent.append({"to": to, "subject": subject, "body": body})
        return self.succeed


@pytest.fixture
def fake_llm():
    return FakeLLM(text=json.dumps(METFORMIN_RESULT))


@pytest.fixture
def mailer():
    return RecordingMailer()


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Records posts and answers them through `handler(url, body)`."""

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.handler(url, json)
