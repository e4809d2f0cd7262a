"""
Response schemas for schema-constrained generation

Each operation tag pins one schema; it is sent as
`generationConfig.responseSchema` so the model answers with JSON of that
shape. The pydantic models in schemas.py re-validate whatever comes back.
"""

HERB_SUGGESTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING", "description": "Name of the Ayurvedic herb."},
        "summary": {"type": "STRING", "description": "Summary of the herb's benefits, particularly in relation to the user's condition."},
        "dosage": {"type": "STRING", "description": "Recommended dosage. E.g., '1-2 tablets twice a day'."},
        "form": {"type": "STRING", "description": "Common form of consumption. E.g., 'Powder, Tablet'."},
        "sideEffects": {"type": "STRING", "description": "Potential side effects or precautions. Mention 'Consult a doctor' if applicable."},
    },
    "required": ["name", "summary", "dosage", "form", "sideEffects"],
}

LIFESTYLE_SUGGESTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "suggestion": {"type": "STRING", "description": "The core lifestyle recommendation. E.g., 'Engage in moderate daily exercise'."},
        "details": {"type": "STRING", "description": "Specific, quantifiable details. E.g., 'Brisk walking for 30 minutes'."},
        "duration": {"type": "STRING", "description": "Recommended duration. E.g., '5 times a week for at least 3 months'."},
        "source": {"type": "STRING", "description": "The book the suggestion is based on. E.g., 'Sushruta Samhita'."},
    },
    "required": ["suggestion", "details", "duration", "source"],
}

MEDICINE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "drugSummary": {
            "type": "STRING",
            "nullable": True,
            "description": "A brief summary of the allopathic drug, its uses, and mechanism of action. Present only if the medicine name is valid.",
        },
        "herbSuggestions": {
            "type": "ARRAY",
            "nullable": True,
            "description": "Complementary Ayurvedic herbs. Present only if the medicine name is valid.",
            "items": HERB_SUGGESTION_SCHEMA,
        },
        "lifestyleSuggestions": {
            "type": "ARRAY",
            "nullable": True,
            "description": "Lifestyle changes (diet, exercise, etc.) that complement the treatment. Present only if the medicine name is valid.",
            "items": LIFESTYLE_SUGGESTION_SCHEMA,
        },
        "error": {
            "type": "STRING",
            "nullable": True,
            "description": "Returned ONLY if the medicine name is not recognized; then it is the only field. Null when the name is valid.",
        },
    },
}

LAB_FINDING_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "parameter": {"type": "STRING", "description": "The lab marker that is out of range, e.g., 'Total Cholesterol'."},
        "status": {"type": "STRING", "description": "The status of the marker, e.g., 'High', 'Low'."},
        "summary": {"type": "STRING", "description": "What this finding might indicate."},
        "herbSuggestions": {"type": "ARRAY", "items": HERB_SUGGESTION_SCHEMA},
        "lifestyleSuggestions": {"type": "ARRAY", "items": LIFESTYLE_SUGGESTION_SCHEMA},
    },
    "required": ["parameter", "status", "summary", "herbSuggestions", "lifestyleSuggestions"],
}

LAB_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "findings": {
            "type": "ARRAY",
            "nullable": True,
            "description": "One finding per out-of-range biomarker. Empty if all are normal; null if the input is not a lab report.",
            "items": LAB_FINDING_SCHEMA,
        },
        "error": {
            "type": "STRING",
            "nullable": True,
            "description": "Returned ONLY if the input does not contain recognizable lab report data. Null otherwise.",
        },
    },
}

DOSHA_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "dosha": {"type": "STRING", "description": "The dominant Dosha, e.g., 'Vata', 'Pitta', 'Kapha' or a dual type like 'Vata-Pitta'."},
        "explanation": {"type": "STRING", "description": "Why the answers point to this constitution."},
        "recommendations": {
            "type": "OBJECT",
            "properties": {
                "diet": {"type": "ARRAY", "items": {"type": "STRING"}},
                "lifestyle": {"type": "ARRAY", "items": {"type": "STRING"}},
                "herbSuggestions": {"type": "ARRAY", "items": HERB_SUGGESTION_SCHEMA},
            },
            "required": ["diet", "lifestyle", "herbSuggestions"],
        },
        "sources": {"type": "ARRAY", "items": {"type": "STRING"}, "description": "Classical texts the analysis relies on."},
    },
    "required": ["dosha", "explanation", "recommendations", "sources"],
}

SCHEMAS = {
    "medicine": MEDICINE_SCHEMA,
    "lab": LAB_SCHEMA,
    "dosha": DOSHA_SCHEMA,
}
