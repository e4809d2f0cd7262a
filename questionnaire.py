"""Dosha questionnaire: declared questions and how answers are combined."""
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Question:
    key: str
    text: str
    options: Tuple[str, ...]


DOSHA_QUESTIONS: Tuple[Question, ...] = (
    Question("build", "How would you describe your body frame?",
             ("Thin, light, tall or short", "Medium, muscular", "Large, sturdy, well-built")),
    Question("skin", "What is your skin usually like?",
             ("Dry, rough, cool, thin", "Oily, sensitive, warm, reddish", "Thick, cool, pale, moist")),
    Question("hair", "Describe your hair type.",
             ("Dry, brittle, thin", "Oily, fine, early graying", "Thick, oily, wavy")),
    Question("appetite", "How is your appetite?",
             ("Irregular, variable", "Strong, sharp, irritable if hungry", "Slow but steady, can skip meals")),
    Question("energy", "How are your energy levels?",
             ("Comes in bursts, variable", "Moderate, steady, competitive", "High stamina, but slow to start")),
    Question("stressResponse", "Under stress, you tend to feel...",
             ("Anxious, worried, fearful", "Irritable, angry, critical", "Calm, withdrawn, possessive")),
)


def combine_answers(
    chosen: Mapping[str, Optional[str]],
    custom: Optional[Mapping[str, str]] = None,
    questions: Sequence[Question] = DOSHA_QUESTIONS,
) -> Dict[str, str]:
    """
    Merge picked options with free-typed answers, one entry per declared key.

    A non-blank free-typed answer wins over the picked option. Keys that
    were not declared are ignored; unanswered keys map to "".
    """
    custom = custom or {}
    combined = {}
    for question in questions:
        typed = (custom.get(question.key) or "").strip()
        picked = (chosen.get(question.key) or "").strip()
        combined[question.key] = typed or picked
    return combined


def missing_answers(answers: Mapping[str, str], questions: Sequence[Question] = DOSHA_QUESTIONS) -> List[str]:
    return [q.key for q in questions if not (answers.get(q.key) or "").strip()]
