"""Narrative explanations for rank predictions from an external text generator.

The generator is any callable taking a prompt and returning text. It only
decorates a prediction; the numbers never depend on its output.
"""
import logging
from typing import Callable, Optional

from neet_tracker.models import RankPrediction

logger = logging.getLogger(__name__)

FACTOR_LABELS = {
    "progress_score": "Syllabus progress",
    "test_trend": "Mock test trend",
    "consistency": "Daily consistency",
    "biological_factor": "Energy and cycle",
    "external_factor": "Exam proximity",
}


def build_prediction_prompt(prediction: RankPrediction, question_stats: Optional[dict] = None) -> str:
    lines = [
        "You are a NEET preparation coach. Explain this rank prediction to the student",
        "in under 150 words, encouraging but honest, and name the single most useful next step.",
        "",
        f"Predicted AIR: {prediction.predicted_rank}",
        f"Confidence: {prediction.confidence:.0%}",
        f"Risk level: {prediction.risk_level}",
    ]
    for name, label in FACTOR_LABELS.items():
        lines.append(f"{label}: {getattr(prediction.factors, name):.0f}/100")
    if question_stats:
        lines.append(f"Questions today: {question_stats['daily']}, this week: {question_stats['weekly']}, "
                     f"lifetime: {question_stats['lifetime']}")
    if prediction.recommendations:
        lines.append("Current recommendations:")
        lines.extend(f"- {r}" for r in prediction.recommendations)
    return "\n".join(lines)


def explain_prediction(
    prediction: RankPrediction,
    generate: Callable[[str], str],
    question_stats: Optional[dict] = None,
) -> Optional[str]:
    """Return generated narrative text, or None if the generator fails."""
    prompt = build_prediction_prompt(prediction, question_stats)
    try:
        text = generate(prompt)
    except Exception as e:
        logger.warning("Insight generation failed: %s", e)
        return None
    text = (text or "").strip()
    return text or None
