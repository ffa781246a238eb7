from neet_tracker.insights import build_prediction_prompt, explain_prediction
from neet_tracker.prediction import compute_prediction, fallback_prediction
from neet_tracker.models import PredictionFactors


def test_prompt_includes_numbers():
    prediction = compute_prediction(PredictionFactors(80, 60, 70, 75, 65))
    prompt = build_prediction_prompt(prediction, {"daily": 120, "weekly": 900, "lifetime": 5000})
    assert f"Predicted AIR: {prediction.predicted_rank}" in prompt
    assert "Mock test trend: 60/100" in prompt
    assert "lifetime: 5000" in prompt


def test_explain_returns_generated_text():
    prompts = []

    def generate(prompt):
        prompts.append(prompt)
        return "  Keep going.  "

    assert explain_prediction(fallback_prediction(), generate) == "Keep going."
    assert len(prompts) == 1


def test_explain_absorbs_generator_failure():
    prediction = fallback_prediction()

    def generate(prompt):
        raise ConnectionError("timeout")

    assert explain_prediction(prediction, generate) is None
    assert prediction.predicted_rank == 1500


def test_explain_empty_text_is_none():
    assert explain_prediction(fallback_prediction(), lambda prompt: "") is None
