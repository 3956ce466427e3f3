import pytest
from unittest.mock import AsyncMock, MagicMock

from app.services.llm import FitExplainer, fallback_bullets


CONTEXT = {
    "anchor_brands": [{"display_name": "Reformation", "size": "6"}],
    "target_brand": "Alo Yoga",
    "recommended_size": "M",
    "fit_preference": "true_to_size",
    "fit_notes": None,
    "target_fit_tendency": "runs_small",
}


def test_fallback_bullets():
    bullets = fallback_bullets(CONTEXT)
    assert bullets == [
        "You wear 6 in Reformation",
        "Alo Yoga runs small",
        "Adjusted for your true to size fit preference",
    ]


def test_fallback_bullets_use_fit_notes_then_default():
    ctx = dict(CONTEXT, target_fit_tendency=None, fit_notes="Cropped fit")
    assert fallback_bullets(ctx)[1] == "Cropped fit"
    ctx = dict(CONTEXT, target_fit_tendency=None)
    assert fallback_bullets(ctx)[1] == "Alo Yoga sizing aligns with standard US sizing"


@pytest.mark.asyncio
async def test_without_api_key_uses_fallback():
    explainer = FitExplainer(api_key="")
    assert explainer.client is None
    assert await explainer.generate_explanation(CONTEXT) == fallback_bullets(CONTEXT)


def _client_returning(content):
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    resp = MagicMock()
    resp.choices = [choice]
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=resp)
    return client


@pytest.mark.asyncio
async def test_model_bullets_are_used():
    explainer = FitExplainer(api_key="")
    explainer.client = _client_returning('{"bullets": ["one", "two", "three"]}')
    assert await explainer.generate_explanation(CONTEXT) == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_malformed_model_output_falls_back():
    explainer = FitExplainer(api_key="")
    explainer.client = _client_returning('{"bullets": ["only one"]}')
    assert await explainer.generate_explanation(CONTEXT) == fallback_bullets(CONTEXT)

    explainer.client = _client_returning("not json")
    assert await explainer.generate_explanation(CONTEXT) == fallback_bullets(CONTEXT)
