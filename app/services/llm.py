import json
from typing import Any, Dict, List

import structlog
from openai import AsyncOpenAI

from ..config import settings


logger = structlog.get_logger("sizebridge.llm")


def _label(value: str | None) -> str:
    return (value or "").replace("_", " ")


def fallback_bullets(context: Dict[str, Any]) -> List[str]:
    """Deterministic three-line explanation used when no model is available."""
    anchors = context.get("anchor_brands") or []
    target = context.get("target_brand") or "This brand"
    bullets: List[str] = []
    if anchors:
        first = anchors[0]
        bullets.append(f"You wear {first['size']} in {first['display_name']}")
    else:
        bullets.append(f"We recommend {context.get('recommended_size', '')} in {target}")

    if context.get("target_fit_tendency"):
        bullets.append(f"{target} {_label(context['target_fit_tendency'])}")
    elif context.get("fit_notes"):
        bullets.append(context["fit_notes"])
    else:
        bullets.append(f"{target} sizing aligns with standard US sizing")

    bullets.append(f"Adjusted for your {_label(context.get('fit_preference') or 'true_to_size')} fit preference")
    return bullets


class FitExplainer:
    """Explains a recommendation in three short bullets."""

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.client = AsyncOpenAI(api_key=self.api_key) if self.api_key else None

    async def generate_explanation(self, context: Dict[str, Any]) -> List[str]:
        if not self.client:
            return fallback_bullets(context)

        anchors = ", ".join(f"{a['size']} in {a['display_name']}" for a in context.get("anchor_brands") or [])
        lines = [
            f"The user wears: {anchors}",
            f"Their fit preference: {_label(context.get('fit_preference'))}",
        ]
        if context.get("fit_notes"):
            lines.append(f"Brand fit notes: {context['fit_notes']}")
        if context.get("target_fit_tendency"):
            lines.append(f"{context.get('target_brand')} generally {_label(context['target_fit_tendency'])}")

        prompt = (
            "You are a sizing expert for a women's fashion sizing tool. Explain why we recommend size "
            f"\"{context.get('recommended_size')}\" in {context.get('target_brand')}. "
            "Return a JSON object with one key 'bullets': a list of exactly 3 plain-text sentences, each under 15 words. "
            "The first references what they wear in their anchor brand, the second how the target brand fits, "
            "the third their fit preference. Be definitive, no hedging, no bullet characters."
        )
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": "\n".join(lines)},
                ],
                temperature=0.3,
                max_tokens=200,
                response_format={"type": "json_object"},
            )
            raw_content = (resp.choices[0].message.content or "").strip()
            bullets = json.loads(raw_content).get("bullets")
            if isinstance(bullets, list) and len(bullets) == 3 and all(isinstance(b, str) for b in bullets):
                return bullets
            logger.warning("explanation_malformed", content=raw_content[:200])
        except Exception as e:
            logger.warning("explanation_failed", error=str(e))
        return fallback_bullets(context)
