"""
LLM collaborators: candidate generation and fit judgement.

Both go through litellm so any OpenAI-compatible model can be configured
with LLM_MODEL. Generation distinguishes "not configured" from a transient
failure; fit scoring never fails and falls back to a neutral 50.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from litellm import acompletion

from errors import GenerationError, PipelineConfigurationError
from schemas import FitJudgement, NameCandidate, NameCheckResult

logger = logging.getLogger(__name__)

MAX_GENERATED = 60
MIN_GENERATED_LENGTH = 3
MAX_GENERATED_LENGTH = 15

GENERATION_PROMPT = """You are a brand naming expert. Generate creative, memorable brand names based on the business description.

Create 40-60 diverse name candidates across these styles:
- descriptive: clear indication of what the business does
- suggestive: hints at benefits without being literal
- coined: invented words that sound natural
- blend: combinations of meaningful parts
- metaphor: names that evoke feelings or concepts

Requirements:
- Names should be 3-15 characters
- Easy to pronounce and spell
- Avoid existing trademarks
- No offensive or inappropriate content
- Prefer shorter, unique names that are likely to have domains available

Return a JSON object with a "names" array:
{"names": [{"name": "BrandName", "style": "coined", "rationale": "One sentence why this works"}]}"""

FIT_PROMPT = """Analyze this brand name for the business and give it a fit score from 0 to 100.

Name: {name}
Business: {description}
Availability: {availability}

Consider memorability and pronounceability, relevance to the business,
domain and social availability, SEO potential and trademark risk.

Return JSON: {{"score": 85, "rationale": "One sentence explanation"}}"""


def extract_json(content: str) -> Any:
    """Parse a JSON reply, tolerating markdown code fences around it"""
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0]
    elif "```" in content:
        parts = content.split("```")
        if len(parts) >= 2:
            content = parts[1]
            if content.startswith("json"):
                content = content[4:]
    return json.loads(content.strip())


def availability_summary(result: NameCheckResult) -> str:
    summary = {
        "domains": {tld: v.state.kind.value for tld, v in result.domain_verdicts.items()},
        "socials": {p: v.state.kind.value for p, v in result.social_verdicts.items()},
        "trademark": result.trademark_status.value,
        "seo": [s.root_domain for s in result.seo_signals if not s.placeholder],
    }
    return json.dumps(summary)


class NameGenerator:
    def __init__(self, api_key: Optional[str], model: str = "gpt-4o-mini", timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _complete(self, messages: List[Dict[str, str]], temperature: float, max_tokens: int) -> str:
        response = await acompletion(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
            api_key=self.api_key,
            timeout=self.timeout,
        )
        if not response.choices:
            raise ValueError("LLM returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise ValueError("LLM returned an empty message")
        return content

    async def generate_candidates(self, description: str) -> List[NameCandidate]:
        if not self.configured:
            raise PipelineConfigurationError("LLM API key is not configured (set OPENAI_API_KEY)")

        messages = [
            {"role": "system", "content": GENERATION_PROMPT},
            {"role": "user", "content": f"Business: {description}\n\nGenerate 40-60 name candidates."},
        ]
        try:
            content = await self._complete(messages, temperature=0.8, max_tokens=4000)
            data = extract_json(content)
        except Exception as e:
            logger.error(f"Name generation failed with {self.model}: {e}")
            raise GenerationError(f"Name generation failed: {e}") from e

        raw_names = data if isinstance(data, list) else data.get("names", []) if isinstance(data, dict) else []
        candidates = []
        for item in raw_names:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                continue
            name = item["name"].strip()
            if not MIN_GENERATED_LENGTH <= len(name) <= MAX_GENERATED_LENGTH:
                continue
            candidates.append(NameCandidate(name=name, style=item.get("style"), rationale=item.get("rationale")))

        logger.info(f"LLM generated {len(raw_names)} names, {len(candidates)} usable")
        return candidates[:MAX_GENERATED]

    async def score_fit(self, name: str, description: str, result: NameCheckResult) -> FitJudgement:
        if not self.configured:
            return FitJudgement(score=50, rationale="LLM not configured")

        prompt = FIT_PROMPT.format(name=name, description=description, availability=availability_summary(result))
        try:
            content = await self._complete([{"role": "user", "content": prompt}], temperature=0.3, max_tokens=200)
            data = extract_json(content)
            if not isinstance(data, dict):
                raise ValueError("fit judgement is not an object")
            return FitJudgement(score=data.get("score"), rationale=str(data.get("rationale") or ""))
        except Exception as e:
            logger.warning(f"Fit scoring failed for '{name}': {e}")
            return FitJudgement(score=50, rationale="Unable to analyze fit")
