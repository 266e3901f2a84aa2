"""
Name generation pipeline.

Generate -> filter -> deep check + score (concurrently per candidate) -> rank -> truncate.

RunPipeline never raises for provider or LLM trouble; the outcome is
reported through PipelineRun.status. Only malformed input is raised, and
that happens before any network call.
"""
import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from availability import AvailabilityChecker
from config import ScoringWeights
from errors import GenerationError, InputValidationError, PipelineConfigurationError
from generator import NameGenerator
from schemas import NameCandidate, PipelineRun, PipelineStatus, RankedCandidate
from scoring import score_name

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 2000
MAX_CANDIDATES_LIMIT = 50


@dataclass
class CandidateFilter:
    """Coarse, offline filter applied to generated names before any network checks"""
    min_length: int = 3
    max_length: int = 15
    forbidden_substrings: Sequence[str] = field(
        default_factory=lambda: ["xxx", "porn", "sex", "fuck", "shit", "damn", "hell"])
    require_vowel: bool = True

    def accepts(self, name: str) -> bool:
        n = name.lower()
        if not self.min_length <= len(n) <= self.max_length:
            return False
        if any(sub in n for sub in self.forbidden_substrings):
            return False
        if self.require_vowel and not re.search(r"[aeiou]", n):
            return False
        return True


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def apply_filters(candidates: List[NameCandidate], filters: Optional[CandidateFilter] = None) -> List[NameCandidate]:
    """Filter and de-duplicate by slug, keeping the first occurrence"""
    filters = filters or CandidateFilter()
    seen = set()
    kept = []
    for candidate in candidates:
        slug = slugify(candidate.name)
        if not slug or slug in seen or not filters.accepts(candidate.name):
            continue
        seen.add(slug)
        kept.append(candidate)
    return kept


def validate_request(description: str, max_candidates: int) -> str:
    description = (description or "").strip()
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise InputValidationError("Please provide a detailed business description")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise InputValidationError(f"Business description is too long (max {MAX_DESCRIPTION_LENGTH} characters)")
    if not 1 <= max_candidates <= MAX_CANDIDATES_LIMIT:
        raise InputValidationError(f"max_candidates must be between 1 and {MAX_CANDIDATES_LIMIT}")
    return description


class NamePipeline:
    def __init__(self, generator: NameGenerator, checker: AvailabilityChecker,
                 weights: Optional[ScoringWeights] = None, max_deep_checks: int = 15,
                 filters: Optional[CandidateFilter] = None):
        self.generator = generator
        self.checker = checker
        self.weights = weights or ScoringWeights()
        self.max_deep_checks = max_deep_checks
        self.filters = filters or CandidateFilter()

    async def run(self, description: str, max_candidates: int = 10, extended_tlds: bool = False) -> PipelineRun:
        description = validate_request(description, max_candidates)

        try:
            generated = await self.generator.generate_candidates(description)
        except PipelineConfigurationError as e:
            logger.error(f"Pipeline not configured: {e}")
            return PipelineRun(status=PipelineStatus.NOT_CONFIGURED, message=str(e))
        except GenerationError as e:
            return PipelineRun(status=PipelineStatus.GENERATION_FAILED, message=str(e))

        filtered = apply_filters(generated, self.filters)
        logger.info(f"Stage 1: {len(generated)} generated, {len(filtered)} passed filters")
        if not filtered:
            return PipelineRun(status=PipelineStatus.NO_RESULTS, generated_count=len(generated),
                               message="No usable name candidates were generated")

        deep = filtered[:self.max_deep_checks]
        outcomes = await asyncio.gather(
            *(self._evaluate(c, description, extended_tlds) for c in deep),
            return_exceptions=True,
        )

        ranked: List[RankedCandidate] = []
        for candidate, outcome in zip(deep, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Deep check failed for '{candidate.name}': {outcome!r}")
                continue
            ranked.append(outcome)

        ranked.sort(key=lambda r: r.score.total, reverse=True)
        logger.info(f"Stage 2: {len(ranked)} of {len(deep)} candidates checked, returning {min(len(ranked), max_candidates)}")

        if not ranked:
            return PipelineRun(status=PipelineStatus.NO_RESULTS, generated_count=len(generated),
                               filtered_count=len(filtered), message="Every candidate check failed")
        return PipelineRun(
            status=PipelineStatus.OK,
            candidates=ranked[:max_candidates],
            generated_count=len(generated),
            filtered_count=len(filtered),
        )

    async def _evaluate(self, candidate: NameCandidate, description: str, extended_tlds: bool) -> RankedCandidate:
        result = await self.checker.check_name(slugify(candidate.name), extended=extended_tlds)
        fit = await self.generator.score_fit(candidate.name, description, result)
        score = score_name(result, fit.score, self.weights)
        return RankedCandidate(candidate=candidate, check_result=result, score=score, fit_rationale=fit.rationale)
