"""
Brand fit scoring.

Turns one NameCheckResult (plus an optional LLM fit judgement) into a
0-100 composite. Pure and deterministic: the same inputs always give the
same score.
"""
from typing import Dict, Optional

from config import ScoringWeights
from schemas import (
    AuthorityTier,
    BrandFitScore,
    NameCheckResult,
    StateKind,
    TrademarkStatus,
)

PRIMARY_TLD = ".com"
PRIMARY_POINTS = {StateKind.AVAILABLE: 50.0, StateKind.PREMIUM: 20.0}
SECONDARY_POINTS = {StateKind.AVAILABLE: 12.5, StateKind.PREMIUM: 5.0}

SEO_PENALTY = {AuthorityTier.HIGH: 30, AuthorityTier.MEDIUM: 15, AuthorityTier.LOW: 5}

TRADEMARK_POINTS = {TrademarkStatus.NONE: 100.0, TrademarkStatus.DEAD: 70.0, TrademarkStatus.LIVE: 0.0}

DEFAULT_FIT_SCORE = 50.0

EXPLANATION_BANDS = [
    (80, "Excellent choice with strong availability across all channels."),
    (60, "Good option with some availability challenges to consider."),
    (40, "Mixed availability. Consider alternatives or variations."),
]
LIMITED_EXPLANATION = "Limited availability. Strong recommendation to explore other options."


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def domain_subscore(result: NameCheckResult) -> float:
    points = 0.0
    for tld, verdict in result.domain_verdicts.items():
        table = PRIMARY_POINTS if tld == PRIMARY_TLD else SECONDARY_POINTS
        points += table.get(verdict.state.kind, 0.0)
    return _clamp(points)


def social_subscore(result: NameCheckResult) -> float:
    verdicts = list(result.social_verdicts.values())
    if not verdicts:
        return 0.0
    share = 100.0 / len(verdicts)
    return _clamp(sum(share for v in verdicts if v.state.kind == StateKind.AVAILABLE))


def seo_subscore(result: NameCheckResult) -> float:
    # placeholders are low tier, including the "unable to verify" filler
    penalty = sum(SEO_PENALTY[s.authority_tier] for s in result.seo_signals)
    return _clamp(100.0 - penalty)


def trademark_subscore(result: NameCheckResult) -> float:
    return TRADEMARK_POINTS[result.trademark_status]


def explain(total: int) -> str:
    for floor, text in EXPLANATION_BANDS:
        if total >= floor:
            return text
    return LIMITED_EXPLANATION


def score_name(result: NameCheckResult, fit_score: Optional[float] = None,
               weights: Optional[ScoringWeights] = None) -> BrandFitScore:
    weights = weights or ScoringWeights()
    fit = DEFAULT_FIT_SCORE if fit_score is None else _clamp(float(fit_score))

    subscores: Dict[str, float] = {
        "availability": domain_subscore(result),
        "social": social_subscore(result),
        "seo": seo_subscore(result),
        "trademark": trademark_subscore(result),
        "fit": fit,
    }
    weight_map = weights.as_dict()
    weighted = sum(subscores[dim] * weight_map[dim] / 100 for dim in subscores)
    # half-up, then clamp: weights are not required to sum to 100
    total = int(_clamp(int(weighted + 0.5)))

    return BrandFitScore(total=total, subscores=subscores, explanation=explain(total))
