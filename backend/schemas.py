from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import List, Optional, Dict
from datetime import datetime, timezone
from enum import Enum


class Channel(str, Enum):
    DOMAIN = "domain"
    SOCIAL = "social"
    TRADEMARK = "trademark"
    SEO = "seo"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


CONFIDENCE_RANK = {Confidence.LOW: 0, Confidence.MEDIUM: 1, Confidence.HIGH: 2}


def cap_confidence(confidence: Confidence, ceiling: Confidence) -> Confidence:
    """Return the lower of two confidence levels"""
    if CONFIDENCE_RANK[confidence] > CONFIDENCE_RANK[ceiling]:
        return ceiling
    return confidence


class StateKind(str, Enum):
    AVAILABLE = "available"
    TAKEN = "taken"
    PREMIUM = "premium"
    RESTRICTED = "restricted"
    UNKNOWN = "unknown"


class AuthorityTier(str, Enum):
    HIGH = "high"
    MEDIUM = "med"
    LOW = "low"


class TrademarkStatus(str, Enum):
    LIVE = "live"
    DEAD = "dead"
    NONE = "none"


class NameStyle(str, Enum):
    DESCRIPTIVE = "descriptive"
    SUGGESTIVE = "suggestive"
    COINED = "coined"
    BLEND = "blend"
    METAPHOR = "metaphor"


class VerdictState(BaseModel):
    """Tagged state: `live_site` is only meaningful for TAKEN, `price` for PREMIUM"""
    model_config = ConfigDict(frozen=True)

    kind: StateKind
    live_site: Optional[bool] = None
    price: Optional[float] = None

    @classmethod
    def available(cls) -> "VerdictState":
        return cls(kind=StateKind.AVAILABLE)

    @classmethod
    def taken(cls, live_site: Optional[bool] = None) -> "VerdictState":
        return cls(kind=StateKind.TAKEN, live_site=live_site)

    @classmethod
    def premium(cls, price: Optional[float] = None) -> "VerdictState":
        return cls(kind=StateKind.PREMIUM, price=price)

    @classmethod
    def restricted(cls) -> "VerdictState":
        return cls(kind=StateKind.RESTRICTED)

    @classmethod
    def unknown(cls) -> "VerdictState":
        return cls(kind=StateKind.UNKNOWN)

    @model_validator(mode="after")
    def check_payload(self):
        if self.kind != StateKind.TAKEN and self.live_site is not None:
            raise ValueError("live_site only applies to a taken state")
        if self.kind != StateKind.PREMIUM and self.price is not None:
            raise ValueError("price only applies to a premium state")
        return self


class TrademarkRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: TrademarkStatus = TrademarkStatus.NONE
    serial: Optional[str] = None
    note: Optional[str] = None


class AvailabilityVerdict(BaseModel):
    """Resolved state of one channel + identifier for one name. Immutable."""
    model_config = ConfigDict(frozen=True)

    channel: Channel
    identifier: str = Field(description="e.g. '.com', 'instagram', 'USPTO'")
    state: VerdictState
    confidence: Confidence
    source_method: str = Field(default="", description="Which adapter produced the verdict")
    detail: Optional[str] = None
    urls: List[str] = Field(default=[])
    trademark: Optional[TrademarkRecord] = None

    @model_validator(mode="after")
    def unknown_is_low_confidence(self):
        if self.state.kind == StateKind.UNKNOWN and self.confidence != Confidence.LOW:
            raise ValueError("an unknown state must carry low confidence")
        return self

    @classmethod
    def unknown(cls, channel: Channel, identifier: str, source_method: str = "",
                detail: Optional[str] = None, urls: Optional[List[str]] = None) -> "AvailabilityVerdict":
        return cls(
            channel=channel,
            identifier=identifier,
            state=VerdictState.unknown(),
            confidence=Confidence.LOW,
            source_method=source_method,
            detail=detail,
            urls=urls or [],
        )

    @property
    def is_available(self) -> bool:
        return self.state.kind == StateKind.AVAILABLE


class SeoSignal(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    root_domain: str
    authority_tier: AuthorityTier = AuthorityTier.LOW
    url: Optional[str] = None
    placeholder: bool = Field(default=False, description="True for filler entries when search had no results")


class NameCheckResult(BaseModel):
    """Aggregate of all channel verdicts for one candidate name"""
    model_config = ConfigDict(frozen=True)

    name: str
    domain_verdicts: Dict[str, AvailabilityVerdict] = Field(default={})
    social_verdicts: Dict[str, AvailabilityVerdict] = Field(default={})
    trademark_verdict: AvailabilityVerdict
    seo_signals: List[SeoSignal] = Field(default=[])
    checked_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @field_validator('seo_signals')
    @classmethod
    def at_most_three(cls, v):
        if len(v) > 3:
            raise ValueError("at most 3 SEO signals are kept")
        return v

    @property
    def trademark_status(self) -> TrademarkStatus:
        record = self.trademark_verdict.trademark
        return record.status if record else TrademarkStatus.NONE


class BrandFitScore(BaseModel):
    total: int = Field(ge=0, le=100)
    subscores: Dict[str, float]
    explanation: str


class NameCandidate(BaseModel):
    name: str
    style: NameStyle = NameStyle.COINED
    rationale: Optional[str] = None

    @field_validator('style', mode='before')
    @classmethod
    def coerce_style(cls, v):
        if isinstance(v, NameStyle):
            return v
        if isinstance(v, str):
            value = v.strip().lower()
            aliases = {"metaphorical": "metaphor", "blends": "blend"}
            value = aliases.get(value, value)
            if value in NameStyle._value2member_map_:
                return value
        return NameStyle.COINED


class FitJudgement(BaseModel):
    score: float = 50
    rationale: str = ""

    @field_validator('score', mode='before')
    @classmethod
    def convert_score(cls, v):
        if v is None or v == '':
            return 50
        try:
            return max(0.0, min(100.0, float(v)))
        except (ValueError, TypeError):
            return 50


class RankedCandidate(BaseModel):
    candidate: NameCandidate
    check_result: NameCheckResult
    score: BrandFitScore
    fit_rationale: Optional[str] = None


class PipelineStatus(str, Enum):
    OK = "ok"
    NO_RESULTS = "no_results"
    NOT_CONFIGURED = "not_configured"
    GENERATION_FAILED = "generation_failed"


class PipelineRun(BaseModel):
    status: PipelineStatus
    candidates: List[RankedCandidate] = Field(default=[])
    generated_count: int = 0
    filtered_count: int = 0
    message: Optional[str] = None


# API bodies

class GenerateRequest(BaseModel):
    description: str = Field(description="Business description to generate names for")
    max_candidates: int = Field(default=10, ge=1, le=50)
    extended_tlds: bool = False
