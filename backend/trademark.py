"""
Trademark Research Module
========================
Looks for registered marks matching a candidate name by searching the
USPTO (directly scoped, or through a general search engine) and reading
the result text:

1. Run a registry-scoped search query
2. Keep results that are trademark records and actually mention the mark
3. Extract a serial / registration number when one is present
4. Classify live / dead by status keywords

No matching public record is a definitive negative (status "none"), unlike
the availability channels where ambiguity stays Unknown.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from rapidfuzz import fuzz

from providers import SearchHit, SignalProvider, safe_probe
from schemas import (
    AvailabilityVerdict,
    Channel,
    Confidence,
    TrademarkRecord,
    TrademarkStatus,
    VerdictState,
)

logger = logging.getLogger(__name__)

REGISTRY = "USPTO"
REGISTRY_DOMAINS = ("uspto.gov",)

LIVE_KEYWORDS = ("live", "registered")
DEAD_KEYWORDS = ("dead", "abandoned", "cancelled", "canceled", "expired")
TRADEMARK_MARKERS = ("trademark", "word mark", "registration")

MARK_MATCH_THRESHOLD = 90

# Consulted only when no search provider produced an answer at all
WELL_KNOWN_MARKS = {
    "apple", "google", "microsoft", "amazon", "facebook", "meta",
    "twitter", "tesla", "netflix", "spotify", "adobe", "oracle",
    "ibm", "intel", "nvidia", "samsung", "sony", "nike", "adidas",
    "cocacola", "coca-cola", "pepsi", "mcdonalds", "starbucks", "walmart",
    "target", "disney", "uber", "airbnb", "paypal",
}

SERIAL_PATTERNS = [
    ("link", re.compile(r"serial(?:number|_number|no)?=(\d{7,8})", re.IGNORECASE)),
    ("title", re.compile(r"\b(\d{8})\b")),
    ("snippet", re.compile(r"serial\s*(?:no|number)?\.?\s*:?\s*(\d{8})", re.IGNORECASE)),
    ("snippet", re.compile(r"registration\s*(?:no|number)?\.?\s*:?\s*(\d{7,8})", re.IGNORECASE)),
]


@dataclass
class TrademarkFinding:
    """Outcome of reading one set of search results"""
    status: TrademarkStatus = TrademarkStatus.NONE
    serial: Optional[str] = None
    registry_hits: int = 0
    mentions: List[str] = field(default_factory=list)


def build_query(name: str) -> str:
    return f'"{name}" trademark (site:uspto.gov OR site:tsdr.uspto.gov OR "word mark")'


def extract_serial(hit: SearchHit) -> Optional[str]:
    fields = {"link": hit.link, "title": hit.title, "snippet": hit.snippet}
    for field_name, pattern in SERIAL_PATTERNS:
        match = pattern.search(fields[field_name] or "")
        if match:
            return match.group(1)
    return None


def mentions_mark(name: str, hit: SearchHit) -> bool:
    text = f"{hit.title} {hit.snippet}".lower()
    compact = re.sub(r"[^a-z0-9]", "", text)
    if name.replace("-", "") in compact:
        return True
    return fuzz.partial_ratio(name.lower(), text) >= MARK_MATCH_THRESHOLD


def _has_keyword(text: str, keywords: Sequence[str]) -> bool:
    return any(re.search(rf"\b{re.escape(k)}\b", text) for k in keywords)


def analyze_hits(name: str, hits: List[SearchHit]) -> TrademarkFinding:
    finding = TrademarkFinding()
    for hit in hits:
        title = hit.title.lower()
        snippet = (hit.snippet or "").lower()
        link = hit.link.lower()

        from_registry = any(d in link for d in REGISTRY_DOMAINS)
        is_trademark_record = from_registry or _has_keyword(f"{title} {snippet}", TRADEMARK_MARKERS)
        if not is_trademark_record or not mentions_mark(name, hit):
            continue

        if from_registry:
            finding.registry_hits += 1
        finding.mentions.append(hit.link)

        text = f"{title} {snippet}"
        if _has_keyword(text, LIVE_KEYWORDS):
            finding.status = TrademarkStatus.LIVE
        elif _has_keyword(text, DEAD_KEYWORDS) and finding.status != TrademarkStatus.LIVE:
            finding.status = TrademarkStatus.DEAD

        if finding.serial is None:
            finding.serial = extract_serial(hit)

        if finding.status == TrademarkStatus.LIVE and finding.serial:
            break
    return finding


class TrademarkResolver:
    def __init__(self, search: Sequence[SignalProvider] = ()):
        self.search = list(search)

    async def resolve(self, name: str) -> AvailabilityVerdict:
        query = build_query(name)
        for provider in self.search:
            result = await safe_probe(provider, query)
            if result.exists is None:
                continue
            finding = analyze_hits(name, result.detail.get("hits") or [])
            logger.info(f"Trademark search for '{name}' via {result.source}: {finding.status.value}"
                        f" ({len(finding.mentions)} matching records)")
            return self._verdict(finding, result.source)

        return self._fallback(name)

    def _verdict(self, finding: TrademarkFinding, source: str) -> AvailabilityVerdict:
        if finding.status == TrademarkStatus.NONE:
            confidence = Confidence.MEDIUM
            note = "no matching registry records"
            if finding.mentions:
                note = "trademark mentions found without a live/dead status"
        else:
            confidence = Confidence.HIGH if finding.registry_hits else Confidence.MEDIUM
            note = f"{finding.status.value} record" + (f" (serial {finding.serial})" if finding.serial else "")

        state = VerdictState.taken() if finding.status == TrademarkStatus.LIVE else VerdictState.available()
        return AvailabilityVerdict(
            channel=Channel.TRADEMARK,
            identifier=REGISTRY,
            state=state,
            confidence=confidence,
            source_method=source,
            detail=note,
            urls=finding.mentions[:3],
            trademark=TrademarkRecord(status=finding.status, serial=finding.serial, note=note),
        )

    def _fallback(self, name: str) -> AvailabilityVerdict:
        """No search answer at all: only well-known marks can still be called"""
        if name.replace("-", "") in WELL_KNOWN_MARKS or name in WELL_KNOWN_MARKS:
            note = "well-known mark; trademark almost certainly registered"
            return AvailabilityVerdict(
                channel=Channel.TRADEMARK, identifier=REGISTRY, state=VerdictState.taken(),
                confidence=Confidence.MEDIUM, source_method="well-known-marks", detail=note,
                trademark=TrademarkRecord(status=TrademarkStatus.LIVE, note=note),
            )
        return unverified_verdict()


def unverified_verdict() -> AvailabilityVerdict:
    note = "unable to verify - consider a manual USPTO search"
    return AvailabilityVerdict(
        channel=Channel.TRADEMARK, identifier=REGISTRY, state=VerdictState.available(),
        confidence=Confidence.LOW, source_method="none", detail=note,
        trademark=TrademarkRecord(status=TrademarkStatus.NONE, note=note),
    )
