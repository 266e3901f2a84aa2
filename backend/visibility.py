"""
Visibility Module - SEO Collision Check
=======================================
Runs one web search for the candidate name and grades the top organic
results by how hard they would be to outrank:
- a fixed allow-list of high-authority domains
- medium-authority patterns (gov/edu/org TLDs, known publishers and site builders)
- everything else is low authority

Always returns exactly three entries; missing slots are placeholders.
"""

import logging
from typing import List, Sequence

from providers import SearchHit, SignalProvider, host_of, safe_probe
from schemas import AuthorityTier, SeoSignal

logger = logging.getLogger(__name__)

TOP_RESULTS = 3

HIGH_AUTHORITY_DOMAINS = [
    "wikipedia.org", "amazon.com", "apple.com", "google.com",
    "microsoft.com", "facebook.com", "twitter.com", "x.com", "linkedin.com",
    "youtube.com", "instagram.com", "reddit.com", "github.com",
    "stackoverflow.com", "medium.com", "forbes.com", "nytimes.com",
    "cnn.com", "bbc.com", "bbc.co.uk", "wsj.com", "bloomberg.com",
]

MEDIUM_AUTHORITY_PATTERNS = [
    ".gov", ".edu", ".org",
    "techcrunch", "verge", "wired", "arstechnica",
    "shopify", "wordpress", "squarespace", "substack", "yelp",
]

# Second-level labels under which the registrable domain has three labels
SECOND_LEVEL_SUFFIXES = {"co", "com", "org", "net", "ac", "gov", "edu"}


def root_domain(host_or_url: str) -> str:
    host = host_of(host_or_url)
    labels = host.split(".")
    if len(labels) >= 3 and labels[-2] in SECOND_LEVEL_SUFFIXES and len(labels[-1]) == 2:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:]) if len(labels) >= 2 else host


def classify_authority(domain: str) -> AuthorityTier:
    domain = domain.lower()
    for high in HIGH_AUTHORITY_DOMAINS:
        if domain == high or domain.endswith("." + high):
            return AuthorityTier.HIGH
    for pattern in MEDIUM_AUTHORITY_PATTERNS:
        if pattern.startswith("."):
            if domain.endswith(pattern) or f"{pattern}." in domain:
                return AuthorityTier.MEDIUM
        elif pattern in domain:
            return AuthorityTier.MEDIUM
    return AuthorityTier.LOW


def placeholders(count: int, first_title: str = "No competing results found") -> List[SeoSignal]:
    return [
        SeoSignal(title=first_title if i == 0 else "-", root_domain="-",
                  authority_tier=AuthorityTier.LOW, placeholder=True)
        for i in range(count)
    ]


def to_signals(hits: List[SearchHit]) -> List[SeoSignal]:
    signals = []
    for hit in hits[:TOP_RESULTS]:
        root = root_domain(hit.link)
        signals.append(SeoSignal(
            title=hit.title or root,
            root_domain=root,
            authority_tier=classify_authority(host_of(hit.link)),
            url=hit.link,
        ))
    if len(signals) < TOP_RESULTS:
        filler_title = "No competing results found" if not signals else "-"
        signals.extend(placeholders(TOP_RESULTS - len(signals), filler_title))
    return signals


class SeoResolver:
    def __init__(self, search: Sequence[SignalProvider] = ()):
        self.search = list(search)

    async def resolve(self, name: str) -> List[SeoSignal]:
        for provider in self.search:
            result = await safe_probe(provider, name, num=TOP_RESULTS)
            if result.exists is None:
                continue
            hits = result.detail.get("hits") or []
            logger.info(f"SEO search for '{name}' via {result.source}: {len(hits)} results")
            return to_signals(hits)

        logger.warning(f"SEO search unavailable for '{name}'")
        return placeholders(TOP_RESULTS, "Unable to verify search results")
