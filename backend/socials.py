"""
Social Handle Availability
==========================
One resolver for every platform, driven by a typed platform table.

Status-code semantics differ per platform, and several platforms actively
block automated probing, so each platform carries its own reliability tier:
how much a 404 or a 200 is worth. Anything the status code cannot justify
is reported as Unknown / low rather than guessed.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from providers import ProbeResult, SearchHit, SignalProvider, host_of, safe_probe
from schemas import AvailabilityVerdict, Channel, Confidence, StateKind, VerdictState, CONFIDENCE_RANK

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = (301, 302, 303, 307, 308)
SIGNUP_MARKERS = ("login", "signin", "sign-in", "signup", "sign-up", "accounts/", "register")


class ReliabilityTier(str, Enum):
    RELIABLE = "reliable"        # honest 404s and 200s
    STANDARD = "standard"        # honest 404s, 200s can be soft pages
    GUARDED = "guarded"          # bot protection, only a 404 means much
    UNRELIABLE = "unreliable"    # answers 200 for every path


# (confidence for a 404, confidence for a 200 or None when a 200 proves nothing)
TIER_CONFIDENCE: Dict[ReliabilityTier, Tuple[Confidence, Optional[Confidence]]] = {
    ReliabilityTier.RELIABLE: (Confidence.HIGH, Confidence.HIGH),
    ReliabilityTier.STANDARD: (Confidence.HIGH, Confidence.MEDIUM),
    ReliabilityTier.GUARDED: (Confidence.MEDIUM, Confidence.MEDIUM),
    ReliabilityTier.UNRELIABLE: (Confidence.MEDIUM, None),
}


@dataclass(frozen=True)
class PlatformSpec:
    key: str
    display_name: str
    url_templates: Tuple[str, ...]
    tier: ReliabilityTier
    allowed_chars: str = r"a-z0-9_"
    min_length: int = 1
    max_length: int = 30
    bot_protected: bool = False
    alias_templates: Tuple[str, ...] = ()

    def handle_for(self, name: str) -> str:
        return re.sub(f"[^{self.allowed_chars}]", "", name.lower())

    def handle_problem(self, handle: str) -> Optional[str]:
        if len(handle) < self.min_length:
            return f"handle shorter than {self.min_length} characters"
        if len(handle) > self.max_length:
            return f"{self.display_name} handles are limited to {self.max_length} characters"
        return None

    def urls(self, handle: str) -> List[str]:
        return [t.format(handle=handle) for t in self.url_templates]

    def profile_keys(self, handle: str) -> List[str]:
        """Normalized host+path forms that identify this handle's profile"""
        return [_url_key(t.format(handle=handle)) for t in self.url_templates + self.alias_templates]


PLATFORMS: Dict[str, PlatformSpec] = {
    "x": PlatformSpec(
        key="x", display_name="X",
        url_templates=("https://x.com/{handle}",),
        alias_templates=("https://twitter.com/{handle}",),
        tier=ReliabilityTier.RELIABLE, min_length=4, max_length=15,
    ),
    "instagram": PlatformSpec(
        key="instagram", display_name="Instagram",
        url_templates=("https://www.instagram.com/{handle}/",),
        tier=ReliabilityTier.UNRELIABLE, allowed_chars=r"a-z0-9._", max_length=30,
        bot_protected=True,
    ),
    "youtube": PlatformSpec(
        key="youtube", display_name="YouTube",
        url_templates=("https://www.youtube.com/@{handle}",),
        tier=ReliabilityTier.STANDARD, allowed_chars=r"a-z0-9._-", min_length=3, max_length=30,
    ),
    "tiktok": PlatformSpec(
        key="tiktok", display_name="TikTok",
        url_templates=("https://www.tiktok.com/@{handle}",),
        tier=ReliabilityTier.UNRELIABLE, allowed_chars=r"a-z0-9._", min_length=2, max_length=24,
        bot_protected=True,
    ),
    "substack": PlatformSpec(
        key="substack", display_name="Substack",
        url_templates=("https://substack.com/@{handle}", "https://{handle}.substack.com"),
        tier=ReliabilityTier.GUARDED, allowed_chars=r"a-z0-9", max_length=63,
    ),
    "github": PlatformSpec(
        key="github", display_name="GitHub",
        url_templates=("https://github.com/{handle}",),
        tier=ReliabilityTier.RELIABLE, allowed_chars=r"a-z0-9-", max_length=39,
    ),
    "pinterest": PlatformSpec(
        key="pinterest", display_name="Pinterest",
        url_templates=("https://www.pinterest.com/{handle}/",),
        tier=ReliabilityTier.STANDARD, min_length=3, max_length=30,
    ),
    "threads": PlatformSpec(
        key="threads", display_name="Threads",
        url_templates=("https://www.threads.net/@{handle}",),
        tier=ReliabilityTier.UNRELIABLE, allowed_chars=r"a-z0-9._", max_length=30,
        bot_protected=True,
    ),
}

DEFAULT_PLATFORMS = ["x", "instagram", "youtube", "tiktok", "substack"]


def _url_key(url: str) -> str:
    path = url.split("://", 1)[-1]
    path = path.split("?", 1)[0].split("#", 1)[0]
    rest = path.split("/", 1)[1] if "/" in path else ""
    return f"{host_of(url)}/{rest.strip('/')}".lower()


def classify_status(platform: PlatformSpec, result: ProbeResult) -> Tuple[StateKind, Confidence, str]:
    """Map one raw profile probe onto (state, confidence, note) using the platform's tier"""
    status = result.detail.get("status")
    if status is None:
        return StateKind.UNKNOWN, Confidence.LOW, result.error or "no response"

    available_conf, taken_conf = TIER_CONFIDENCE[platform.tier]

    if status in (404, 410):
        return StateKind.AVAILABLE, available_conf, f"HTTP {status}"
    if status == 200:
        if taken_conf is None:
            return StateKind.UNKNOWN, Confidence.LOW, "HTTP 200 is returned for every profile"
        return StateKind.TAKEN, taken_conf, "HTTP 200"
    if platform.bot_protected:
        return StateKind.UNKNOWN, Confidence.LOW, f"HTTP {status} from a bot-protected platform"
    if status in REDIRECT_STATUSES:
        location = (result.detail.get("location") or "").lower()
        if any(marker in location for marker in SIGNUP_MARKERS):
            return StateKind.AVAILABLE, Confidence.MEDIUM, "redirected to login/signup"
        return StateKind.TAKEN, Confidence.MEDIUM, f"redirected to {location or 'another page'}"
    return StateKind.UNKNOWN, Confidence.LOW, f"HTTP {status}"


def _min_confidence(values: Sequence[Confidence]) -> Confidence:
    return min(values, key=lambda c: CONFIDENCE_RANK[c])


class SocialResolver:
    def __init__(self, http_probe: SignalProvider, search: Sequence[SignalProvider] = (),
                 platforms: Optional[Dict[str, PlatformSpec]] = None, search_cross_check: bool = True):
        self.http_probe = http_probe
        self.search = list(search)
        self.platforms = platforms or PLATFORMS
        self.search_cross_check = search_cross_check

    def supports(self, platform: str) -> bool:
        return platform in self.platforms

    async def resolve(self, name: str, platform_key: str) -> AvailabilityVerdict:
        platform = self.platforms.get(platform_key)
        if platform is None:
            return AvailabilityVerdict.unknown(Channel.SOCIAL, platform_key, "none", detail="unsupported platform")

        handle = platform.handle_for(name)
        urls = platform.urls(handle)
        problem = platform.handle_problem(handle)
        if problem:
            return AvailabilityVerdict(
                channel=Channel.SOCIAL, identifier=platform.key, state=VerdictState.restricted(),
                confidence=Confidence.HIGH, source_method="username-rules", detail=problem, urls=urls,
            )

        probes = await asyncio.gather(*(safe_probe(self.http_probe, url) for url in urls))
        outcomes = [classify_status(platform, p) for p in probes]
        kind, confidence, note = self._combine(outcomes)
        source = self.http_probe.name

        if self.search_cross_check and self.search and (kind == StateKind.UNKNOWN or confidence == Confidence.LOW):
            match = await self._search_profile(platform, handle)
            if match:
                return AvailabilityVerdict(
                    channel=Channel.SOCIAL, identifier=platform.key, state=VerdictState.taken(),
                    confidence=Confidence.HIGH, source_method=f"{source}+{match[0]}",
                    detail=f"profile indexed at {match[1]}", urls=urls,
                )

        if kind == StateKind.UNKNOWN:
            return AvailabilityVerdict.unknown(Channel.SOCIAL, platform.key, source, detail=note, urls=urls)
        state = VerdictState.taken() if kind == StateKind.TAKEN else VerdictState.available()
        return AvailabilityVerdict(
            channel=Channel.SOCIAL, identifier=platform.key, state=state,
            confidence=confidence, source_method=source, detail=note, urls=urls,
        )

    @staticmethod
    def _combine(outcomes: List[Tuple[StateKind, Confidence, str]]) -> Tuple[StateKind, Confidence, str]:
        """Multi-URL platforms: taken if any form is claimed, available only if every form is free"""
        if len(outcomes) == 1:
            return outcomes[0]
        taken = [o for o in outcomes if o[0] == StateKind.TAKEN]
        if taken:
            return taken[0]
        if all(o[0] == StateKind.AVAILABLE for o in outcomes):
            return (StateKind.AVAILABLE, _min_confidence([o[1] for o in outcomes]),
                    "; ".join(o[2] for o in outcomes))
        unknown = next(o for o in outcomes if o[0] == StateKind.UNKNOWN)
        return StateKind.UNKNOWN, Confidence.LOW, unknown[2]

    async def _search_profile(self, platform: PlatformSpec, handle: str) -> Optional[Tuple[str, str]]:
        """Look for the exact profile URL in search results. Returns (source, link) on a match."""
        keys = set(platform.profile_keys(handle))
        site = host_of(platform.url_templates[0].format(handle=handle))
        query = f'"{handle}" site:{site}'
        for provider in self.search:
            result = await safe_probe(provider, query)
            hits: List[SearchHit] = result.detail.get("hits") or []
            for hit in hits:
                if _url_key(hit.link) in keys:
                    return result.source, hit.link
            if result.exists is not None:
                return None
        return None
