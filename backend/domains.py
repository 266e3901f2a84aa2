"""
Domain channel resolver.

Per (name, TLD):
  1. registrar availability APIs, in order (authoritative)
  2. DNS-over-HTTPS, then WHOIS (best effort, capped at medium confidence)
  3. taken domains get a live-site probe to tell a live site from a parked one
  4. nothing definitive -> Unknown / low

A registrar answer always wins over DNS/WHOIS; the fallbacks are only
consulted when no registrar produced a definitive result.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from providers import ProbeResult, SignalProvider, safe_probe
from schemas import (
    AvailabilityVerdict,
    Channel,
    Confidence,
    VerdictState,
    cap_confidence,
)

logger = logging.getLogger(__name__)

PREMIUM_PRICE_THRESHOLD = 249.0


class DomainResolver:
    def __init__(
        self,
        registrars: Sequence[SignalProvider] = (),
        fallbacks: Sequence[SignalProvider] = (),
        live_site: Optional[SignalProvider] = None,
        premium_threshold: float = PREMIUM_PRICE_THRESHOLD,
    ):
        self.registrars = list(registrars)
        self.fallbacks = list(fallbacks)
        self.live_site = live_site
        self.premium_threshold = premium_threshold

    async def resolve(self, name: str, tld: str) -> AvailabilityVerdict:
        domain = f"{name}{tld}"
        attempts: List[str] = []

        for registrar in self.registrars:
            result = await safe_probe(registrar, domain)
            attempts.append(f"{result.source}:{result.error or 'ok'}")
            if result.detail.get("restricted"):
                return self._verdict(tld, VerdictState.restricted(), result.confidence, result.source,
                                     result.detail.get("message"))
            is_premium, price = self._premium(result)
            if is_premium:
                return self._verdict(tld, VerdictState.premium(price), result.confidence, result.source,
                                     f"premium ${price:g}" if price is not None else "premium")
            if result.definitive:
                return await self._from_probe(domain, tld, result, ceiling=Confidence.HIGH)

        for fallback in self.fallbacks:
            result = await safe_probe(fallback, domain)
            attempts.append(f"{result.source}:{result.error or 'ok'}")
            if result.definitive:
                return await self._from_probe(domain, tld, result, ceiling=Confidence.MEDIUM)

        logger.info(f"No definitive domain signal for {domain} ({', '.join(attempts) or 'no providers'})")
        return AvailabilityVerdict.unknown(
            Channel.DOMAIN, tld,
            source_method="+".join(a.split(":")[0] for a in attempts) or "none",
            detail="unable to verify",
        )

    def _premium(self, result: ProbeResult) -> Tuple[bool, Optional[float]]:
        """A registration price at or above the threshold is premium whatever the
        availability flag says; an explicit premium flag counts for available names."""
        price = result.detail.get("price")
        if price is not None and price >= self.premium_threshold:
            return True, float(price)
        if result.detail.get("premium") and result.exists is False:
            return True, price
        return False, None

    async def _from_probe(self, domain: str, tld: str, result: ProbeResult,
                          ceiling: Confidence) -> AvailabilityVerdict:
        confidence = cap_confidence(result.confidence, ceiling)
        if result.exists is False:
            return self._verdict(tld, VerdictState.available(), confidence, result.source, "available")

        live = await self.probe_live_site(domain)
        return self._verdict(
            tld,
            VerdictState.taken(live_site=live),
            confidence,
            result.source,
            "live site" if live else "parked",
        )

    async def probe_live_site(self, domain: str) -> bool:
        if self.live_site is None:
            return False
        result = await safe_probe(self.live_site, domain)
        return result.exists is True

    @staticmethod
    def _verdict(tld: str, state: VerdictState, confidence: Confidence, source: str,
                 detail: Optional[str]) -> AvailabilityVerdict:
        return AvailabilityVerdict(
            channel=Channel.DOMAIN,
            identifier=tld,
            state=state,
            confidence=confidence,
            source_method=source,
            detail=detail,
        )
