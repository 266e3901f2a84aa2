"""
Name Availability Aggregator
Fans out the domain, social, trademark and SEO resolvers for one name and
collects a NameCheckResult. Every channel is failure-isolated: a channel
that raises or runs past its deadline degrades to Unknown (or to SEO
placeholders) without touching its siblings.
"""
import asyncio
import logging
from typing import Any, Awaitable, List, Optional

from cache import Cache, cache_get, schedule_cache_write
from config import Settings
from domains import DomainResolver
from errors import InputValidationError
from input_parser import parse_user_input, tlds_to_check, validate_name
from providers import (
    DnsOverHttpsProvider,
    DuckDuckGoSearchProvider,
    GoDaddyRegistrarProvider,
    HttpProbeProvider,
    LiveSiteProvider,
    PorkbunRegistrarProvider,
    SerpApiSearchProvider,
    SignalProvider,
    WhoisProvider,
)
from schemas import AvailabilityVerdict, Channel, NameCheckResult
from socials import DEFAULT_PLATFORMS, SocialResolver
from trademark import TrademarkResolver, unverified_verdict
from visibility import TOP_RESULTS, SeoResolver, placeholders

logger = logging.getLogger(__name__)

CACHE_KEY_VERSION = "v1"


def cache_key(name: str, tlds: List[str], platforms: List[str]) -> str:
    return f"namecheck:{CACHE_KEY_VERSION}:{name}:{','.join(tlds)}:{','.join(platforms)}"


class AvailabilityChecker:
    def __init__(
        self,
        domains: DomainResolver,
        socials: SocialResolver,
        trademark: TrademarkResolver,
        seo: SeoResolver,
        max_tlds: int = 14,
        max_platforms: int = 8,
        channel_timeout: float = 31.0,
        cache: Optional[Cache] = None,
        cache_ttl: int = 86400,
        cache_timeout: float = 2.0,
    ):
        self.domains = domains
        self.socials = socials
        self.trademark = trademark
        self.seo = seo
        self.max_tlds = max_tlds
        self.max_platforms = max_platforms
        self.channel_timeout = channel_timeout
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.cache_timeout = cache_timeout

    def prepare(self, raw_name: str, tlds: Optional[List[str]] = None, platforms: Optional[List[str]] = None,
                extended: bool = False):
        """Validate and normalize a request. Raises InputValidationError; does no I/O."""
        parsed = parse_user_input(raw_name)
        tld_list = tlds_to_check(parsed, tlds, extended)
        if len(tld_list) > self.max_tlds:
            logger.warning(f"Capping TLD list for '{parsed.name}' from {len(tld_list)} to {self.max_tlds}")
            tld_list = tld_list[:self.max_tlds]

        platform_list = list(dict.fromkeys(p.strip().lower() for p in (platforms or DEFAULT_PLATFORMS) if p.strip()))
        unsupported = [p for p in platform_list if not self.socials.supports(p)]
        if unsupported:
            raise InputValidationError(f"Unsupported platform(s): {', '.join(unsupported)}")
        if len(platform_list) > self.max_platforms:
            logger.warning(f"Capping platform list for '{parsed.name}' from {len(platform_list)} to {self.max_platforms}")
            platform_list = platform_list[:self.max_platforms]
        return parsed.name, tld_list, platform_list

    async def check_name(self, raw_name: str, tlds: Optional[List[str]] = None,
                         platforms: Optional[List[str]] = None, extended: bool = False) -> NameCheckResult:
        name, tld_list, platform_list = self.prepare(raw_name, tlds, platforms, extended)

        key = cache_key(name, tld_list, platform_list)
        cached = self._from_cache(await cache_get(self.cache, key, self.cache_timeout))
        if cached is not None:
            logger.info(f"Cache hit for '{name}'")
            return cached

        result = await self.resolve_all(name, tld_list, platform_list)
        schedule_cache_write(self.cache, key, result.model_dump(mode="json"), self.cache_ttl)
        return result

    async def resolve_all(self, name: str, tlds: List[str], platforms: List[str]) -> NameCheckResult:
        domain_jobs = [self._guard(self.domains.resolve(name, tld)) for tld in tlds]
        social_jobs = [self._guard(self.socials.resolve(name, p)) for p in platforms]
        outcomes = await asyncio.gather(
            *domain_jobs,
            *social_jobs,
            self._guard(self.trademark.resolve(name)),
            self._guard(self.seo.resolve(name)),
            return_exceptions=True,
        )

        domain_out = outcomes[:len(tlds)]
        social_out = outcomes[len(tlds):len(tlds) + len(platforms)]
        trademark_out, seo_out = outcomes[-2], outcomes[-1]

        domain_verdicts = {
            tld: self._or_unknown(out, Channel.DOMAIN, tld, name)
            for tld, out in zip(tlds, domain_out)
        }
        social_verdicts = {
            platform: self._or_unknown(out, Channel.SOCIAL, platform, name)
            for platform, out in zip(platforms, social_out)
        }

        if isinstance(trademark_out, BaseException):
            logger.error(f"Trademark channel failed for '{name}': {trademark_out!r}")
            trademark_out = unverified_verdict()
        if isinstance(seo_out, BaseException):
            logger.error(f"SEO channel failed for '{name}': {seo_out!r}")
            seo_out = placeholders(TOP_RESULTS, "Unable to verify search results")

        return NameCheckResult(
            name=name,
            domain_verdicts=domain_verdicts,
            social_verdicts=social_verdicts,
            trademark_verdict=trademark_out,
            seo_signals=seo_out,
        )

    async def check_social(self, raw_name: str, platform: str) -> AvailabilityVerdict:
        name = validate_name(raw_name)
        platform = platform.strip().lower()
        if not self.socials.supports(platform):
            raise InputValidationError(f"Unsupported platform: {platform}")
        outcome = (await asyncio.gather(self._guard(self.socials.resolve(name, platform)), return_exceptions=True))[0]
        return self._or_unknown(outcome, Channel.SOCIAL, platform, name)

    async def _guard(self, job: Awaitable[Any]) -> Any:
        return await asyncio.wait_for(job, timeout=self.channel_timeout)

    @staticmethod
    def _or_unknown(outcome: Any, channel: Channel, identifier: str, name: str) -> AvailabilityVerdict:
        if isinstance(outcome, AvailabilityVerdict):
            return outcome
        reason = "timed out" if isinstance(outcome, asyncio.TimeoutError) else "failed"
        logger.error(f"{channel.value} check for '{name}' ({identifier}) {reason}: {outcome!r}")
        return AvailabilityVerdict.unknown(channel, identifier, "none", detail=f"check {reason}")

    @staticmethod
    def _from_cache(value: Any) -> Optional[NameCheckResult]:
        if value is None:
            return None
        try:
            if isinstance(value, NameCheckResult):
                return value
            if isinstance(value, (str, bytes)):
                return NameCheckResult.model_validate_json(value)
            return NameCheckResult.model_validate(value)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable cached check result: {e}")
            return None


def build_search_providers(settings: Settings) -> List[SignalProvider]:
    providers: List[SignalProvider] = []
    if settings.serpapi_key:
        providers.append(SerpApiSearchProvider(settings.serpapi_key, timeout=settings.search_timeout))
    if settings.enable_duckduckgo:
        providers.append(DuckDuckGoSearchProvider(timeout=settings.search_timeout))
    return providers


def build_checker(settings: Settings, cache: Optional[Cache] = None,
                  search: Optional[List[SignalProvider]] = None) -> AvailabilityChecker:
    """Wire resolvers and adapters from configuration. Missing credentials just drop that adapter."""
    registrars: List[SignalProvider] = []
    if settings.porkbun_api_key and settings.porkbun_api_secret:
        registrars.append(PorkbunRegistrarProvider(
            settings.porkbun_api_key, settings.porkbun_api_secret, timeout=settings.registrar_timeout))
    if settings.godaddy_api_key and settings.godaddy_api_secret:
        registrars.append(GoDaddyRegistrarProvider(
            settings.godaddy_api_key, settings.godaddy_api_secret, timeout=settings.registrar_timeout))
    if not registrars:
        logger.warning("No registrar credentials configured; domain checks fall back to DNS/WHOIS")

    search = build_search_providers(settings) if search is None else search
    if not search:
        logger.warning("No search provider configured; trademark/SEO checks will be unverified")

    domains = DomainResolver(
        registrars=registrars,
        fallbacks=[
            DnsOverHttpsProvider(settings.doh_endpoint, timeout=settings.dns_timeout),
            WhoisProvider(timeout=settings.whois_timeout),
        ],
        live_site=LiveSiteProvider(timeout=settings.live_site_timeout),
        premium_threshold=settings.premium_price_threshold,
    )
    socials = SocialResolver(
        http_probe=HttpProbeProvider(timeout=settings.http_probe_timeout),
        search=search,
        search_cross_check=settings.social_search_cross_check,
    )
    return AvailabilityChecker(
        domains=domains,
        socials=socials,
        trademark=TrademarkResolver(search=search),
        seo=SeoResolver(search=search),
        max_tlds=settings.max_tlds_per_request,
        max_platforms=settings.max_platforms_per_request,
        channel_timeout=settings.channel_timeout,
        cache=cache,
        cache_ttl=settings.cache_ttl_seconds,
        cache_timeout=settings.cache_timeout,
    )
