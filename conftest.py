"""Shared fixtures: fixture-provider backed resolvers, no network access"""
from typing import Callable, List, Optional

import pytest

from availability import AvailabilityChecker
from domains import DomainResolver
from providers import FixtureProvider, ProbeResult, SearchHit, SignalProvider, search_fixture
from schemas import Confidence
from socials import SocialResolver
from trademark import TrademarkResolver
from visibility import SeoResolver


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep developer credentials out of tests"""
    for key in ("PORKBUN_API_KEY", "PORKBUN_API_SECRET", "GODADDY_API_KEY", "GODADDY_API_SECRET",
                "SERPAPI_KEY", "OPENAI_API_KEY", "LLM_API_KEY", "MONGO_URL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def registrar_absent() -> FixtureProvider:
    return FixtureProvider(
        default=ProbeResult(exists=False, confidence=Confidence.HIGH, source="porkbun", detail={"premium": False}),
        name="porkbun",
    )


@pytest.fixture
def registrar_taken() -> FixtureProvider:
    return FixtureProvider(
        default=ProbeResult(exists=True, confidence=Confidence.HIGH, source="porkbun", detail={"premium": False}),
        name="porkbun",
    )


@pytest.fixture
def profiles_missing() -> FixtureProvider:
    """Every profile URL answers 404"""
    return FixtureProvider(default=ProbeResult.from_status(404, "http-probe"), name="http-probe")


@pytest.fixture
def site_unreachable() -> FixtureProvider:
    return FixtureProvider(default=ProbeResult.failed("live-site", "unreachable"), name="live-site")


@pytest.fixture
def site_live() -> FixtureProvider:
    return FixtureProvider(
        default=ProbeResult(exists=True, confidence=Confidence.HIGH, source="live-site", detail={"status": 200}),
        name="live-site",
    )


@pytest.fixture
def empty_search() -> FixtureProvider:
    return FixtureProvider(default=search_fixture([]), name="fixture-search")


@pytest.fixture
def search_with() -> Callable[[List[SearchHit]], FixtureProvider]:
    def _make(hits: List[SearchHit]) -> FixtureProvider:
        return FixtureProvider(default=search_fixture(hits), name="fixture-search")
    return _make


@pytest.fixture
def make_checker(profiles_missing, site_unreachable, empty_search) -> Callable[..., AvailabilityChecker]:
    """Build an AvailabilityChecker from fixture providers; any piece can be swapped"""

    def _make(registrars: Optional[List[SignalProvider]] = None,
              fallbacks: Optional[List[SignalProvider]] = None,
              live_site: Optional[SignalProvider] = None,
              http_probe: Optional[SignalProvider] = None,
              search: Optional[List[SignalProvider]] = None,
              **kwargs) -> AvailabilityChecker:
        search = [empty_search] if search is None else search
        domains = DomainResolver(
            registrars=registrars or [],
            fallbacks=fallbacks or [],
            live_site=live_site or site_unreachable,
        )
        socials = SocialResolver(http_probe=http_probe or profiles_missing, search=search)
        return AvailabilityChecker(
            domains=domains,
            socials=socials,
            trademark=TrademarkResolver(search=search),
            seo=SeoResolver(search=search),
            **kwargs,
        )

    return _make


class MemoryCache:
    """In-process Cache implementation for tests"""

    def __init__(self):
        self.store = {}
        self.gets = 0
        self.sets = 0

    async def get(self, key):
        self.gets += 1
        return self.store.get(key)

    async def set(self, key, value, ttl_seconds):
        self.sets += 1
        self.store[key] = value


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()
