import pytest

from providers import FixtureProvider, ProbeResult, SearchHit
from schemas import Confidence, StateKind
from socials import PLATFORMS, ReliabilityTier, SocialResolver, classify_status


def probe(status, location=None):
    return ProbeResult.from_status(status, "http-probe", location=location)


def http(results=None, default=None):
    return FixtureProvider(results=results, default=default, name="http-probe")


# =========================================================================
# Status classification per reliability tier
# =========================================================================

def test_reliable_platform_trusts_both_codes():
    x = PLATFORMS["x"]
    assert classify_status(x, probe(404))[:2] == (StateKind.AVAILABLE, Confidence.HIGH)
    assert classify_status(x, probe(200))[:2] == (StateKind.TAKEN, Confidence.HIGH)


def test_unreliable_platform_never_trusts_200():
    instagram = PLATFORMS["instagram"]
    assert instagram.tier == ReliabilityTier.UNRELIABLE
    assert classify_status(instagram, probe(200))[:2] == (StateKind.UNKNOWN, Confidence.LOW)
    assert classify_status(instagram, probe(404))[:2] == (StateKind.AVAILABLE, Confidence.MEDIUM)


def test_bot_protected_platform_downgrades_other_codes():
    tiktok = PLATFORMS["tiktok"]
    assert classify_status(tiktok, probe(302, "/login"))[:2] == (StateKind.UNKNOWN, Confidence.LOW)
    assert classify_status(tiktok, probe(403))[:2] == (StateKind.UNKNOWN, Confidence.LOW)


def test_redirect_to_signup_is_available():
    youtube = PLATFORMS["youtube"]
    kind, confidence, _ = classify_status(youtube, probe(302, "https://accounts.google.com/signin"))
    assert (kind, confidence) == (StateKind.AVAILABLE, Confidence.MEDIUM)


def test_redirect_elsewhere_is_taken():
    youtube = PLATFORMS["youtube"]
    kind, confidence, _ = classify_status(youtube, probe(301, "https://www.youtube.com/channel/UC123"))
    assert (kind, confidence) == (StateKind.TAKEN, Confidence.MEDIUM)


def test_failed_probe_is_unknown():
    kind, confidence, note = classify_status(PLATFORMS["x"], ProbeResult.failed("http-probe", "timeout"))
    assert (kind, confidence) == (StateKind.UNKNOWN, Confidence.LOW)
    assert note == "timeout"


def test_tiers_never_claim_high_on_unreliable_platforms():
    for platform in PLATFORMS.values():
        if platform.tier in (ReliabilityTier.UNRELIABLE, ReliabilityTier.GUARDED):
            for status in (200, 301, 302, 403, 404, 500):
                _, confidence, _ = classify_status(platform, probe(status))
                assert confidence != Confidence.HIGH


# =========================================================================
# Resolver
# =========================================================================

@pytest.mark.asyncio
async def test_handle_too_long_for_x_is_restricted():
    resolver = SocialResolver(http_probe=http(default=probe(404)))
    verdict = await resolver.resolve("averyveryverylongname", "x")
    assert verdict.state.kind == StateKind.RESTRICTED
    assert verdict.confidence == Confidence.HIGH
    assert verdict.source_method == "username-rules"


@pytest.mark.asyncio
async def test_unsupported_platform_is_unknown():
    resolver = SocialResolver(http_probe=http(default=probe(404)))
    verdict = await resolver.resolve("brewworks", "myspace")
    assert verdict.state.kind == StateKind.UNKNOWN
    assert not resolver.supports("myspace")


@pytest.mark.asyncio
async def test_substack_available_only_if_both_forms_free():
    provider = http(results={
        "https://substack.com/@brewworks": probe(404),
        "https://brewworks.substack.com": probe(200),
    })
    verdict = await SocialResolver(http_probe=provider).resolve("brewworks", "substack")
    assert verdict.state.kind == StateKind.TAKEN
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_substack_both_free():
    verdict = await SocialResolver(http_probe=http(default=probe(404))).resolve("brewworks", "substack")
    assert verdict.state.kind == StateKind.AVAILABLE
    assert verdict.confidence == Confidence.MEDIUM
    assert len(verdict.urls) == 2


@pytest.mark.asyncio
async def test_search_exact_profile_match_upgrades_to_taken_high(search_with):
    search = search_with([SearchHit(title="Brew Works (@brewworks)", link="https://www.instagram.com/brewworks/")])
    resolver = SocialResolver(http_probe=http(default=probe(200)), search=[search])
    verdict = await resolver.resolve("brewworks", "instagram")
    assert verdict.state.kind == StateKind.TAKEN
    assert verdict.confidence == Confidence.HIGH
    assert verdict.source_method == "http-probe+fixture-search"


@pytest.mark.asyncio
async def test_search_non_exact_match_keeps_unknown(search_with):
    search = search_with([SearchHit(title="brewworksco", link="https://www.instagram.com/brewworksco/")])
    resolver = SocialResolver(http_probe=http(default=probe(200)), search=[search])
    verdict = await resolver.resolve("brewworks", "instagram")
    assert verdict.state.kind == StateKind.UNKNOWN
    assert verdict.confidence == Confidence.LOW


@pytest.mark.asyncio
async def test_twitter_alias_counts_as_profile_match(search_with):
    search = search_with([SearchHit(title="Brew Works", link="https://twitter.com/brewworks")])
    resolver = SocialResolver(http_probe=http(default=ProbeResult.failed("http-probe", "timeout")),
                              search=[search])
    verdict = await resolver.resolve("brewworks", "x")
    assert verdict.state.kind == StateKind.TAKEN


@pytest.mark.asyncio
async def test_cross_check_can_be_disabled(search_with):
    search = search_with([SearchHit(title="Brew Works", link="https://www.instagram.com/brewworks/")])
    resolver = SocialResolver(http_probe=http(default=probe(200)), search=[search], search_cross_check=False)
    verdict = await resolver.resolve("brewworks", "instagram")
    assert verdict.state.kind == StateKind.UNKNOWN
    assert search.calls == []


@pytest.mark.asyncio
async def test_confident_result_skips_search(search_with):
    search = search_with([])
    resolver = SocialResolver(http_probe=http(default=probe(404)), search=[search])
    verdict = await resolver.resolve("brewworks", "github")
    assert verdict.state.kind == StateKind.AVAILABLE
    assert verdict.confidence == Confidence.HIGH
    assert search.calls == []
