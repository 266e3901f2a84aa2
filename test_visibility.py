import pytest

from providers import FixtureProvider, SearchHit
from schemas import AuthorityTier
from visibility import SeoResolver, classify_authority, root_domain, to_signals


def test_root_domain():
    assert root_domain("https://en.wikipedia.org/wiki/Brew") == "wikipedia.org"
    assert root_domain("https://news.bbc.co.uk/story") == "bbc.co.uk"
    assert root_domain("brewworks.io") == "brewworks.io"


@pytest.mark.parametrize("domain,tier", [
    ("wikipedia.org", AuthorityTier.HIGH),
    ("en.wikipedia.org", AuthorityTier.HIGH),
    ("irs.gov", AuthorityTier.MEDIUM),
    ("cam.ac.uk", AuthorityTier.LOW),
    ("mit.edu", AuthorityTier.MEDIUM),
    ("brewworks.substack.com", AuthorityTier.MEDIUM),
    ("brewworks.io", AuthorityTier.LOW),
])
def test_classify_authority(domain, tier):
    assert classify_authority(domain) == tier


def test_to_signals_always_three():
    hits = [SearchHit(title="Brew", link="https://www.github.com/brew")]
    signals = to_signals(hits)
    assert len(signals) == 3
    assert signals[0].root_domain == "github.com"
    assert signals[0].authority_tier == AuthorityTier.HIGH
    assert [s.placeholder for s in signals] == [False, True, True]


def test_to_signals_keeps_top_three_only():
    hits = [SearchHit(title=f"r{i}", link=f"https://site{i}.com") for i in range(5)]
    assert [s.title for s in to_signals(hits)] == ["r0", "r1", "r2"]


@pytest.mark.asyncio
async def test_no_results_gives_three_placeholders(empty_search):
    signals = await SeoResolver(search=[empty_search]).resolve("zzqxw912random")
    assert len(signals) == 3
    assert all(s.placeholder and s.authority_tier == AuthorityTier.LOW for s in signals)
    assert signals[0].title == "No competing results found"


@pytest.mark.asyncio
async def test_search_failure_gives_unverified_placeholders():
    broken = FixtureProvider(default=RuntimeError("blocked"), name="duckduckgo")
    signals = await SeoResolver(search=[broken]).resolve("brewworks")
    assert len(signals) == 3
    assert signals[0].title == "Unable to verify search results"


@pytest.mark.asyncio
async def test_search_asks_for_top_three(search_with):
    search = search_with([SearchHit(title="Brew", link="https://brew.example")])
    await SeoResolver(search=[search]).resolve("brewworks")
    assert search.calls == ["brewworks"]
