"""
Signal Provider Adapters
========================
Each adapter wraps one external capability (registrar API, DNS-over-HTTPS,
WHOIS, HTTP probe, web search) and normalizes its answer into a ProbeResult:

    exists      True / False / None (could not tell)
    confidence  high / medium / low
    detail      provider specific extras (status code, price, search hits...)

probe() never raises: timeouts, HTTP errors, rate limits, parse errors and
missing credentials all come back as exists=None, confidence=low. Adapters
never retry; fallback order belongs to the channel resolvers.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

import aiohttp
import httpx
import whois
from duckduckgo_search import DDGS

from errors import ProbeError
from schemas import Confidence

logger = logging.getLogger(__name__)

PORKBUN_API_BASE = "https://api.porkbun.com/api/json/v3"
GODADDY_API_BASE = "https://api.godaddy.com/v1"
SERPAPI_BASE = "https://serpapi.com/search.json"
CLOUDFLARE_DOH = "https://cloudflare-dns.com/dns-query"

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
                  "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Accept-Language": "en-US,en;q=0.9",
}

RESTRICTED_MARKERS = ("not supported", "unsupported", "reserved", "invalid domain", "not available for registration")


@dataclass(frozen=True)
class ProbeResult:
    exists: Optional[bool]
    confidence: Confidence
    source: str
    detail: Dict[str, Any] = field(default_factory=dict)

    @property
    def definitive(self) -> bool:
        return self.exists is not None and self.confidence in (Confidence.HIGH, Confidence.MEDIUM)

    @property
    def error(self) -> Optional[str]:
        return self.detail.get("error")

    @classmethod
    def failed(cls, source: str, reason: str) -> "ProbeResult":
        return cls(exists=None, confidence=Confidence.LOW, source=source, detail={"error": reason})

    @classmethod
    def from_status(cls, status: int, source: str, url: str = "", location: Optional[str] = None) -> "ProbeResult":
        """Generic profile-page interpretation: 404/410 absent, 200 present, anything else undecided"""
        if status in (404, 410):
            exists, confidence = False, Confidence.MEDIUM
        elif status == 200:
            exists, confidence = True, Confidence.MEDIUM
        else:
            exists, confidence = None, Confidence.LOW
        return cls(exists=exists, confidence=confidence, source=source,
                   detail={"status": status, "location": location, "url": url})


@dataclass(frozen=True)
class SearchHit:
    title: str
    link: str
    snippet: str = ""

    @property
    def domain(self) -> str:
        return host_of(self.link)


def host_of(url: str) -> str:
    """Hostname of a URL without a leading 'www.'"""
    if not url:
        return ""
    if "://" not in url:
        url = "https://" + url
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


class SignalProvider:
    """Base adapter: subclasses implement _probe(); probe() enforces timeout and error containment"""
    name = "signal"

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    async def probe(self, target: str, **options) -> ProbeResult:
        try:
            return await asyncio.wait_for(self._probe(target, **options), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[{self.name}] timeout after {self.timeout}s for {target}")
            return ProbeResult.failed(self.name, "timeout")
        except ProbeError as e:
            logger.warning(f"[{self.name}] {target}: {e}")
            return ProbeResult.failed(self.name, str(e))
        except Exception as e:
            logger.warning(f"[{self.name}] unexpected failure for {target}: {e}")
            return ProbeResult.failed(self.name, str(e)[:200])

    async def _probe(self, target: str, **options) -> ProbeResult:
        raise NotImplementedError


async def safe_probe(provider: SignalProvider, target: str, **options) -> ProbeResult:
    """Call an adapter, containing anything that escapes a non-conforming implementation"""
    try:
        return await provider.probe(target, **options)
    except Exception as e:
        name = getattr(provider, "name", type(provider).__name__)
        logger.warning(f"[{name}] adapter raised past its boundary for {target}: {e}")
        return ProbeResult.failed(name, str(e)[:200])


class HttpxProvider(SignalProvider):
    """Adapter backed by httpx. A shared AsyncClient may be injected."""

    def __init__(self, timeout: float = 5.0, client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout)
        self._client = client

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, **kwargs)

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        if response.status_code == 429:
            raise ProbeError("rate limited", self.name)
        text = response.text
        if text.strip().startswith("<"):
            raise ProbeError(f"HTML instead of JSON (HTTP {response.status_code})", self.name)
        try:
            data = response.json()
        except ValueError:
            raise ProbeError(f"malformed JSON (HTTP {response.status_code})", self.name)
        if not isinstance(data, dict):
            raise ProbeError("unexpected response shape", self.name)
        return data


# ─────────────────────────────────────────────────────────────────────────────
# Registrar availability
# ─────────────────────────────────────────────────────────────────────────────

class PorkbunRegistrarProvider(HttpxProvider):
    name = "porkbun"

    def __init__(self, api_key: Optional[str], api_secret: Optional[str], timeout: float = 8.0,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key
        self.api_secret = api_secret

    async def _probe(self, domain: str, **options) -> ProbeResult:
        if not (self.api_key and self.api_secret):
            raise ProbeError("Porkbun API credentials not configured", self.name)

        response = await self._send(
            "POST",
            f"{PORKBUN_API_BASE}/domain/checkDomain/{domain}",
            json={"apikey": self.api_key, "secretapikey": self.api_secret},
        )
        data = self._json(response)

        if data.get("status") != "SUCCESS":
            message = str(data.get("message") or "Porkbun API error")
            if any(marker in message.lower() for marker in RESTRICTED_MARKERS):
                return ProbeResult(exists=True, confidence=Confidence.HIGH, source=self.name,
                                   detail={"restricted": True, "message": message})
            raise ProbeError(message, self.name)

        info = data.get("response") or {}
        avail = str(info.get("avail", "")).lower()
        if avail in ("yes", "available"):
            exists = False
        elif avail in ("no", "unavailable"):
            exists = True
        else:
            raise ProbeError(f"unexpected availability value {avail!r}", self.name)

        detail: Dict[str, Any] = {
            "premium": str(info.get("premium", "")).lower() in ("yes", "true", "1"),
        }
        try:
            if info.get("price") is not None:
                detail["price"] = float(info["price"])
        except (TypeError, ValueError):
            pass
        return ProbeResult(exists=exists, confidence=Confidence.HIGH, source=self.name, detail=detail)


class GoDaddyRegistrarProvider(HttpxProvider):
    name = "godaddy"

    def __init__(self, api_key: Optional[str], api_secret: Optional[str], timeout: float = 8.0,
                 client: Optional[httpx.AsyncClient] = None, base_url: str = GODADDY_API_BASE):
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url

    async def _probe(self, domain: str, **options) -> ProbeResult:
        if not (self.api_key and self.api_secret):
            raise ProbeError("GoDaddy API credentials not configured", self.name)

        response = await self._send(
            "GET",
            f"{self.base_url}/domains/available",
            params={"domain": domain, "checkType": "FULL"},
            headers={
                "Authorization": f"sso-key {self.api_key}:{self.api_secret}",
                "Accept": "application/json",
            },
        )
        if response.status_code in (401, 403):
            raise ProbeError(f"authentication failed (HTTP {response.status_code})", self.name)
        data = self._json(response)

        if response.status_code == 422 and data.get("code") in ("UNSUPPORTED_TLD", "INVALID_DOMAIN"):
            return ProbeResult(exists=True, confidence=Confidence.HIGH, source=self.name,
                               detail={"restricted": True, "message": data.get("message", data.get("code"))})
        if response.status_code >= 400:
            raise ProbeError(f"HTTP {response.status_code}: {data.get('message', '')}", self.name)
        if "available" not in data:
            raise ProbeError("response missing availability flag", self.name)

        detail: Dict[str, Any] = {"definitive": bool(data.get("definitive", False))}
        if data.get("price"):
            # GoDaddy reports prices in micro-units
            detail["price"] = round(float(data["price"]) / 1_000_000, 2)
        confidence = Confidence.HIGH if detail["definitive"] else Confidence.MEDIUM
        return ProbeResult(exists=not bool(data["available"]), confidence=confidence,
                           source=self.name, detail=detail)


# ─────────────────────────────────────────────────────────────────────────────
# DNS / WHOIS
# ─────────────────────────────────────────────────────────────────────────────

class DnsOverHttpsProvider(HttpxProvider):
    """NXDOMAIN => absent, NOERROR with records => present. Never better than medium."""
    name = "dns-over-https"

    def __init__(self, endpoint: str = CLOUDFLARE_DOH, record_type: str = "NS", timeout: float = 3.0,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, client=client)
        self.endpoint = endpoint
        self.record_type = record_type

    async def _probe(self, domain: str, **options) -> ProbeResult:
        response = await self._send(
            "GET",
            self.endpoint,
            params={"name": domain, "type": self.record_type},
            headers={"Accept": "application/dns-json"},
        )
        if response.status_code != 200:
            raise ProbeError(f"HTTP {response.status_code}", self.name)
        data = self._json(response)

        status = data.get("Status")
        answers = data.get("Answer") or []
        if status == 3:
            return ProbeResult(exists=False, confidence=Confidence.MEDIUM, source=self.name,
                               detail={"rcode": "NXDOMAIN"})
        if status == 0 and answers:
            return ProbeResult(exists=True, confidence=Confidence.MEDIUM, source=self.name,
                               detail={"rcode": "NOERROR", "records": len(answers)})
        return ProbeResult(exists=None, confidence=Confidence.LOW, source=self.name,
                           detail={"rcode": status, "records": len(answers)})


class WhoisProvider(SignalProvider):
    name = "whois"

    def __init__(self, timeout: float = 8.0):
        super().__init__(timeout=timeout)

    async def _probe(self, domain: str, **options) -> ProbeResult:
        loop = asyncio.get_running_loop()
        try:
            record = await loop.run_in_executor(None, whois.whois, domain)
        except Exception as e:
            error_str = str(e).lower()
            if "no match" in error_str or "not found" in error_str or "no entries" in error_str:
                return ProbeResult(exists=False, confidence=Confidence.MEDIUM, source=self.name,
                                   detail={"message": "no WHOIS record"})
            raise ProbeError(str(e)[:120], self.name)

        if record.domain_name or record.creation_date:
            return ProbeResult(exists=True, confidence=Confidence.MEDIUM, source=self.name,
                               detail={"registrar": getattr(record, "registrar", None)})
        # An empty record is weak evidence either way
        return ProbeResult(exists=False, confidence=Confidence.LOW, source=self.name,
                           detail={"message": "empty WHOIS record"})


# ─────────────────────────────────────────────────────────────────────────────
# HTTP probes
# ─────────────────────────────────────────────────────────────────────────────

class HttpProbeProvider(SignalProvider):
    """Requests a URL without following redirects and reports the raw status"""
    name = "http-probe"

    def __init__(self, timeout: float = 4.0, method: str = "GET"):
        super().__init__(timeout=timeout)
        self.method = method

    async def fetch_status(self, url: str, follow_redirects: bool = False) -> Tuple[int, Optional[str]]:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout, headers=BROWSER_HEADERS) as session:
            async with session.request(self.method, url, allow_redirects=follow_redirects) as response:
                return response.status, response.headers.get("Location")

    async def _probe(self, url: str, **options) -> ProbeResult:
        status, location = await self.fetch_status(url)
        if status == 429:
            raise ProbeError("rate limited", self.name)
        return ProbeResult.from_status(status, self.name, url=url, location=location)


class LiveSiteProvider(HttpProbeProvider):
    """Is anything being served at the domain? Any HTTP answer counts as live."""
    name = "live-site"

    def __init__(self, timeout: float = 4.0):
        super().__init__(timeout=timeout, method="HEAD")

    async def _probe(self, domain: str, **options) -> ProbeResult:
        last_error = None
        for scheme in ("https", "http"):
            url = f"{scheme}://{domain}"
            try:
                status, _ = await self.fetch_status(url, follow_redirects=True)
                return ProbeResult(exists=True, confidence=Confidence.HIGH, source=self.name,
                                   detail={"status": status, "url": url})
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
        raise ProbeError(f"unreachable: {last_error}", self.name)


# ─────────────────────────────────────────────────────────────────────────────
# Web search
# ─────────────────────────────────────────────────────────────────────────────

class WebSearchProvider(SignalProvider):
    """probe(query) -> exists = any results, detail['hits'] = List[SearchHit]"""
    name = "web-search"
    default_results = 10

    async def search(self, query: str, num: int) -> List[SearchHit]:
        raise NotImplementedError

    async def _probe(self, query: str, num: Optional[int] = None, **options) -> ProbeResult:
        hits = await self.search(query, num or self.default_results)
        return ProbeResult(exists=bool(hits), confidence=Confidence.MEDIUM, source=self.name,
                           detail={"hits": hits, "query": query})


class SerpApiSearchProvider(WebSearchProvider, HttpxProvider):
    name = "serpapi"

    def __init__(self, api_key: Optional[str], timeout: float = 8.0, client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key

    async def search(self, query: str, num: int) -> List[SearchHit]:
        if not self.api_key:
            raise ProbeError("SerpAPI key not configured", self.name)

        response = await self._send(
            "GET",
            SERPAPI_BASE,
            params={"q": query, "api_key": self.api_key, "engine": "google",
                    "num": str(num), "gl": "us", "hl": "en"},
        )
        data = self._json(response)
        if data.get("error"):
            # "Google hasn't returned any results" is a successful empty search
            if "hasn't returned any results" in str(data["error"]):
                return []
            raise ProbeError(str(data["error"]), self.name)
        if response.status_code >= 400:
            raise ProbeError(f"HTTP {response.status_code}", self.name)

        return [
            SearchHit(title=item.get("title", ""), link=item.get("link", ""), snippet=item.get("snippet", "") or "")
            for item in (data.get("organic_results") or [])[:num]
            if item.get("link")
        ]


def _duckduckgo_text(query: str, num: int) -> List[Dict[str, Any]]:
    with DDGS() as ddgs:
        return list(ddgs.text(query, max_results=num) or [])


class DuckDuckGoSearchProvider(WebSearchProvider):
    """Keyless search; the library is synchronous so it runs in an executor"""
    name = "duckduckgo"

    def __init__(self, timeout: float = 8.0):
        super().__init__(timeout=timeout)

    async def search(self, query: str, num: int) -> List[SearchHit]:
        loop = asyncio.get_running_loop()
        try:
            rows = await loop.run_in_executor(None, _duckduckgo_text, query, num)
        except Exception as e:
            if "ratelimit" in type(e).__name__.lower() or "202" in str(e):
                raise ProbeError("rate limited", self.name)
            raise ProbeError(str(e)[:120], self.name)
        return [
            SearchHit(title=r.get("title", ""), link=r.get("href", ""), snippet=r.get("body", "") or "")
            for r in rows
            if r.get("href")
        ]


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────

FixtureOutcome = Union[ProbeResult, Exception]


class FixtureProvider(SignalProvider):
    """
    Returns preset outcomes per target. Used by tests and demo configurations
    instead of hard-coding known names into resolution logic.
    """

    def __init__(self, results: Optional[Dict[str, FixtureOutcome]] = None,
                 default: Optional[FixtureOutcome] = None, name: str = "fixture",
                 delay: float = 0.0, timeout: float = 5.0):
        super().__init__(timeout=timeout)
        self.name = name
        self.results = dict(results or {})
        self.default = default
        self.delay = delay
        self.calls: List[str] = []

    async def _probe(self, target: str, **options) -> ProbeResult:
        self.calls.append(target)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.results.get(target, self.default)
        if outcome is None:
            raise ProbeError(f"no fixture for {target}", self.name)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def search_fixture(hits: List[SearchHit], source: str = "fixture-search") -> ProbeResult:
    return ProbeResult(exists=bool(hits), confidence=Confidence.MEDIUM, source=source,
                       detail={"hits": list(hits)})
