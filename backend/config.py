"""
Runtime configuration for the name checker.

Values come from the process environment, with `backend/.env` loaded first
(never overriding variables that are already set).
"""
import os
import logging
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ROOT_DIR = Path(__file__).parent

logger = logging.getLogger(__name__)


class ScoringWeights(BaseModel):
    """Percentage weights per scoring dimension (conceptually summing to 100)"""
    availability: float = 40
    social: float = 15
    seo: float = 25
    trademark: float = 15
    fit: float = 5

    def as_dict(self) -> Dict[str, float]:
        return {
            "availability": self.availability,
            "social": self.social,
            "seo": self.seo,
            "trademark": self.trademark,
            "fit": self.fit,
        }


class Settings(BaseModel):
    # Provider credentials
    porkbun_api_key: Optional[str] = None
    porkbun_api_secret: Optional[str] = None
    godaddy_api_key: Optional[str] = None
    godaddy_api_secret: Optional[str] = None
    serpapi_key: Optional[str] = None
    llm_api_key: Optional[str] = None
    llm_model: str = "gpt-4o-mini"

    doh_endpoint: str = "https://cloudflare-dns.com/dns-query"
    enable_duckduckgo: bool = True
    social_search_cross_check: bool = True

    # Domain interpretation
    premium_price_threshold: float = 249.0

    # Per-request caps
    max_tlds_per_request: int = 14
    max_platforms_per_request: int = 8
    max_deep_checks: int = 15

    # Timeouts (seconds)
    registrar_timeout: float = 8.0
    dns_timeout: float = 3.0
    whois_timeout: float = 8.0
    http_probe_timeout: float = 4.0
    live_site_timeout: float = 4.0
    search_timeout: float = 8.0
    llm_timeout: float = 30.0
    # Sequential domain chain: two registrars, DNS, WHOIS, live-site probe
    channel_timeout: float = 31.0

    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    # Cache collaborator
    cache_ttl_seconds: int = 86400
    cache_timeout: float = 2.0
    mongo_url: Optional[str] = None
    db_name: str = "namecheck_db"

    cors_origins: str = "*"

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def domain_chain_budget(registrar: float, dns: float, whois: float, live_site: float) -> float:
    """Worst case for one domain verdict: the resolver tries its adapters one after another"""
    return 2 * registrar + dns + whois + live_site


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from the environment (and the .env file beside this module)"""
    load_dotenv(env_file or ROOT_DIR / ".env", override=False)

    weights = ScoringWeights(
        availability=_env_float("SCORE_WEIGHT_AVAILABILITY", 40),
        social=_env_float("SCORE_WEIGHT_SOCIAL", 15),
        seo=_env_float("SCORE_WEIGHT_SEO", 25),
        trademark=_env_float("SCORE_WEIGHT_TRADEMARK", 15),
        fit=_env_float("SCORE_WEIGHT_FIT", 5),
    )

    registrar_timeout = _env_float("REGISTRAR_TIMEOUT", 8.0)
    dns_timeout = _env_float("DNS_TIMEOUT", 3.0)
    whois_timeout = _env_float("WHOIS_TIMEOUT", 8.0)
    live_site_timeout = _env_float("LIVE_SITE_TIMEOUT", 4.0)
    domain_chain = domain_chain_budget(registrar_timeout, dns_timeout, whois_timeout, live_site_timeout)

    return Settings(
        porkbun_api_key=os.environ.get("PORKBUN_API_KEY") or None,
        porkbun_api_secret=os.environ.get("PORKBUN_API_SECRET") or None,
        godaddy_api_key=os.environ.get("GODADDY_API_KEY") or None,
        godaddy_api_secret=os.environ.get("GODADDY_API_SECRET") or None,
        serpapi_key=os.environ.get("SERPAPI_KEY") or None,
        llm_api_key=os.environ.get("OPENAI_API_KEY") or os.environ.get("LLM_API_KEY") or None,
        llm_model=os.environ.get("LLM_MODEL", "gpt-4o-mini"),
        doh_endpoint=os.environ.get("DOH_ENDPOINT", "https://cloudflare-dns.com/dns-query"),
        enable_duckduckgo=_env_bool("ENABLE_DUCKDUCKGO", True),
        social_search_cross_check=_env_bool("SOCIAL_SEARCH_CROSS_CHECK", True),
        premium_price_threshold=_env_float("PREMIUM_PRICE_THRESHOLD", 249.0),
        max_tlds_per_request=_env_int("MAX_TLDS_PER_REQUEST", 14),
        max_platforms_per_request=_env_int("MAX_PLATFORMS_PER_REQUEST", 8),
        max_deep_checks=_env_int("MAX_DEEP_CHECKS", 15),
        registrar_timeout=registrar_timeout,
        dns_timeout=dns_timeout,
        whois_timeout=whois_timeout,
        http_probe_timeout=_env_float("HTTP_PROBE_TIMEOUT", 4.0),
        live_site_timeout=live_site_timeout,
        search_timeout=_env_float("SEARCH_TIMEOUT", 8.0),
        llm_timeout=_env_float("LLM_TIMEOUT", 30.0),
        channel_timeout=_env_float("CHANNEL_TIMEOUT", domain_chain),
        weights=weights,
        cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 86400),
        cache_timeout=_env_float("CACHE_TIMEOUT", 2.0),
        mongo_url=os.environ.get("MONGO_URL") or None,
        db_name=os.environ.get("DB_NAME", "namecheck_db"),
        cors_origins=os.environ.get("CORS_ORIGINS", "*"),
    )
