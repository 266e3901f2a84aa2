from fastapi import FastAPI, APIRouter, Depends, HTTPException, Query
from starlette.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient
import logging
from functools import lru_cache
from typing import List, Optional

from availability import AvailabilityChecker, build_checker
from cache import MongoCache
from config import Settings, load_settings
from errors import InputValidationError
from generator import NameGenerator
from name_pipeline import NamePipeline
from schemas import AvailabilityVerdict, GenerateRequest, NameCheckResult, PipelineRun, PipelineStatus
from socials import PLATFORMS

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the main app
app = FastAPI(title="Name Check API")

# Router
api_router = APIRouter(prefix="/api")

_mongo_client: Optional[AsyncIOMotorClient] = None


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


def _build_cache(settings: Settings) -> Optional[MongoCache]:
    global _mongo_client
    if not settings.mongo_url:
        logger.info("MONGO_URL not set; check results will not be cached")
        return None
    _mongo_client = AsyncIOMotorClient(settings.mongo_url)
    return MongoCache(_mongo_client[settings.db_name]["name_checks"])


@lru_cache()
def get_checker() -> AvailabilityChecker:
    settings = get_settings()
    return build_checker(settings, cache=_build_cache(settings))


@lru_cache()
def get_pipeline() -> NamePipeline:
    settings = get_settings()
    generator = NameGenerator(settings.llm_api_key, model=settings.llm_model, timeout=settings.llm_timeout)
    if not generator.configured:
        logger.warning("LLM API key not found; /api/generate will report not_configured")
    return NamePipeline(generator, get_checker(), weights=settings.weights, max_deep_checks=settings.max_deep_checks)


def _split(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


@api_router.get("/health")
async def health_check():
    return {"status": "healthy"}


@api_router.get("/check", response_model=NameCheckResult)
async def check_name(
    name: str = Query(..., description="Name, 'name.tld' or short phrase"),
    tlds: Optional[str] = Query(None, description="Comma-separated TLDs, e.g. .com,.io"),
    platforms: Optional[str] = Query(None, description="Comma-separated platform keys"),
    extended: bool = False,
    checker: AvailabilityChecker = Depends(get_checker),
):
    try:
        return await checker.check_name(name, tlds=_split(tlds), platforms=_split(platforms), extended=extended)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@api_router.get("/social-check/{platform}", response_model=AvailabilityVerdict)
async def social_check(
    platform: str,
    name: str = Query(...),
    checker: AvailabilityChecker = Depends(get_checker),
):
    if platform.lower() not in PLATFORMS:
        raise HTTPException(status_code=404, detail=f"Unknown platform '{platform}'")
    try:
        return await checker.check_social(name, platform)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@api_router.post("/generate", response_model=PipelineRun)
async def generate_names(request: GenerateRequest, pipeline: NamePipeline = Depends(get_pipeline)):
    try:
        run = await pipeline.run(request.description, request.max_candidates, request.extended_tlds)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if run.status == PipelineStatus.NOT_CONFIGURED:
        raise HTTPException(status_code=503, detail=run.message or "Name generation is not configured")
    if run.status == PipelineStatus.GENERATION_FAILED:
        raise HTTPException(status_code=502, detail=run.message or "Name generation failed, please retry")
    return run


app.include_router(api_router)

# Get CORS origins - handle both wildcard and specific origins
cors_origins_env = get_settings().cors_origins
if cors_origins_env == '*':
    cors_origins = ["*"]
    allow_credentials = False  # Can't use credentials with wildcard
else:
    cors_origins = [origin.strip() for origin in cors_origins_env.split(',')]
    allow_credentials = True

app.add_middleware(
    CORSMiddleware,
    allow_credentials=allow_credentials,
    allow_origins=cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("shutdown")
async def shutdown_db_client():
    if _mongo_client is not None:
        _mongo_client.close()
