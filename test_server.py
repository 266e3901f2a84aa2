from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from errors import GenerationError, PipelineConfigurationError
from name_pipeline import NamePipeline
from schemas import FitJudgement, NameCandidate
from server import app, get_checker, get_pipeline


def generator_with(names=None, error=None):
    generator = MagicMock()
    generator.generate_candidates = AsyncMock(side_effect=error, return_value=names or [])
    generator.score_fit = AsyncMock(return_value=FitJudgement(score=60, rationale="ok"))
    return generator


@pytest.fixture
def client(make_checker, registrar_absent):
    checker = make_checker(registrars=[registrar_absent])
    app.dependency_overrides[get_checker] = lambda: checker
    app.dependency_overrides[get_pipeline] = lambda: NamePipeline(
        generator_with([NameCandidate(name="BrewWorks")]), checker)
    yield TestClient(app)
    app.dependency_overrides.clear()


def override_pipeline(checker, **kwargs):
    app.dependency_overrides[get_pipeline] = lambda: NamePipeline(generator_with(**kwargs), checker)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_check_name(client):
    response = client.get("/api/check", params={"name": "brewworks.io", "platforms": "x,github"})
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "brewworks"
    assert list(body["domain_verdicts"])[0] == ".io"
    assert body["domain_verdicts"][".com"]["state"]["kind"] == "available"
    assert set(body["social_verdicts"]) == {"x", "github"}
    assert len(body["seo_signals"]) == 3


def test_check_name_with_tlds(client):
    response = client.get("/api/check", params={"name": "brewworks", "tlds": ".com, dev"})
    assert response.status_code == 200
    assert list(response.json()["domain_verdicts"]) == [".com", ".dev"]


def test_check_invalid_name_is_400(client):
    response = client.get("/api/check", params={"name": "!"})
    assert response.status_code == 400


def test_social_check(client):
    response = client.get("/api/social-check/github", params={"name": "brewworks"})
    assert response.status_code == 200
    assert response.json()["identifier"] == "github"


def test_social_check_unknown_platform_is_404(client):
    response = client.get("/api/social-check/myspace", params={"name": "brewworks"})
    assert response.status_code == 404


def test_generate(client):
    response = client.post("/api/generate", json={"description": "A specialty coffee roaster"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["candidates"][0]["candidate"]["name"] == "BrewWorks"
    assert 0 <= body["candidates"][0]["score"]["total"] <= 100


def test_generate_short_description_is_400(client):
    response = client.post("/api/generate", json={"description": "coffee"})
    assert response.status_code == 400


def test_generate_not_configured_is_503(client, make_checker):
    override_pipeline(make_checker(), error=PipelineConfigurationError("LLM API key is not configured"))
    response = client.post("/api/generate", json={"description": "A specialty coffee roaster"})
    assert response.status_code == 503
    assert "not configured" in response.json()["detail"]


def test_generate_transient_failure_is_502(client, make_checker):
    override_pipeline(make_checker(), error=GenerationError("timeout"))
    response = client.post("/api/generate", json={"description": "A specialty coffee roaster"})
    assert response.status_code == 502
