import asyncio
import time

import httpx
import pytest

from psst_planner.credentials import CredentialStore, CredentialValidator
from psst_planner.errors import (
    EmptyResponse,
    InvalidCredential,
    MalformedJSON,
    MissingCredential,
    TransportError,
)
from psst_planner.images import ImageOrchestrator
from psst_planner.orchestrator import GenerationOrchestrator
from psst_planner.schemas import BusinessPlanData

from conftest import FakeGemini, IMAGE_MODEL, PLAN_MODEL, sample_plan_dict, text_response


def make_orchestrator(fake, tmp_path, env_default=None):
    client = fake.client()
    store = CredentialStore(
        CredentialValidator(client), path=str(tmp_path / "key"), env_default=env_default
    )
    return GenerationOrchestrator(client, ImageOrchestrator(client), store)


def test_scenario_valid_credential(fake_gemini, company_info, tmp_path):
    runner = make_orchestrator(fake_gemini, tmp_path)

    plan, images = asyncio.run(runner.run(company_info, "valid-key"))

    assert plan.summary.introduction
    assert plan.problem.motivation
    assert plan.solution.budget_table
    assert plan.scale_up.market_research_domestic
    assert plan.team.social_value
    assert 0 <= len(images) <= 5
    assert all(img.startswith("data:") for img in images)


def test_uses_store_when_no_credential_given(fake_gemini, company_info, tmp_path):
    runner = make_orchestrator(fake_gemini, tmp_path, env_default="env-key")

    asyncio.run(runner.run(company_info))

    assert fake_gemini.calls(PLAN_MODEL)[0].headers["x-goog-api-key"] == "env-key"


@pytest.mark.parametrize("credential", ["undefined", "", "  "])
def test_placeholder_credential_makes_no_calls(fake_gemini, company_info, tmp_path, credential):
    runner = make_orchestrator(fake_gemini, tmp_path)

    with pytest.raises(MissingCredential):
        asyncio.run(runner.run(company_info, credential))
    assert len(fake_gemini.requests) == 0


def test_absent_credential_makes_no_calls(fake_gemini, company_info, tmp_path):
    runner = make_orchestrator(fake_gemini, tmp_path, env_default=None)

    with pytest.raises(MissingCredential):
        asyncio.run(runner.run(company_info))
    assert len(fake_gemini.requests) == 0


def test_empty_plan_discards_images(company_info, tmp_path):
    fake = FakeGemini(plan=lambda body: httpx.Response(200, json=text_response("")))
    runner = make_orchestrator(fake, tmp_path)

    with pytest.raises(EmptyResponse):
        asyncio.run(runner.run(company_info, "k"))
    # the image batch still ran to completion before the failure surfaced
    assert len(fake.calls(IMAGE_MODEL)) == 5


@pytest.mark.parametrize(
    "response, error",
    [
        (httpx.Response(200, json=text_response('{"summary": {}}')), MalformedJSON),
        (httpx.Response(401, json={"error": {}}), InvalidCredential),
        (httpx.Response(503, json={"error": {}}), TransportError),
    ],
)
def test_plan_failures_are_classified(company_info, tmp_path, response, error):
    fake = FakeGemini(plan=lambda body: response)
    runner = make_orchestrator(fake, tmp_path)

    with pytest.raises(error) as exc_info:
        asyncio.run(runner.run(company_info, "k"))
    assert exc_info.value.message


def test_image_failures_do_not_affect_plan(company_info, tmp_path):
    def flaky(body):
        if "isometric" in body["contents"][0]["parts"][0]["text"]:
            raise httpx.ReadTimeout("slow")
        return httpx.Response(200, json={"candidates": []})

    fake = FakeGemini(image=flaky)
    runner = make_orchestrator(fake, tmp_path)

    plan, images = asyncio.run(runner.run(company_info, "k"))

    assert plan.team.capability == "Two embedded engineers."
    assert images == []


class SlowClient:
    """Every call sleeps; records when calls start and end."""

    def __init__(self):
        self.events = []

    async def _call(self, name):
        self.events.append(("start", name))
        await asyncio.sleep(0.2)
        self.events.append(("end", name))

    async def generate_business_plan(self, info, api_key):
        await self._call("plan")
        return BusinessPlanData.model_validate(sample_plan_dict())

    async def generate_image(self, prompt, api_key):
        await self._call("image")
        return ["data:image/png;base64,slow"]


def test_plan_and_images_run_concurrently(company_info, tmp_path):
    client = SlowClient()
    store = CredentialStore(CredentialValidator(client), path=str(tmp_path / "key"))
    runner = GenerationOrchestrator(client, ImageOrchestrator(client), store)

    started = time.monotonic()
    plan, images = asyncio.run(runner.run(company_info, "k"))
    elapsed = time.monotonic() - started

    assert plan.team.social_value
    assert len(images) == 5
    assert [kind for kind, _ in client.events[:6]] == ["start"] * 6
    assert elapsed < 0.6
