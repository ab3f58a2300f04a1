import base64
import json

import httpx
import pytest

from psst_planner.llm_service import LLMClient
from psst_planner.schemas import CompanyInfo

PLAN_MODEL = "plan-model"
IMAGE_MODEL = "image-model"
PROBE_MODEL = "probe-model"

PNG_BYTES = base64.b64encode(b"\x89PNG fake image").decode("ascii")


def sample_plan_dict():
    return {
        "summary": {
            "introduction": "Acme builds the Smart Widget for small businesses.",
            "differentiation": "On-device analytics.",
            "targetMarket": "SMBs in Korea.",
            "goals": "1,000 paying customers in year one.",
        },
        "problem": {
            "motivation": "SMBs lack affordable monitoring.",
            "purpose": "Lower operating costs.",
        },
        "solution": {
            "devPlan": "Finish firmware and the mobile app.",
            "stepwisePlan": "Pilot, launch, expand.",
            "budgetTable": [
                {"item": "Prototype", "period": "M1-M3", "content": "Hardware rev B"},
            ],
            "customerResponse": "Pilot users renewed.",
            "competitorAnalysis": "Incumbents are cloud-only.",
        },
        "scaleUp": {
            "fundingPlan": "Seed round after pilot.",
            "salesPlan": "Direct sales and resellers.",
            "policyFundPlan": "Apply for KOSME loans.",
            "detailedBudget": [
                {"category": "Materials", "basis": "200 units", "amount": 12000000},
                {"category": "Marketing", "basis": "Online ads", "amount": 5500000.5},
            ],
            "marketResearchDomestic": [
                {"name": "TAM", "value": 1200},
                {"name": "SAM", "value": 300},
                {"name": "SOM", "value": 30},
            ],
            "marketApproachDomestic": "Partner with POS vendors.",
            "marketResearchGlobal": [{"name": "TAM", "value": 54000}],
            "marketApproachGlobal": "Enter Japan in year three.",
        },
        "team": {
            "capability": "Two embedded engineers.",
            "hiringStatus": "Hiring a designer.",
            "socialValue": "Energy savings for small shops.",
        },
    }


def text_response(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def image_response(data=PNG_BYTES, mime_type="image/png"):
    return {
        "candidates": [
            {"content": {"parts": [{"inlineData": {"mimeType": mime_type, "data": data}}]}}
        ]
    }


class FakeGemini:
    """Routes generateContent calls by model name and records every request."""

    def __init__(self, plan=None, image=None, probe=None):
        self.plan = plan if plan is not None else (
            lambda body: httpx.Response(200, json=text_response(json.dumps(sample_plan_dict())))
        )
        self.image = image if image is not None else (
            lambda body: httpx.Response(200, json=image_response())
        )
        self.probe = probe if probe is not None else (
            lambda body: httpx.Response(200, json=text_response("Hello!"))
        )
        self.requests = []

    def calls(self, model):
        return [r for r in self.requests if f"/models/{model}:" in r.url.path]

    def handler(self, request: httpx.Request):
        self.requests.append(request)
        body = json.loads(request.content)
        path = request.url.path
        if f"/models/{PLAN_MODEL}:" in path:
            return self.plan(body)
        if f"/models/{IMAGE_MODEL}:" in path:
            return self.image(body)
        if f"/models/{PROBE_MODEL}:" in path:
            return self.probe(body)
        return httpx.Response(404, json={"error": {"message": "unknown model"}})

    def client(self):
        return LLMClient(
            base_url="https://gemini.test/v1beta",
            plan_model=PLAN_MODEL,
            image_model=IMAGE_MODEL,
            probe_model=PROBE_MODEL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def company_info():
    return CompanyInfo(
        company_name="Acme",
        business_item="Smart Widget",
        dev_status="MVP done",
        target_audience="SMBs",
        team_info="2 engineers",
        additional_info="",
        attachments=[],
    )
