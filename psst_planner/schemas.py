import typing
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictStr
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----------------------------------------------------------------------
# Input
# ----------------------------------------------------------------------
class Attachment(WireModel):
    data: str = Field(..., description="Base64 payload without a data-URI prefix.")
    mime_type: str = Field(..., description="Declared media type of the file.")


class CompanyInfo(WireModel):
    model_config = ConfigDict(frozen=True)

    company_name: str
    business_item: str
    dev_status: str
    target_audience: str
    team_info: str
    additional_info: str = ""
    attachments: List[Attachment] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Output contract
# ----------------------------------------------------------------------
class Summary(WireModel):
    introduction: StrictStr
    differentiation: StrictStr
    target_market: StrictStr
    goals: StrictStr


class Problem(WireModel):
    motivation: StrictStr
    purpose: StrictStr


class BudgetRow(WireModel):
    item: StrictStr
    period: StrictStr
    content: StrictStr


class Solution(WireModel):
    dev_plan: StrictStr
    stepwise_plan: StrictStr
    budget_table: List[BudgetRow]
    customer_response: StrictStr
    competitor_analysis: StrictStr


class DetailedBudgetRow(WireModel):
    category: StrictStr
    basis: StrictStr
    amount: StrictFloat


class MarketData(WireModel):
    name: StrictStr
    value: StrictFloat


class ScaleUp(WireModel):
    funding_plan: StrictStr
    sales_plan: StrictStr
    policy_fund_plan: StrictStr
    detailed_budget: List[DetailedBudgetRow]
    market_research_domestic: List[MarketData]
    market_approach_domestic: StrictStr
    market_research_global: List[MarketData]
    market_approach_global: StrictStr


class Team(WireModel):
    capability: StrictStr
    hiring_status: StrictStr
    social_value: StrictStr


class BusinessPlanData(WireModel):
    summary: Summary
    problem: Problem
    solution: Solution
    scale_up: ScaleUp
    team: Team

    def export_filename(self, prefix: str) -> str:
        """PDF file name: prefix + first word of the introduction."""
        words = self.summary.introduction.split()
        stem = words[0] if words else "BusinessPlan"
        return f"{prefix}{stem}.pdf"


# ----------------------------------------------------------------------
# Gemini responseSchema derivation
# ----------------------------------------------------------------------
_SCALAR_TYPES = {
    str: "STRING",
    float: "NUMBER",
    int: "INTEGER",
    bool: "BOOLEAN",
}


def _schema_for(annotation) -> Dict[str, Any]:
    if annotation in _SCALAR_TYPES:
        return {"type": _SCALAR_TYPES[annotation]}

    if typing.get_origin(annotation) in (list, List):
        (item_type,) = typing.get_args(annotation)
        return {"type": "ARRAY", "items": _schema_for(item_type)}

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return response_schema(annotation)

    raise TypeError(f"No response schema mapping for {annotation!r}")


def response_schema(model: typing.Type[BaseModel]) -> Dict[str, Any]:
    """Build the service-side output schema for ``model``.

    Every property is marked required and listed in declaration order, so the
    request contract and the parser share a single source of truth.
    """
    properties = {}
    for name, field in model.model_fields.items():
        properties[field.alias or name] = _schema_for(field.annotation)

    ordering = list(properties)
    return {
        "type": "OBJECT",
        "properties": properties,
        "required": ordering,
        "propertyOrdering": ordering,
    }


# ----------------------------------------------------------------------
# API payloads
# ----------------------------------------------------------------------
class ApiKeyInput(BaseModel):
    api_key: str = Field(..., description="Candidate Gemini API key.")


class CredentialStatus(BaseModel):
    active: bool
    source: Optional[str] = Field(None, description="'user', 'environment' or null.")


class ValidationResult(BaseModel):
    success: bool
    reason: Optional[str] = Field(
        None, description="Failure code: invalid_credential or transport_error."
    )
    message: str


class AttachmentFailure(BaseModel):
    filename: str
    message: str


class PlanResult(BaseModel):
    session_id: str
    plan: BusinessPlanData
    images: List[str]
    attachment_errors: List[AttachmentFailure] = Field(default_factory=list)
