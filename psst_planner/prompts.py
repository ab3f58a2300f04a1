from typing import Any, Dict, List

from psst_planner import config
from psst_planner.schemas import BusinessPlanData, CompanyInfo, response_schema

SYSTEM_INSTRUCTION = """
당신은 한국의 정부지원사업(특히 초기창업패키지) 전문 컨설턴트이자 수석 심사위원입니다.
사용자가 제공한 기업 정보와 첨부파일을 정밀 분석하여 압도적인 전문성과 분량을 가진 PSST 사업계획서를 작성하세요.

작성 원칙:
- 요약, 문제인식(Problem), 실현가능성(Solution), 성장전략(Scale-up), 팀 구성(Team) 순서를 따릅니다.
- 섹션별로 매우 구체적인 수치와 전문 프레임워크(TAM/SAM/SOM, SWOT, 5 Forces 등)를 활용합니다.
- 서술형 항목은 심사위원이 그대로 읽을 수 있는 완결된 문단으로, 항목당 500자 이상 작성합니다.
- 예산 표와 시장 규모 표의 금액과 수치는 숫자로만 기재합니다.
- 객관적이고 설득력 있는 공문서 어조를 유지합니다.
""".strip()

USER_BRIEF_TEMPLATE = """
[기업 정보]
- 기업명: {company_name}
- 사업아이템: {business_item}
- 현 개발상황: {dev_status}
- 주요 타켓: {target_audience}
- 팀 전문성: {team_info}
- 추가 정보: {additional_info}

'초기창업패키지' 표준 규격에 따른 대용량 사업계획서를 JSON 형태로 응답하세요.
""".strip()

# Order matters: consumers label images by position.
IMAGE_PROMPT_TEMPLATES = [
    (
        "concept",
        "Technical concept blueprint of {business_item}, clean engineering "
        "drawing style, annotated components, white lines on deep blue background.",
    ),
    (
        "product",
        "Hyper-realistic 3D isometric rendering of {business_item} product design, "
        "futuristic aesthetic, cinematic studio lighting, 8K.",
    ),
    (
        "usage",
        "A realistic lifestyle photo of {target_audience} using {business_item} "
        "in their everyday environment, natural light, candid composition.",
    ),
    (
        "interface",
        "Close-up shot of the user interface and hardware details of "
        "{business_item}, shallow depth of field, premium product photography.",
    ),
    (
        "vision",
        "Wide panoramic future-vision illustration of a city where "
        "{business_item} is widely adopted, optimistic, cinematic, ultra detailed.",
    ),
]


def build_user_brief(info: CompanyInfo) -> str:
    return USER_BRIEF_TEMPLATE.format(
        company_name=info.company_name,
        business_item=info.business_item,
        dev_status=info.dev_status,
        target_audience=info.target_audience,
        team_info=info.team_info,
        additional_info=info.additional_info,
    )


def build_plan_request(info: CompanyInfo) -> Dict[str, Any]:
    """Assemble the generateContent body for a business plan.

    The attachments travel as inline data parts after the brief, in the order
    they were selected. Output is forced into JSON mode against the schema
    derived from ``BusinessPlanData``.
    """
    parts: List[Dict[str, Any]] = [{"text": build_user_brief(info)}]
    for attachment in info.attachments:
        parts.append(
            {
                "inlineData": {
                    "mimeType": attachment.mime_type,
                    "data": attachment.data,
                }
            }
        )

    return {
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {
            "maxOutputTokens": config.PLAN_MAX_OUTPUT_TOKENS,
            "thinkingConfig": {"thinkingBudget": config.PLAN_THINKING_BUDGET},
            "responseMimeType": "application/json",
            "responseSchema": response_schema(BusinessPlanData),
        },
    }


def build_image_prompts(info: CompanyInfo) -> List[str]:
    return [
        template.format(
            business_item=info.business_item,
            target_audience=info.target_audience,
        )
        for _, template in IMAGE_PROMPT_TEMPLATES
    ]


def build_image_request(prompt: str) -> Dict[str, Any]:
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "responseModalities": ["TEXT", "IMAGE"],
            "imageConfig": {
                "aspectRatio": config.IMAGE_ASPECT_RATIO,
                "imageSize": config.IMAGE_SIZE,
            },
        },
    }


def build_probe_request() -> Dict[str, Any]:
    return {"contents": [{"role": "user", "parts": [{"text": "hi"}]}]}
