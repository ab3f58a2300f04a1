import httpx
import json
import logging
from typing import List, Dict, Any, Optional

from pydantic import ValidationError

from psst_planner import config
from psst_planner.errors import (
    EmptyResponse,
    InvalidCredential,
    MalformedJSON,
    TransportError,
)
from psst_planner.prompts import (
    build_image_request,
    build_plan_request,
    build_probe_request,
)
from psst_planner.schemas import BusinessPlanData, CompanyInfo

logger = logging.getLogger(__name__)

_KEY_REJECTION_MARKERS = ("API_KEY_INVALID", "API key not valid", "API_KEY_EXPIRED")


def parse_plan(text: Optional[str]) -> BusinessPlanData:
    """Parse the service's JSON-mode output into a plan.

    No defaults are filled in here: a missing field or a string where a
    number belongs is a contract violation.
    """
    if not text or not text.strip():
        raise EmptyResponse()

    try:
        return BusinessPlanData.model_validate_json(text)
    except ValidationError as e:
        logger.error(f"Plan parsing failed: {e.error_count()} schema violation(s)")
        raise MalformedJSON() from e


class LLMClient:
    """Gemini REST client shared by the plan, image and probe calls.

    The API key is passed per call; the client itself holds no credential.
    """

    def __init__(
        self,
        base_url: str = config.GEMINI_BASE_URL,
        plan_model: str = config.PLAN_MODEL,
        image_model: str = config.IMAGE_MODEL,
        probe_model: str = config.PROBE_MODEL,
        timeout: float = config.LLM_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._plan_model = plan_model
        self._image_model = image_model
        self._probe_model = probe_model
        self._timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # 🔹 LOW LEVEL GENERATION
    # ------------------------------------------------------------------
    async def _generate(
        self,
        api_key: str,
        model: str,
        body: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Call models/{model}:generateContent and return the decoded response
        """

        url = f"{self._base_url}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(url, headers=headers, json=body)
                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Gemini API Error ({model}): {status} {e.response.text}")
            if self._is_key_rejection(e.response):
                raise InvalidCredential() from e
            raise TransportError(
                f"Generation service error ({status}). Please try again."
            ) from e

        except httpx.RequestError as e:
            logger.error(f"Gemini Connection Failed ({model}): {e!r}")
            raise TransportError() from e

        except json.JSONDecodeError as e:
            logger.error(f"Gemini returned a non-JSON envelope ({model})")
            raise TransportError() from e

    @staticmethod
    def _is_key_rejection(response: httpx.Response) -> bool:
        if response.status_code in (401, 403):
            return True
        if response.status_code == 400:
            return any(marker in response.text for marker in _KEY_REJECTION_MARKERS)
        return False

    # ------------------------------------------------------------------
    # 🔹 UTIL: RESPONSE PARTS
    # ------------------------------------------------------------------
    @staticmethod
    def _candidate_parts(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        candidates = data.get("candidates") or []
        if not candidates:
            return []
        content = candidates[0].get("content") or {}
        return content.get("parts") or []

    def _extract_text(self, data: Dict[str, Any]) -> str:
        # Thought summaries are not part of the answer.
        return "".join(
            part.get("text", "")
            for part in self._candidate_parts(data)
            if not part.get("thought")
        )

    def _extract_images(self, data: Dict[str, Any]) -> List[str]:
        images = []
        for part in self._candidate_parts(data):
            # Interim drafts from thinking are not the final image.
            if part.get("thought"):
                continue
            inline = part.get("inlineData")
            if inline and inline.get("data"):
                mime_type = inline.get("mimeType") or "image/png"
                images.append(f"data:{mime_type};base64,{inline['data']}")
        return images

    # ------------------------------------------------------------------
    # 🔹 BUSINESS PLAN
    # ------------------------------------------------------------------
    async def generate_business_plan(
        self,
        info: CompanyInfo,
        api_key: str,
    ) -> BusinessPlanData:

        body = build_plan_request(info)
        logger.info(
            f"Requesting business plan for '{info.company_name}' "
            f"({len(info.attachments)} attachment(s))"
        )

        data = await self._generate(api_key, self._plan_model, body)
        return parse_plan(self._extract_text(data))

    # ------------------------------------------------------------------
    # 🔹 IMAGES
    # ------------------------------------------------------------------
    async def generate_image(self, prompt: str, api_key: str) -> List[str]:
        data = await self._generate(
            api_key, self._image_model, build_image_request(prompt)
        )
        return self._extract_images(data)

    # ------------------------------------------------------------------
    # 🔹 LIVENESS PROBE
    # ------------------------------------------------------------------
    async def probe(self, api_key: str) -> str:
        data = await self._generate(api_key, self._probe_model, build_probe_request())
        return self._extract_text(data)


llm_client = LLMClient()
