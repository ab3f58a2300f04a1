import asyncio
import logging
from typing import List, Optional

from psst_planner.config import is_placeholder
from psst_planner.llm_service import LLMClient, llm_client
from psst_planner.prompts import IMAGE_PROMPT_TEMPLATES, build_image_prompts
from psst_planner.schemas import CompanyInfo

logger = logging.getLogger(__name__)


class ImageOrchestrator:
    """Best-effort illustration batch for a plan.

    All prompts run concurrently. A prompt that fails, or comes back without
    an image, is logged and skipped; the others are unaffected. Successful
    images keep the relative order of the prompt list.
    """

    def __init__(self, client: LLMClient = llm_client):
        self._client = client

    async def _generate_one(self, prompt: str, api_key: str) -> Optional[str]:
        images = await self._client.generate_image(prompt, api_key)
        # One image per prompt keeps positions meaningful to the renderer.
        return images[0] if images else None

    async def generate(self, info: CompanyInfo, api_key: Optional[str]) -> List[str]:
        if is_placeholder(api_key):
            return []

        prompts = build_image_prompts(info)
        results = await asyncio.gather(
            *(self._generate_one(prompt, api_key) for prompt in prompts),
            return_exceptions=True,
        )

        images = []
        for (label, _), result in zip(IMAGE_PROMPT_TEMPLATES, results):
            if isinstance(result, BaseException):
                logger.error(f"Image generation failed ({label}): {result}")
            elif result is None:
                logger.error(f"Image generation returned no image ({label})")
            else:
                images.append(result)

        logger.info(f"Generated {len(images)}/{len(prompts)} images")
        return images


image_orchestrator = ImageOrchestrator()
