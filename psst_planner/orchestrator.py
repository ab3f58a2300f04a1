import asyncio
import logging
from typing import List, Optional, Tuple

from psst_planner.config import is_placeholder
from psst_planner.credentials import CredentialStore, credential_store
from psst_planner.errors import MissingCredential
from psst_planner.images import ImageOrchestrator, image_orchestrator
from psst_planner.llm_service import LLMClient, llm_client
from psst_planner.schemas import BusinessPlanData, CompanyInfo

logger = logging.getLogger(__name__)


class GenerationOrchestrator:
    """Runs the plan and the illustration batch side by side.

    The plan is the deliverable: if it fails, the whole run fails and any
    images are thrown away. Missing images never fail a run.
    """

    def __init__(
        self,
        client: LLMClient = llm_client,
        images: ImageOrchestrator = image_orchestrator,
        store: CredentialStore = credential_store,
    ):
        self._client = client
        self._images = images
        self._store = store

    async def run(
        self,
        info: CompanyInfo,
        credential: Optional[str] = None,
    ) -> Tuple[BusinessPlanData, List[str]]:
        api_key = credential if credential is not None else self._store.get()
        if is_placeholder(api_key):
            raise MissingCredential()

        plan, images = await asyncio.gather(
            self._client.generate_business_plan(info, api_key),
            self._images.generate(info, api_key),
            return_exceptions=True,
        )

        if isinstance(plan, BaseException):
            logger.error(f"Generation error: {plan}")
            raise plan

        if isinstance(images, BaseException):
            logger.error(f"Image batch failed: {images}")
            images = []

        return plan, images


orchestrator = GenerationOrchestrator()
