import logging
import os
from pathlib import Path
from typing import Optional

from psst_planner import config
from psst_planner.config import is_placeholder
from psst_planner.errors import PlanGenerationError
from psst_planner.llm_service import LLMClient, llm_client
from psst_planner.schemas import ValidationResult

logger = logging.getLogger(__name__)


class CredentialValidator:
    """Liveness probe for a candidate API key."""

    def __init__(self, client: LLMClient = llm_client):
        self._client = client

    async def validate(self, candidate: str) -> ValidationResult:
        if is_placeholder(candidate):
            return ValidationResult(
                success=False,
                reason="missing_credential",
                message="Please enter an API key.",
            )

        try:
            text = await self._client.probe(candidate.strip())
        except PlanGenerationError as e:
            logger.warning(f"Credential probe failed: {e.code}")
            return ValidationResult(success=False, reason=e.code, message=e.message)

        if not text:
            return ValidationResult(
                success=False,
                reason="empty_response",
                message="The service answered the probe with an empty response.",
            )
        return ValidationResult(success=True, message="Connection verified.")


class CredentialStore:
    """The active API key: a persisted user key, else the environment default.

    ``set`` only persists a key after the validator accepts it. Reads never
    hit the network.
    """

    def __init__(
        self,
        validator: CredentialValidator,
        path: str = config.CREDENTIAL_FILE,
        env_default: Optional[str] = config.ENV_API_KEY,
    ):
        self._validator = validator
        self._path = Path(path)
        self._env_default = env_default

    def _read_slot(self) -> Optional[str]:
        if not self._path.exists():
            return None
        key = self._path.read_text(encoding="utf-8").strip()
        return None if is_placeholder(key) else key

    def get(self) -> Optional[str]:
        user_key = self._read_slot()
        if user_key:
            return user_key
        if not is_placeholder(self._env_default):
            return self._env_default
        return None

    def source(self) -> Optional[str]:
        if self._read_slot():
            return "user"
        if not is_placeholder(self._env_default):
            return "environment"
        return None

    async def set(self, key: str) -> ValidationResult:
        result = await self._validator.validate(key)
        if not result.success:
            return result

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(key.strip(), encoding="utf-8")
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self._path)
        logger.info("API key validated and saved")
        return result

    def clear(self):
        if self._path.exists():
            self._path.unlink()
            logger.info("Saved API key removed")


credential_validator = CredentialValidator()
credential_store = CredentialStore(credential_validator)
