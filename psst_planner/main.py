import asyncio
import uuid
import logging
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from psst_planner import config
from psst_planner.attachments import encode_all
from psst_planner.credentials import CredentialStore, credential_store
from psst_planner.errors import (
    EmptyResponse,
    InvalidCredential,
    MalformedJSON,
    MissingCredential,
    PlanGenerationError,
    TransportError,
)
from psst_planner.orchestrator import GenerationOrchestrator, orchestrator
from psst_planner.schemas import (
    ApiKeyInput,
    CompanyInfo,
    CredentialStatus,
    PlanResult,
    ValidationResult,
)

# Configure Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("PsstPlanner")

app = FastAPI(title="PSST Business Plan Generator", version="1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-Memory Storage; plans and images live for the session only
sessions: Dict[str, PlanResult] = {}

# One generation at a time; overlapping submissions are refused, not queued
generation_lock = asyncio.Lock()

ERROR_STATUS = {
    MissingCredential: 428,
    InvalidCredential: 401,
    TransportError: 502,
    EmptyResponse: 502,
    MalformedJSON: 502,
}

CREDENTIAL_FAILURE_STATUS = {
    MissingCredential.code: 400,
    InvalidCredential.code: 401,
}


def get_credential_store() -> CredentialStore:
    return credential_store


def get_orchestrator() -> GenerationOrchestrator:
    return orchestrator


def _http_error(error: PlanGenerationError) -> HTTPException:
    status = ERROR_STATUS.get(type(error), 500)
    return HTTPException(
        status_code=status,
        detail={"error": error.code, "message": error.message},
    )


# ----------------------------------------------------------------------
# Credentials
# ----------------------------------------------------------------------
@app.get("/api/credentials", response_model=CredentialStatus)
def get_credential_status(store: CredentialStore = Depends(get_credential_store)):
    source = store.source()
    return CredentialStatus(active=source is not None, source=source)


@app.post("/api/credentials", response_model=ValidationResult)
async def save_credential(
    body: ApiKeyInput,
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Probe the candidate key and persist it only if the service accepts it.
    """
    if not body.api_key.strip():
        raise HTTPException(
            status_code=400,
            detail={"error": "missing_credential", "message": "Please enter an API key."},
        )

    result = await store.set(body.api_key)
    if not result.success:
        status = CREDENTIAL_FAILURE_STATUS.get(result.reason, 502)
        raise HTTPException(
            status_code=status,
            detail={"error": result.reason, "message": result.message},
        )
    return result


@app.delete("/api/credentials", response_model=CredentialStatus)
def clear_credential(store: CredentialStore = Depends(get_credential_store)):
    store.clear()
    source = store.source()
    return CredentialStatus(active=source is not None, source=source)


# ----------------------------------------------------------------------
# Plans
# ----------------------------------------------------------------------
@app.post("/api/plans", response_model=PlanResult)
async def create_plan(
    company_name: str = Form(...),
    business_item: str = Form(...),
    dev_status: str = Form(...),
    target_audience: str = Form(...),
    team_info: str = Form(...),
    additional_info: str = Form(""),
    session_id: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    runner: GenerationOrchestrator = Depends(get_orchestrator),
):
    """
    Encode attachments, then generate the plan and its images.
    A new submission for a session replaces the previous result.
    """
    if generation_lock.locked():
        raise HTTPException(
            status_code=409,
            detail={"error": "busy", "message": "A generation is already in progress."},
        )

    async with generation_lock:
        session_id = session_id or str(uuid.uuid4())
        sessions.pop(session_id, None)

        attachments, attachment_errors = await encode_all(files or [])
        info = CompanyInfo(
            company_name=company_name,
            business_item=business_item,
            dev_status=dev_status,
            target_audience=target_audience,
            team_info=team_info,
            additional_info=additional_info,
            attachments=attachments,
        )

        try:
            plan, images = await runner.run(info)
        except PlanGenerationError as e:
            logger.error(f"Error generating plan: {e.code}")
            raise _http_error(e) from e

        result = PlanResult(
            session_id=session_id,
            plan=plan,
            images=images,
            attachment_errors=attachment_errors,
        )
        sessions[session_id] = result
        return result


@app.get("/api/plans/{session_id}", response_model=PlanResult)
def get_plan(session_id: str):
    if session_id not in sessions:
        raise HTTPException(status_code=404, detail="Session not found")
    return sessions[session_id]


@app.get("/api/plans/{session_id}/export-name")
def get_export_name(session_id: str):
    if session_id not in sessions:
        raise HTTPException(status_code=404, detail="Session not found")
    plan = sessions[session_id].plan
    return {"filename": plan.export_filename(config.EXPORT_FILENAME_PREFIX)}


def run():
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
