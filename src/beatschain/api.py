"""FastAPI interface for the BeatsChain upload orchestrator."""

from uuid import uuid4

from fastapi import FastAPI, File, Form, Header, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from .application.ports import ProviderError
from .domain.models import UploadStage
from .interfaces.api_handlers import get_upload_record, parse_metadata_json, run_upload, upload_size_limit

app = FastAPI(title="BeatsChain Upload API", version="0.1.0")


@app.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""

    return {"status": "ok"}


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/uploads")
async def create_upload(
    file: UploadFile = File(..., description="Audio file to mint"),
    owner: str | None = Form(None, description="Wallet address of the uploader."),
    metadata: str | None = Form(None, description="JSON object of user metadata overrides."),
    x_correlation_id: str | None = Header(default=None, alias="X-Correlation-Id"),
) -> JSONResponse:
    """Run an upload through storage, transcoding and minting."""

    try:
        user_metadata = parse_metadata_json(metadata)
    except ValueError as error:
        raise HTTPException(
            status_code=400,
            detail={"code": "invalid_metadata", "message": str(error)},
        ) from error

    correlation_id = x_correlation_id or str(uuid4())
    if file.size is not None and file.size > upload_size_limit():
        # Oversized bodies are rejected by validation without being read into memory.
        payload, size_bytes = b"", file.size
    else:
        payload = await file.read()
        size_bytes = None
    outcome = await run_upload(
        filename=file.filename or "upload",
        content_type=file.content_type or "",
        payload=payload,
        user_metadata=user_metadata,
        owner=owner,
        correlation_id=correlation_id,
        size_bytes=size_bytes,
    )

    if outcome.succeeded:
        status_code = 201
    elif outcome.stage is UploadStage.VALIDATING:
        status_code = 422
    else:
        status_code = 502

    response = JSONResponse(content=outcome.as_dict(), status_code=status_code)
    response.headers["X-Correlation-Id"] = correlation_id
    response.headers["X-Upload-Stage"] = outcome.stage.value
    return response


@app.get("/uploads/{job_id}")
async def read_upload(job_id: str) -> dict:
    """Return the last saved record of an upload job."""

    try:
        record = await get_upload_record(job_id)
    except ProviderError as error:
        raise HTTPException(
            status_code=502,
            detail={"code": "record_store_unavailable", "message": str(error)},
        ) from error
    if record is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"No upload record for job '{job_id}'."},
        )
    return record.as_dict()
