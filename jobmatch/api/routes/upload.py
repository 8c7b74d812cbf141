"""Resume upload endpoint."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from jobmatch.agents.orchestrator import Orchestrator
from jobmatch.agents.resume_parser import ResumeParser
from jobmatch.api.deps import get_orchestrator, get_resume_parser
from jobmatch.api.limiter import limiter
from jobmatch.api.schemas import UploadResponse
from jobmatch.config import settings
from jobmatch.tools.pdf_parser import extract_pdf_text, truncate_resume, validate_resume_text

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
@limiter.limit(lambda: settings.upload_rate_limit)
async def upload_resume(
    request: Request,
    file: UploadFile = File(...),
    parser: ResumeParser = Depends(get_resume_parser),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Upload a resume (PDF), parse it and open a pending session."""
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")
    if file.content_type and file.content_type not in ("application/pdf", "application/octet-stream"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise HTTPException(status_code=413, detail=f"File too large. Maximum size is {limit_mb}MB")

    # ResumeValidationError -> 400 via the app's error handler
    resume_text = extract_pdf_text(content)
    validate_resume_text(resume_text)

    profile = await parser.parse(resume_text)
    session = await orchestrator.create_session(profile, resume_text=truncate_resume(resume_text))
    logger.info(f"[{session.id}] Resume uploaded ({len(content)} bytes)")

    return UploadResponse(
        session_id=session.id,
        message="Resume parsed successfully",
        profile=profile,
    )
