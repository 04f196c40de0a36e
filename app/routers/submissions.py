"""Kiosk submission endpoints."""

import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.dependencies import get_submission_service
from app.exceptions import StorageFailure, ValidationError
from app.models.submission import AudioPayload, SubmissionForm
from app.rate_limit import limiter
from app.schemas.submission import EnhanceData, EnhanceResponse, ErrorResponse, UploadData, UploadResponse
from app.services.submission import SubmissionService

logger = logging.getLogger("voice_booth")

router = APIRouter(prefix="/api", tags=["Submissions"])

RATE_LIMIT = get_settings().RATE_LIMIT
ENHANCE_FAILED = "Failed to process audio. Please try again."
UPLOAD_FAILED = "Failed to upload file. Please try again."
ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


async def _read_audio(file: UploadFile | None) -> AudioPayload | None:
    """Read the multipart file part into memory. The request size middleware bounds it."""
    if file is None:
        return None
    data = await file.read()
    return AudioPayload(data=data, mime_type=file.content_type or "", filename=file.filename or "")


def _failure(message: str, exc: Exception) -> JSONResponse:
    body = ErrorResponse(error=message, details=str(exc))
    return JSONResponse(status_code=500, content=body.model_dump())


@router.post("/enhance", response_model=EnhanceResponse, response_model_exclude_none=True, responses=ERROR_RESPONSES)
@limiter.limit(RATE_LIMIT)
async def enhance_recording(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    duration: str = Form(""),
    file: UploadFile | None = File(None),
    service: SubmissionService = Depends(get_submission_service),
) -> EnhanceResponse | JSONResponse:
    """Store a recording, create an AI-enhanced version, and notify the booth team."""
    form = SubmissionForm(name=name, email=email, duration=duration, audio=await _read_audio(file))

    try:
        result = await run_in_threadpool(service.submit_enhanced, form)
    except ValidationError:
        raise
    except StorageFailure as e:
        return _failure(ENHANCE_FAILED, e)
    except Exception as e:
        logger.exception("Critical error in audio processing")
        return _failure(ENHANCE_FAILED, e)

    enhanced = result.enhanced
    return EnhanceResponse(
        message=result.message,
        data=EnhanceData(
            raw_download_url=result.raw.download_url,
            raw_file_name=result.raw.file_name,
            raw_file_size=result.raw.size_mb,
            enhanced_download_url=enhanced.download_url if enhanced else None,
            enhanced_file_name=enhanced.file_name if enhanced else None,
            enhanced_file_size=enhanced.size_mb if enhanced else None,
            duration=result.duration,
            voice_id=result.voice_id,
        ),
    )


@router.post("/upload", response_model=UploadResponse, responses=ERROR_RESPONSES)
@limiter.limit(RATE_LIMIT)
async def upload_recording(
    request: Request,
    name: str = Form(""),
    duration: str = Form(""),
    file: UploadFile | None = File(None),
    service: SubmissionService = Depends(get_submission_service),
) -> UploadResponse | JSONResponse:
    """Store an audio file and notify the booth team. No AI enhancement."""
    form = SubmissionForm(name=name, duration=duration, audio=await _read_audio(file))

    try:
        result = await run_in_threadpool(service.submit_upload, form)
    except ValidationError:
        raise
    except StorageFailure as e:
        return _failure(UPLOAD_FAILED, e)
    except Exception as e:
        logger.exception("Upload error")
        return _failure(UPLOAD_FAILED, e)

    return UploadResponse(
        message=result.message,
        data=UploadData(
            download_url=result.raw.download_url,
            file_name=result.raw.file_name,
            file_size=result.raw.size_mb,
            duration=result.duration,
        ),
    )
