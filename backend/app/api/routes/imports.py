"""
Question Import API Routes

Handles question bank uploads, the editable preview and the final commit.
"""

from fastapi import APIRouter, UploadFile, File, HTTPException, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Any, Optional
import logging

from app.services.question_import import (
    CommitError,
    ExtractionError,
    FileParseError,
    HeaderValidationError,
    ImportSession,
    NothingToCommitError,
    SessionCommittedError,
    UnsupportedFileTypeError,
    question_import_service,
)
from app.services.questions import get_questions_service

logger = logging.getLogger(__name__)

router = APIRouter()


class RowEditRequest(BaseModel):
    field: str
    value: Optional[Any] = None


def _get_session_or_404(session_id: str) -> ImportSession:
    session = question_import_service.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Import session not found")
    return session


@router.post("/{exam_id}")
async def upload_questions(exam_id: str, file: UploadFile = File(...)):
    """Parse an uploaded question bank into an editable preview"""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    content = await file.read()

    try:
        session = await question_import_service.process_upload(
            content=content,
            filename=file.filename,
            exam_id=exam_id
        )
    except HeaderValidationError as e:
        logger.warning(f"Header validation failed for {file.filename}: {e}")
        raise HTTPException(
            status_code=422,
            detail={
                "message": "CSV header validation failed",
                "warnings": e.warnings,
                "headers": e.headers
            }
        )
    except (UnsupportedFileTypeError, FileParseError, ExtractionError) as e:
        logger.warning(f"Upload rejected for {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"File processing failed for {file.filename}: {e}")
        raise HTTPException(status_code=500, detail=f"File processing failed: {str(e)}")

    summary = session.summary()
    logger.info(
        f"Import {session.session_id} ready: {summary.valid_count} valid, "
        f"{summary.invalid_count} invalid rows from {file.filename}"
    )
    return JSONResponse(session.to_dict())


@router.get("/sessions/{session_id}")
async def get_import_session(session_id: str):
    """Get the current preview of an import"""
    return _get_session_or_404(session_id).to_dict()


@router.patch("/sessions/{session_id}/rows/{position}")
async def edit_import_row(session_id: str, position: int, request: RowEditRequest):
    """Correct one field of a preview row and re-validate it"""
    session = _get_session_or_404(session_id)

    try:
        row = session.edit_row(position, request.field, request.value)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionCommittedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {
        "row": row.to_dict(),
        "summary": session.summary().to_dict()
    }


@router.delete("/sessions/{session_id}/rows/{position}")
async def delete_import_row(session_id: str, position: int):
    """Remove a row from the preview"""
    session = _get_session_or_404(session_id)

    try:
        session.delete_row(position)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SessionCommittedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return session.to_dict()


@router.post("/sessions/{session_id}/commit")
async def commit_import(session_id: str, store=Depends(get_questions_service)):
    """Insert every acceptable preview row; invalid rows are skipped"""
    session = _get_session_or_404(session_id)

    try:
        result = await session.commit(store)
    except NothingToCommitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionCommittedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CommitError as e:
        raise HTTPException(status_code=502, detail=str(e))

    question_import_service.discard_session(session_id)

    return {
        "session_id": session_id,
        "exam_id": session.exam_id,
        "inserted": result["inserted"],
        "skipped": result["skipped"],
        "message": f"Successfully uploaded {result['inserted']} questions! Skipped {result['skipped']} invalid rows."
    }


@router.delete("/sessions/{session_id}")
async def discard_import(session_id: str):
    """Abandon an import without persisting anything"""
    if not question_import_service.discard_session(session_id):
        raise HTTPException(status_code=404, detail="Import session not found")
    return {"session_id": session_id, "status": "discarded"}
