import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..config import MAX_UPLOAD_BYTES
from ..database import get_db
from ..services.document_ingestion import (
    list_document_statuses,
    public_document,
    read_document_file,
    reextract_document,
    upload_document,
)
from ..services.processing_status import applicant_processing_status, job_processing_status
from ..utils.roles import recruiter_or_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])

_CHUNK = 1024 * 1024  # 1MB


async def _read_limited(file: UploadFile, limit: int) -> bytes:
    """Read at most limit + 1 bytes so oversize uploads are detected without buffering them whole."""
    buf = bytearray()
    try:
        while len(buf) <= limit:
            chunk = await file.read(min(_CHUNK, limit + 1 - len(buf)))
            if not chunk:
                break
            buf.extend(chunk)
    finally:
        await file.close()
    return bytes(buf)


@router.post("/applicants/{applicant_id}/documents", status_code=201)
async def upload_cv(
    applicant_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    data = await _read_limited(file, MAX_UPLOAD_BYTES)
    doc = upload_document(
        db,
        applicant_id=applicant_id,
        data=data,
        filename=file.filename or "",
        content_type=file.content_type,
        caller=user,
    )
    return {"success": True, "document": public_document(doc)}


@router.get("/applicants/{applicant_id}/documents")
def list_applicant_documents(
    applicant_id: int,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    rows = list_document_statuses(db, applicant_id=applicant_id, caller=user)
    return {"success": True, "documents": rows}


@router.post("/documents/{document_id}/reextract", status_code=202)
def reextract_cv(
    document_id: int,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    doc = reextract_document(db, document_id=document_id, caller=user)
    return {"success": True, "message": "Text extraction queued", "document": public_document(doc)}


@router.get("/documents/{document_id}/download")
def download_cv(
    document_id: int,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    path, media_type, filename = read_document_file(db, document_id=document_id, caller=user)
    return FileResponse(path, media_type=media_type, filename=filename)


@router.get("/processing/applicants/{applicant_id}/status")
def get_applicant_processing_status(
    applicant_id: int,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    return {"success": True, "status": applicant_processing_status(db, applicant_id=applicant_id, caller=user)}


@router.get("/processing/jobs/{job_id}/status")
def get_job_processing_status(
    job_id: int,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    return {"success": True, "status": job_processing_status(db, job_id=job_id, caller=user)}
