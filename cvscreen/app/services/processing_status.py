import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from ..models.applicant import Applicant
from ..models.document import Document, DocumentStatus
from ..models.screening_result import ScreeningResult, ScreeningStatus
from .document_ingestion import get_accessible_applicant
from .screening import get_accessible_job

logger = logging.getLogger(__name__)

DOCUMENT_PROGRESS: dict[DocumentStatus, int] = {
    DocumentStatus.UPLOADED: 25,
    DocumentStatus.PROCESSING: 50,
    DocumentStatus.PROCESSED: 100,
    DocumentStatus.ERROR: 0,
}

SCREENING_PROGRESS: dict[ScreeningStatus, int] = {
    ScreeningStatus.PROCESSING: 50,
    ScreeningStatus.COMPLETED: 100,
    ScreeningStatus.FAILED: 0,
}


def document_progress(status: DocumentStatus | None) -> int:
    if status is None:
        return 0
    return DOCUMENT_PROGRESS[DocumentStatus(status)]


def screening_progress(status: ScreeningStatus | None) -> int:
    if status is None:
        return 0
    return SCREENING_PROGRESS[ScreeningStatus(status)]


def overall_progress(doc_status: DocumentStatus | None, screening_status: ScreeningStatus | None) -> int:
    """Document progress alone until the CV is processed, then the mean of both stages."""
    doc = document_progress(doc_status)
    if doc_status is None or DocumentStatus(doc_status) != DocumentStatus.PROCESSED:
        return doc
    return (doc + screening_progress(screening_status)) // 2


def _latest_document(db: Session, applicant_id: int) -> Document | None:
    return (
        db.query(Document)
        .filter(Document.applicant_id == applicant_id)
        .order_by(Document.uploaded_at.desc(), Document.id.desc())
        .first()
    )


def _latest_screening(db: Session, applicant_id: int, job_id: int) -> ScreeningResult | None:
    return (
        db.query(ScreeningResult)
        .filter(ScreeningResult.applicant_id == applicant_id, ScreeningResult.job_id == job_id)
        .order_by(ScreeningResult.created_at.desc(), ScreeningResult.id.desc())
        .first()
    )


def _max_ts(*values: datetime | None) -> datetime | None:
    present = [v for v in values if v is not None]
    if not present:
        return None
    # SQLite hands back naive datetimes; compare on the naive wall clock.
    return max(present, key=lambda v: v.replace(tzinfo=None))


def _status_row(db: Session, applicant: Applicant) -> dict[str, Any]:
    doc = _latest_document(db, applicant.id)
    result = _latest_screening(db, applicant.id, applicant.job_id)

    doc_status = doc.status if doc else None
    scr_status = result.status if result else None
    last_updated = _max_ts(
        applicant.last_updated,
        doc.processed_at if doc else None,
        doc.uploaded_at if doc else None,
        result.completed_at if result else None,
        result.created_at if result else None,
    )

    return {
        "applicant_id": applicant.id,
        "applicant_name": applicant.full_name,
        "applicant_status": applicant.status,
        "job_id": applicant.job_id,
        "document": {
            "id": doc.id if doc else None,
            "status": doc_status.value if doc_status else None,
            "progress_percent": document_progress(doc_status),
            "error_message": doc.error_message if doc else None,
        },
        "screening": {
            "id": result.id if result else None,
            "status": scr_status.value if scr_status else None,
            "progress_percent": screening_progress(scr_status),
            "overall_score": result.overall_score if result and scr_status == ScreeningStatus.COMPLETED else None,
            "error_message": result.error_message if result else None,
        },
        "overall_progress": overall_progress(doc_status, scr_status),
        "last_updated": last_updated.isoformat() if last_updated else None,
    }


def applicant_processing_status(db: Session, *, applicant_id: int, caller: dict) -> dict[str, Any]:
    applicant = get_accessible_applicant(db, applicant_id=applicant_id, caller=caller)
    return _status_row(db, applicant)


def job_processing_status(db: Session, *, job_id: int, caller: dict) -> dict[str, Any]:
    job = get_accessible_job(db, job_id=job_id, caller=caller)
    applicants = (
        db.query(Applicant)
        .filter(Applicant.job_id == job.id)
        .order_by(Applicant.id.asc())
        .all()
    )
    rows = [_status_row(db, a) for a in applicants]
    logger.debug("Processing status job_id=%s applicants=%s", job.id, len(rows))
    return {
        "job_id": job.id,
        "job_title": job.job_title,
        "applicants": rows,
    }
