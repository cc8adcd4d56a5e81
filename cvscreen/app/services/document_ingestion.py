import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from ..config import MAX_UPLOAD_BYTES, UPLOAD_DIR
from ..models.applicant import Applicant
from ..models.document import Document, DocumentStatus
from ..models.job import Job
from ..utils.error_handlers import AuthorizationError, NotFoundError, get_error_message
from ..utils.roles import caller_id, is_admin
from ..utils.validation import validate_cv_upload
from .document_extraction import run_extraction
from .task_runner import get_runner

logger = logging.getLogger(__name__)


def get_accessible_applicant(db: Session, *, applicant_id: int, caller: dict) -> Applicant:
    """Applicant whose job the caller owns (admins see all)."""
    applicant = db.query(Applicant).filter(Applicant.id == int(applicant_id)).first()
    if not applicant:
        raise NotFoundError(get_error_message("applicant_not_found"))
    if is_admin(caller):
        return applicant
    job = db.query(Job).filter(Job.id == applicant.job_id).first()
    if not job or int(job.user_id) != caller_id(caller):
        raise AuthorizationError(get_error_message("job_forbidden"))
    return applicant


def _get_accessible_document(db: Session, *, document_id: int, caller: dict) -> Document:
    doc = db.query(Document).filter(Document.id == int(document_id)).first()
    if not doc:
        raise NotFoundError(get_error_message("document_not_found"))
    get_accessible_applicant(db, applicant_id=doc.applicant_id, caller=caller)
    return doc


def schedule_extraction(document_id: int) -> str:
    """Queue extraction; runs for the same document are serialized and a still-queued run is reused."""
    return get_runner().submit(
        "extract_document",
        run_extraction,
        serial_key=int(document_id),
        document_id=int(document_id),
    )


def upload_document(
    db: Session,
    *,
    applicant_id: int,
    data: bytes,
    filename: str,
    content_type: str | None,
    caller: dict,
) -> Document:
    """
    Validate, store and register one CV, then queue its extraction.

    Nothing is written (file or row) unless every check passes.
    """
    applicant = get_accessible_applicant(db, applicant_id=applicant_id, caller=caller)

    try:
        original_filename, ext, declared_type = validate_cv_upload(
            filename=filename,
            content_type=content_type,
            size=len(data or b""),
            max_bytes=MAX_UPLOAD_BYTES,
        )
    except Exception as e:
        logger.info("Upload rejected applicant_id=%s filename=%r: %s", applicant_id, filename, e)
        raise

    stored_filename = f"{uuid4().hex}{ext}"
    rel_path = Path("cvs") / str(applicant.id) / stored_filename
    dest = Path(UPLOAD_DIR) / rel_path
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(data)

    doc = Document(
        applicant_id=applicant.id,
        original_filename=original_filename,
        stored_filename=stored_filename,
        content_type=declared_type,
        size_bytes=len(data),
        file_extension=ext,
        file_path=rel_path.as_posix(),
        status=DocumentStatus.UPLOADED,
        uploaded_at=datetime.now(timezone.utc),
    )
    try:
        db.add(doc)
        db.commit()
        db.refresh(doc)
    except Exception:
        db.rollback()
        try:
            if dest.exists():
                dest.unlink()
        except OSError:
            logger.warning("Could not remove orphaned upload %s", dest)
        raise

    logger.info(
        "Uploaded document_id=%s applicant_id=%s ext=%s size=%s",
        doc.id,
        applicant.id,
        ext,
        doc.size_bytes,
    )
    schedule_extraction(doc.id)
    return doc


def reextract_document(db: Session, *, document_id: int, caller: dict) -> Document:
    """Queue another extraction run; the run restarts at Processing."""
    doc = _get_accessible_document(db, document_id=document_id, caller=caller)
    logger.info("Re-extraction requested document_id=%s current_status=%s", doc.id, doc.status.value)
    schedule_extraction(doc.id)
    return doc


def list_document_statuses(db: Session, *, applicant_id: int, caller: dict) -> list[dict[str, Any]]:
    applicant = get_accessible_applicant(db, applicant_id=applicant_id, caller=caller)
    rows = (
        db.query(Document)
        .filter(Document.applicant_id == applicant.id)
        .order_by(Document.uploaded_at.desc(), Document.id.desc())
        .all()
    )
    return [public_document(d) for d in rows]


def read_document_file(db: Session, *, document_id: int, caller: dict) -> tuple[Path, str, str]:
    """(absolute path, media type, download filename) for a stored CV."""
    doc = _get_accessible_document(db, document_id=document_id, caller=caller)
    abs_path = Path(UPLOAD_DIR) / Path(doc.file_path)
    if not abs_path.exists():
        logger.error("CV file missing on server: %s", abs_path)
        raise NotFoundError(get_error_message("file_missing"))
    return abs_path, doc.content_type or "application/octet-stream", doc.original_filename


def public_document(d: Document) -> dict[str, Any]:
    return {
        "id": d.id,
        "applicant_id": d.applicant_id,
        "original_filename": d.original_filename,
        "content_type": d.content_type,
        "size_bytes": d.size_bytes,
        "file_extension": d.file_extension,
        "status": d.status.value if d.status else None,
        "has_text": bool(d.extracted_text),
        "error_message": d.error_message,
        "uploaded_at": d.uploaded_at.isoformat() if d.uploaded_at else None,
        "processed_at": d.processed_at.isoformat() if d.processed_at else None,
    }
