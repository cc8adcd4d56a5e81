"""
Screening orchestration.

Synchronous path (`start_screening`): authorize, verify applicants, create one
ScreeningResult per applicant at Processing, queue one background unit each.

Background path (`run_screening`): latest processed CV -> prompt -> AI client
-> parser -> terminal write. Every unit ends in Completed or Failed.
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import database
from ..models.applicant import APPLICANT_STATUS_SCREENED, Applicant
from ..models.document import Document, DocumentStatus
from ..models.job import Job
from ..models.screening_result import ScreeningResult, ScreeningStatus
from ..utils.error_handlers import AuthorizationError, DomainError, NotFoundError, get_error_message
from ..utils.roles import caller_id, is_admin
from ..utils.validation import validate_id_list
from .ai_client import analyze
from .prompt_builder import build_job_context, build_screening_prompt
from .result_parser import parse_analysis
from .task_runner import get_runner

logger = logging.getLogger(__name__)


class NoUsableDocumentError(RuntimeError):
    pass


def encode_string_list(items: list[str] | None) -> str:
    return json.dumps(list(items or []), ensure_ascii=False)


def decode_string_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Stored list is not valid JSON; returning it as a single item")
        return [raw]
    if not isinstance(value, list):
        return [str(value)]
    return [str(x) for x in value]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


# ------------------------- Authorization -------------------------

def get_accessible_job(db: Session, *, job_id: int, caller: dict) -> Job:
    job = db.query(Job).filter(Job.id == int(job_id)).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    if not is_admin(caller) and int(job.user_id) != caller_id(caller):
        raise AuthorizationError(get_error_message("job_forbidden"))
    return job


# ------------------------- Synchronous path -------------------------

def start_screening(db: Session, *, job_id: int, applicant_ids: list[int], caller: dict) -> list[ScreeningResult]:
    """
    Create Processing results for the given applicants and queue their units.

    Raises before writing anything when the caller may not screen this job or
    when any applicant is not an applicant of the job.
    """
    ids = validate_id_list(applicant_ids, "applicant_ids")
    job = get_accessible_job(db, job_id=job_id, caller=caller)

    applicants = (
        db.query(Applicant)
        .filter(Applicant.id.in_(ids), Applicant.job_id == job.id)
        .all()
    )
    found = {a.id for a in applicants}
    missing = [i for i in ids if i not in found]
    if missing:
        raise DomainError(
            get_error_message("applicants_not_in_job"),
            details={"job_id": job.id, "applicant_ids": missing},
        )

    by_id = {a.id: a for a in applicants}
    created_at = _now()
    results = [
        ScreeningResult(
            applicant_id=by_id[i].id,
            job_id=job.id,
            status=ScreeningStatus.PROCESSING,
            created_at=created_at,
        )
        for i in ids
    ]
    db.add_all(results)
    db.commit()
    for r in results:
        db.refresh(r)

    runner = get_runner()
    for r in results:
        runner.submit("screen_applicant", run_screening, result_id=int(r.id))

    logger.info(
        "Screening started job_id=%s applicants=%s caller=%s",
        job.id,
        ids,
        caller.get("sub"),
    )
    return results


def start_applicant_screening(db: Session, *, applicant_id: int, caller: dict) -> ScreeningResult:
    """Screen one applicant against the job they applied to."""
    applicant = db.query(Applicant).filter(Applicant.id == int(applicant_id)).first()
    if not applicant:
        raise NotFoundError(get_error_message("applicant_not_found"))
    return start_screening(db, job_id=applicant.job_id, applicant_ids=[applicant.id], caller=caller)[0]


# ------------------------- Background path -------------------------

def latest_usable_document(db: Session, *, applicant_id: int) -> Document | None:
    return (
        db.query(Document)
        .filter(
            Document.applicant_id == int(applicant_id),
            Document.status == DocumentStatus.PROCESSED,
            Document.extracted_text.isnot(None),
            Document.extracted_text != "",
        )
        .order_by(Document.uploaded_at.desc(), Document.id.desc())
        .first()
    )


def _complete(db: Session, result: ScreeningResult, applicant: Applicant) -> None:
    job = db.query(Job).filter(Job.id == result.job_id).first()
    if not job:
        raise RuntimeError(get_error_message("job_not_found"))

    document = latest_usable_document(db, applicant_id=applicant.id)
    if document is None:
        raise NoUsableDocumentError(get_error_message("no_usable_document"))

    context = build_job_context(job)
    prompt = build_screening_prompt(job=job, cv_text=document.extracted_text or "", context=context)
    logger.info(
        "Screening result_id=%s document_id=%s job_type=%s level=%s",
        result.id,
        document.id,
        context.job_type.value,
        context.experience_level.value,
    )

    raw = asyncio.run(analyze(prompt))
    analysis = parse_analysis(raw)

    now = _now()
    result.overall_score = analysis.overall_score
    result.summary = analysis.summary
    result.strengths = encode_string_list(analysis.strengths)
    result.weaknesses = encode_string_list(analysis.weaknesses)
    result.detailed_analysis = analysis.detailed_analysis
    result.recommendation = analysis.recommendation
    result.status = ScreeningStatus.COMPLETED
    result.completed_at = now
    result.error_message = None

    applicant.status = APPLICANT_STATUS_SCREENED
    applicant.last_updated = now
    # Result and applicant cascade land together or not at all.
    db.commit()


def _fail(db: Session, *, result_id: int, message: str) -> None:
    result = db.query(ScreeningResult).filter(ScreeningResult.id == int(result_id)).first()
    if not result or result.status.is_terminal:
        return
    result.status = ScreeningStatus.FAILED
    result.error_message = (message or "Screening failed")[:1000]
    result.completed_at = None
    db.commit()


def run_screening(*, result_id: int) -> None:
    """Background unit for one ScreeningResult; opens and closes its own session."""
    db = database.open_session()
    try:
        result = db.query(ScreeningResult).filter(ScreeningResult.id == int(result_id)).first()
        if not result:
            logger.warning("Screening skipped: result %s not found", result_id)
            return
        if result.status.is_terminal:
            logger.warning("Screening skipped: result %s already %s", result_id, result.status.value)
            return

        logger.info("Screening start result_id=%s applicant_id=%s", result.id, result.applicant_id)
        try:
            applicant = db.query(Applicant).filter(Applicant.id == result.applicant_id).first()
            if not applicant:
                raise RuntimeError(get_error_message("applicant_not_found"))
            _complete(db, result, applicant)
            logger.info("Screening done result_id=%s score=%s", result_id, result.overall_score)
        except NoUsableDocumentError as e:
            db.rollback()
            logger.warning("Screening failed result_id=%s: %s", result_id, e)
            _fail(db, result_id=result_id, message=str(e))
        except Exception as e:
            db.rollback()
            logger.exception("Error processing screening result_id=%s", result_id)
            _fail(db, result_id=result_id, message=str(e) or type(e).__name__)
    except Exception:
        db.rollback()
        logger.exception("Screening unit could not record a terminal state result_id=%s", result_id)
    finally:
        db.close()


# ------------------------- Queries -------------------------

def public_result(r: ScreeningResult) -> dict[str, Any]:
    return {
        "id": r.id,
        "applicant_id": r.applicant_id,
        "job_id": r.job_id,
        "overall_score": int(r.overall_score or 0),
        "summary": r.summary or "",
        "strengths": decode_string_list(r.strengths),
        "weaknesses": decode_string_list(r.weaknesses),
        "detailed_analysis": r.detailed_analysis or "",
        "recommendation": r.recommendation,
        "status": r.status.value,
        "created_at": _iso(r.created_at),
        "completed_at": _iso(r.completed_at),
        "error_message": r.error_message,
    }


def _visible_results(db: Session, caller: dict):
    q = db.query(ScreeningResult).join(Job, Job.id == ScreeningResult.job_id)
    if not is_admin(caller):
        q = q.filter(Job.user_id == caller_id(caller))
    return q


def get_screening_result(db: Session, *, result_id: int, caller: dict) -> ScreeningResult:
    result = _visible_results(db, caller).filter(ScreeningResult.id == int(result_id)).first()
    if not result:
        raise NotFoundError(get_error_message("result_not_found"))
    return result


def list_results_for_applicant(db: Session, *, applicant_id: int, caller: dict) -> list[ScreeningResult]:
    return (
        _visible_results(db, caller)
        .filter(ScreeningResult.applicant_id == int(applicant_id))
        .order_by(ScreeningResult.created_at.desc(), ScreeningResult.id.desc())
        .all()
    )


def list_screened_applicants(db: Session, *, caller: dict) -> list[dict[str, Any]]:
    """Applicants with at least one screening, newest screening first."""
    q = (
        db.query(Applicant, Job)
        .join(Job, Job.id == Applicant.job_id)
        .filter(Applicant.screening_results.any())
    )
    if not is_admin(caller):
        q = q.filter(Job.user_id == caller_id(caller))

    counts = dict(
        db.query(ScreeningResult.applicant_id, func.count(ScreeningResult.id))
        .group_by(ScreeningResult.applicant_id)
        .all()
    )

    rows: list[dict[str, Any]] = []
    for applicant, job in q.all():
        latest = (
            db.query(ScreeningResult)
            .filter(ScreeningResult.applicant_id == applicant.id)
            .order_by(ScreeningResult.created_at.desc(), ScreeningResult.id.desc())
            .first()
        )
        rows.append(
            {
                "applicant_id": applicant.id,
                "first_name": applicant.first_name,
                "last_name": applicant.last_name,
                "email": applicant.email,
                "status": applicant.status,
                "applied_at": _iso(applicant.applied_at),
                "job_id": job.id,
                "job_title": job.job_title,
                "job_location": job.location,
                "job_department": job.department,
                "latest_score": int(latest.overall_score or 0) if latest else None,
                "latest_status": latest.status.value if latest else None,
                "latest_screening_at": _iso(latest.created_at) if latest else None,
                "latest_result_id": latest.id if latest else None,
                "total_screenings": int(counts.get(applicant.id, 0)),
            }
        )

    rows.sort(key=lambda r: (r["latest_screening_at"] or "", r["latest_result_id"] or 0), reverse=True)
    return rows
